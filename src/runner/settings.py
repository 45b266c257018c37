from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from vehiclemap.config import PipelineConfig


class PipelineSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    worker_count: int = Field(default=5, alias="WORKER_COUNT")
    executor: str = Field(default="thread", alias="EXECUTOR")
    barrier_timeout_seconds: Optional[float] = Field(default=None, alias="BARRIER_TIMEOUT_SECONDS")
    statistic: str = Field(default="sum", alias="STATISTIC")
    on_parse_error: str = Field(default="skip", alias="ON_PARSE_ERROR")
    input_encoding: str = Field(default="utf-8", alias="INPUT_ENCODING")

    # Output files, one per metric
    output_dir: str = Field(default=".", alias="OUTPUT_DIR")
    appraisal_output_file: str = Field(default="tasaciones.csv", alias="APPRAISAL_OUTPUT_FILE")
    amount_paid_output_file: str = Field(default="valor_pagado.csv", alias="AMOUNT_PAID_OUTPUT_FILE")
    door_count_output_file: str = Field(default="puertas.csv", alias="DOOR_COUNT_OUTPUT_FILE")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    def to_pipeline_config(self, **overrides: Any) -> PipelineConfig:
        values: Dict[str, Any] = {
            "worker_count": self.worker_count,
            "executor": self.executor,
            "barrier_timeout_seconds": self.barrier_timeout_seconds,
            "statistic": self.statistic,
            "on_parse_error": self.on_parse_error,
            "encoding": self.input_encoding,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return PipelineConfig(**values)

    def output_paths(self, output_dir: str | None = None) -> Dict[str, Path]:
        base = Path(output_dir or self.output_dir)
        return {
            "appraisal_value": base / self.appraisal_output_file,
            "amount_paid": base / self.amount_paid_output_file,
            "door_count": base / self.door_count_output_file,
        }
