import threading

import pytest

from vehiclemap.config import PipelineConfig
from vehiclemap.data_models import Chunk
from vehiclemap.errors import WorkerCancelled, WorkerFailure
from vehiclemap.transfer import encode_rows
from vehiclemap.worker import run_encoded_worker, run_worker


def test_worker_consumes_only_its_chunk(scenario_rows):
    result = run_worker(Chunk(index=1, start=2, end=4), scenario_rows, PipelineConfig())
    assert result.worker_index == 1
    assert result.rows_consumed == 2
    assert result.totals["Light Vehicle"].appraisal_value == 50.0
    assert result.totals["Light Vehicle"].count == 1
    assert result.totals["Public Transport"].door_count == 6
    assert result.totals["Cargo"].count == 0


def test_light_vehicle_only_reaches_its_bucket(make_row):
    rows = [make_row("Light Vehicle", 300, 7, 4)]
    result = run_worker(Chunk(index=0, start=0, end=1), rows, PipelineConfig())
    assert result.totals["Light Vehicle"].appraisal_value == 300.0
    for other in ("Cargo", "Public Transport"):
        assert result.totals[other].appraisal_value == 0.0
        assert result.totals[other].amount_paid == 0.0
        assert result.totals[other].door_count == 0
        assert result.totals[other].count == 0


def test_source_labels_map_to_categories(make_row):
    rows = [make_row("Carga", 10, 1, 2), make_row("Transporte Publico", 20, 2, 4), make_row("Vehiculo Liviano", 30, 3, 5)]
    result = run_worker(Chunk(index=0, start=0, end=3), rows, PipelineConfig())
    assert result.totals["Cargo"].appraisal_value == 10.0
    assert result.totals["Public Transport"].amount_paid == 2.0
    assert result.totals["Light Vehicle"].door_count == 5


def test_malformed_row_is_skipped_and_counted(make_row):
    rows = [make_row("Cargo", 10, 1, 2), make_row("Cargo", width=22), make_row("Cargo", 5, 1, 2)]
    result = run_worker(Chunk(index=0, start=0, end=3), rows, PipelineConfig())
    assert result.skipped_rows == 1
    assert result.skipped_row_numbers == (2,)
    assert result.totals["Cargo"].count == 2
    assert result.totals["Cargo"].appraisal_value == 15.0


def test_unrecognized_category_is_excluded(make_row):
    rows = [make_row("Motorhome", 999, 9, 1), make_row("Cargo", 1, 1, 2)]
    result = run_worker(Chunk(index=0, start=0, end=2), rows, PipelineConfig())
    assert result.unrecognized_rows == 1
    assert result.records_aggregated == 1
    assert sum(t.appraisal_value for t in result.totals.values()) == 1.0


def test_abort_policy_turns_parse_error_into_worker_failure(make_row):
    rows = [make_row("Cargo"), make_row("Cargo", "x")]
    with pytest.raises(WorkerFailure) as excinfo:
        run_worker(Chunk(index=2, start=0, end=2), rows, PipelineConfig(on_parse_error="abort"))
    assert excinfo.value.worker_index == 2
    assert excinfo.value.row_number == 2


def test_chunk_beyond_dataset_fails(scenario_rows):
    with pytest.raises(WorkerFailure):
        run_worker(Chunk(index=0, start=2, end=9), scenario_rows, PipelineConfig())


def test_cancelled_worker_stops(scenario_rows):
    event = threading.Event()
    event.set()
    with pytest.raises(WorkerCancelled):
        run_worker(Chunk(index=0, start=0, end=4), scenario_rows, PipelineConfig(), cancel_event=event)


def test_encoded_worker_matches_shared_worker(scenario_rows):
    chunk = Chunk(index=1, start=1, end=4)
    shared = run_worker(chunk, scenario_rows, PipelineConfig())
    encoded = run_encoded_worker(chunk, encode_rows(scenario_rows[1:4]), PipelineConfig())
    assert encoded == shared


def test_encoded_worker_rejects_wrong_row_count(scenario_rows):
    with pytest.raises(WorkerFailure):
        run_encoded_worker(Chunk(index=0, start=0, end=3), encode_rows(scenario_rows[:2]), PipelineConfig())
    with pytest.raises(WorkerFailure):
        run_encoded_worker(Chunk(index=0, start=0, end=1), b"junk", PipelineConfig())
