import pytest

HEADER = ";".join(f"col{i}" for i in range(1, 24))


def _row(category: str, appraisal="100", paid="1", doors="4", width: int = 23) -> str:
    fields = [f"f{i}" for i in range(1, width + 1)]
    fields[0] = category
    if width >= 6:
        fields[5] = str(appraisal)
    if width >= 11:
        fields[10] = str(paid)
    if width >= 23:
        fields[22] = str(doors)
    return ";".join(fields)


@pytest.fixture
def make_row():
    return _row


@pytest.fixture
def scenario_rows():
    return [
        _row("Light Vehicle", 100, 1, 4),
        _row("Cargo", 200, 2, 2),
        _row("Light Vehicle", 50, 3, 4),
        _row("Public Transport", 10, 1, 6),
    ]


@pytest.fixture
def write_dataset(tmp_path):
    def _write(rows, name: str = "vehiculos.csv"):
        path = tmp_path / name
        path.write_text("\n".join([HEADER, *rows]) + "\n", encoding="utf-8")
        return path

    return _write
