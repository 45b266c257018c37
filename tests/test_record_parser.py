import pytest

from vehiclemap.errors import ParseError
from vehiclemap.record_parser import parse


def test_parse_reads_fixed_positions(make_row):
    rec = parse(make_row("Vehiculo Liviano", "15300.5", "120.25", "5") + "\n", row_number=4)
    assert rec.category == "Vehiculo Liviano"
    assert rec.appraisal_value == 15300.5
    assert rec.amount_paid == 120.25
    assert rec.door_count == 5
    assert rec.row_number == 4


def test_parse_keeps_long_rows(make_row):
    row = make_row("Cargo", "1", "2", "3", width=40).replace("f30", "x" * 20_000)
    rec = parse(row)
    assert rec.door_count == 3


def test_missing_door_column_is_a_parse_error(make_row):
    with pytest.raises(ParseError) as excinfo:
        parse(make_row("Cargo", width=22), row_number=9)
    assert excinfo.value.row_number == 9
    assert "23" in excinfo.value.reason


@pytest.mark.parametrize(
    "appraisal, paid, doors",
    [
        ("abc", "1", "4"),
        ("", "1", "4"),
        ("100", "nan", "4"),
        ("100", "-5", "4"),
        ("100", "1", "4.5"),
        ("100", "1", ""),
    ],
)
def test_invalid_numbers_are_rejected(make_row, appraisal, paid, doors):
    with pytest.raises(ParseError):
        parse(make_row("Cargo", appraisal, paid, doors))


def test_empty_fields_are_not_collapsed(make_row):
    fields = make_row("Cargo", "10", "2", "4").split(";")
    fields[2] = ""
    rec = parse(";".join(fields))
    assert rec.appraisal_value == 10.0
    assert rec.door_count == 4
