"""
CSV encode/decode for citizen records.

Format:
- `;` delimiter, header row first, UTF-8
- columns: id;fullName;snils;inn;birthDate;deathDate
- dates as ISO 8601 (YYYY-MM-DD), nulls as empty fields

Decoding maps columns by header name (case-insensitive), so column order in
uploaded files may differ. Any structural problem fails the whole file.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Iterator
from datetime import date, datetime

from pydantic import ValidationError

from . import schemas

DELIMITER = ";"
HEADER = ("id", "fullName", "snils", "inn", "birthDate", "deathDate")

# header name (lowercased) -> Citizen attribute
_COLUMN_FIELDS = {
    "id": "id",
    "fullname": "full_name",
    "snils": "snils",
    "inn": "inn",
    "birthdate": "birth_date",
    "deathdate": "death_date",
}
_REQUIRED_FIELDS = ("full_name", "snils", "inn", "birth_date", "death_date")

# Invariant-culture DateTime forms written by older exports.
_LEGACY_DATE_FORMATS = ("%m/%d/%Y %H:%M:%S", "%m/%d/%Y")


class CsvDecodeError(ValueError):
    def __init__(self, message: str, *, line: int | None = None) -> None:
        self.line = line
        super().__init__(f"Line {line}: {message}" if line is not None else message)


class _Echo:
    """
    File-like sink for csv.writer that hands each formatted row back.
    """

    def write(self, value: str) -> str:
        return value


def _format_date(value: date | None) -> str:
    return value.isoformat() if value is not None else ""


def _to_row(citizen: schemas.Citizen) -> list[str]:
    return [
        str(citizen.id),
        citizen.full_name,
        citizen.snils or "",
        citizen.inn or "",
        _format_date(citizen.birth_date),
        _format_date(citizen.death_date),
    ]


def encode(citizens: Iterable[schemas.Citizen]) -> Iterator[bytes]:
    """
    Yield the CSV document one encoded row at a time, header first.
    """
    writer = csv.writer(_Echo(), delimiter=DELIMITER, lineterminator="\r\n")
    yield writer.writerow(HEADER).encode("utf-8")
    for citizen in citizens:
        yield writer.writerow(_to_row(citizen)).encode("utf-8")


def _map_header(header: list[str]) -> dict[str, int]:
    positions: dict[str, int] = {}
    for index, name in enumerate(header):
        field = _COLUMN_FIELDS.get(name.strip().lower())
        if field is None:
            continue
        if field in positions:
            raise CsvDecodeError(f"Duplicate column '{name.strip()}'.", line=1)
        positions[field] = index

    missing = [f for f in _REQUIRED_FIELDS if f not in positions]
    if missing:
        names = [h for h in HEADER if _COLUMN_FIELDS[h.lower()] in missing]
        raise CsvDecodeError(f"Missing column(s): {', '.join(names)}.", line=1)
    return positions


def _parse_date(raw: str, *, column: str, line: int) -> date | None:
    raw = raw.strip()
    if not raw:
        return None

    try:
        return date.fromisoformat(raw)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(raw).date()
    except ValueError:
        pass
    for fmt in _LEGACY_DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue

    raise CsvDecodeError(f"Invalid date '{raw}' in column {column}.", line=line)


def _check_id(raw: str, *, line: int) -> None:
    raw = raw.strip()
    if not raw:
        return
    try:
        value = int(raw)
    except ValueError:
        raise CsvDecodeError(f"Invalid id '{raw}'.", line=line) from None
    if not schemas.ID_MIN <= value <= schemas.ID_MAX:
        raise CsvDecodeError(f"Id '{raw}' is out of range.", line=line)


def _parse_row(row: list[str], positions: dict[str, int], *, line: int) -> schemas.Citizen:
    if "id" in positions:
        _check_id(row[positions["id"]], line=line)
    snils = row[positions["snils"]]
    inn = row[positions["inn"]]
    data = {
        "full_name": row[positions["full_name"]],
        "snils": snils or None,
        "inn": inn or None,
        "birth_date": _parse_date(row[positions["birth_date"]], column="birthDate", line=line),
        "death_date": _parse_date(row[positions["death_date"]], column="deathDate", line=line),
    }
    if data["birth_date"] is None:
        raise CsvDecodeError("Column birthDate is required.", line=line)

    try:
        # Identity always comes from storage; any CSV id is dropped.
        return schemas.Citizen.model_validate({**data, "id": schemas.UNASSIGNED_ID})
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ()))
        raise CsvDecodeError(f"Invalid value for {field}: {first.get('msg')}.", line=line) from exc


def decode(data: bytes) -> list[schemas.Citizen]:
    """
    Parse a CSV document into unsaved citizens (id = 0).

    Raises CsvDecodeError on the first malformed line; nothing is returned
    for a partially valid file.
    """
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise CsvDecodeError("File is not valid UTF-8.") from exc

    reader = csv.reader(io.StringIO(text, newline=""), delimiter=DELIMITER)
    try:
        header = next(reader, None)
        if header is None:
            raise CsvDecodeError("CSV file is empty.")
        positions = _map_header(header)

        citizens: list[schemas.Citizen] = []
        for row in reader:
            if not row:
                continue
            if len(row) != len(header):
                raise CsvDecodeError(
                    f"Expected {len(header)} fields, got {len(row)}.",
                    line=reader.line_num,
                )
            citizens.append(_parse_row(row, positions, line=reader.line_num))
    except csv.Error as exc:
        raise CsvDecodeError(str(exc), line=reader.line_num) from exc

    return citizens
