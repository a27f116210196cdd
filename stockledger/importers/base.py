"""Base class for CSV importers.

Subclasses define the expected columns and implement ``_process_row``;
reading, header handling and cell parsing are shared here. Parse helpers
return None for unusable cells so callers decide whether a row is
malformed or skipped.
"""

from __future__ import annotations

import csv
import datetime
import os
import tempfile
from collections.abc import Generator, Iterable, Mapping, Sequence
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Generic, TypeVar

from stockledger.runtime import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# Tried in order after ISO-8601; operator exports are day-first.
DATE_FORMATS = ("%d/%m/%Y %H:%M:%S", "%d/%m/%Y %H:%M", "%d/%m/%Y")


def _decimal_point(text: str) -> str:
    """Rewrite grouping and decimal separators to plain ``1234.5`` form.

    With both separators present the rightmost one is the decimal point.
    A single comma is a decimal comma; repeated ones group thousands.
    """
    comma, dot = text.rfind(","), text.rfind(".")
    if comma >= 0 and dot >= 0:
        grouping, point = (".", ",") if comma > dot else (",", ".")
        return text.replace(grouping, "").replace(point, ".")
    if text.count(",") == 1:
        return text.replace(",", ".")
    if text.count(",") > 1 or text.count(".") > 1:
        return text.replace(",", "").replace(".", "")
    return text


def parse_decimal(value: str | None) -> Decimal | None:
    if value is None:
        return None
    cleaned = _decimal_point(value.strip().replace("\u00a0", "").replace(" ", ""))
    if not cleaned:
        return None
    try:
        number = Decimal(cleaned)
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def parse_int(value: str | None) -> int | None:
    number = parse_decimal(value)
    if number is None or number != number.to_integral_value():
        return None
    return int(number)


def to_utc_naive(value: datetime.datetime) -> datetime.datetime:
    """Aware datetimes are converted to UTC; naive ones are assumed to be UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)


def parse_datetime(value: str | None) -> datetime.datetime | None:
    """Parse ISO-8601 or day-first dates into a UTC-naive datetime."""
    if value is None or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return to_utc_naive(datetime.datetime.fromisoformat(text))
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def parse_date(value: str | None) -> datetime.date | None:
    parsed = parse_datetime(value)
    return parsed.date() if parsed is not None else None


def format_datetime(value: datetime.datetime | None) -> str:
    return value.isoformat() if value is not None else ""


class BaseCsvImporter(Generic[T]):
    """Base class for header-based CSV importers.

    Subclasses should define:
        columns: tuple[str, ...] - header names written on export
        required_columns: tuple[str, ...] - headers that must be present

    And implement:
        _process_row(row, index) -> T | None
    """

    columns: tuple[str, ...] = ()
    required_columns: tuple[str, ...] = ()
    encoding: str = "utf-8-sig"
    delimiter: str = ","

    def read_rows(self, path: Path) -> Generator[dict[str, str], None, None]:
        """Yield rows keyed by stripped header name."""
        with open(path, encoding=self.encoding, newline="") as file:
            reader = csv.DictReader(file, delimiter=self.delimiter)
            headers = [name.strip() for name in reader.fieldnames or []]
            missing = [name for name in self.required_columns if name not in headers]
            if missing:
                raise ValueError(f"{path}: missing required column(s): {', '.join(missing)}")
            for raw in reader:
                yield {(key or "").strip(): (value or "") for key, value in raw.items()}

    def _amount(self, row: Mapping[str, str], column: str, index: int) -> Decimal | None:
        """Parse a money cell, warning when a non-blank value cannot be read."""
        raw = row.get(column, "")
        value = parse_decimal(raw)
        if value is None and raw.strip():
            logger.warning("Row %d: unreadable %s %r", index + 1, column, raw)
        return value

    def _process_row(self, row: Mapping[str, str], index: int) -> T | None:
        raise NotImplementedError

    def extract(self, path: Path) -> list[T]:
        """Parse every row; rows the subclass rejects are skipped."""
        entries: list[T] = []
        skipped = 0
        for index, row in enumerate(self.read_rows(path)):
            if not any(value.strip() for value in row.values()):
                continue
            entry = self._process_row(row, index)
            if entry is None:
                skipped += 1
                continue
            entries.append(entry)
        if skipped:
            logger.warning("Skipped %d unreadable row(s) in %s", skipped, path)
        logger.debug("Read %d row(s) from %s", len(entries), path)
        return entries


def write_csv_atomic(path: Path, columns: Sequence[str], rows: Iterable[Mapping[str, str]]) -> None:
    """Write a CSV file so readers never observe a half-written file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as file:
            writer = csv.DictWriter(file, fieldnames=list(columns))
            writer.writeheader()
            for row in rows:
                writer.writerow(row)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
