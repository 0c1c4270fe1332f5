"""Spreadsheet decoding: the first sheet of an XLSX workbook, or a CSV file.

The first row holds the headers; every cell arrives as a display string
(dates as DD/MM/YYYY, floats in positional notation without a trailing
".0"); rows whose cells are all blank are skipped.
"""

from __future__ import annotations

import csv
import io
import re
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Iterable

import openpyxl

from layoutconv.core.exceptions import InputError
from layoutconv.models.dataset import Dataset

_CSV_DELIMITERS = ",;|\t"


def cell_text(value: Any) -> str:
    """Display string for one cell value."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.strftime("%d/%m/%Y")
        return value.strftime("%d/%m/%Y %H:%M:%S")
    if isinstance(value, date):
        return value.strftime("%d/%m/%Y")
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return format(Decimal(repr(value)), "f")
    return str(value).strip()


def header_text(value: Any) -> str:
    return re.sub(r"\s+", " ", cell_text(value)).strip()


def unique_headers(raw: Iterable[Any]) -> list[str]:
    """Header cells as unique strings; blanks become ``Column_<n>``, repeats get ``_<k>``."""
    headers: list[str] = []
    for index, value in enumerate(raw):
        key = header_text(value) or f"Column_{index + 1}"
        base, count = key, 0
        while key in headers:
            count += 1
            key = f"{base}_{count}"
        headers.append(key)
    return headers


def _width(header_row: list[Any]) -> int:
    """Columns up to the last non-blank header cell."""
    width = 0
    for index, value in enumerate(header_row):
        if header_text(value):
            width = index + 1
    return width


def rows_to_dataset(table: list[list[Any]]) -> Dataset:
    """First row as headers, remaining non-blank rows keyed by header."""
    if not table:
        return Dataset()
    width = _width(table[0])
    if width == 0:
        return Dataset()
    headers = unique_headers(table[0][:width])
    rows: list[dict[str, str]] = []
    for raw in table[1:]:
        values = [cell_text(raw[i]) if i < len(raw) else "" for i in range(width)]
        if not any(values):
            continue
        rows.append(dict(zip(headers, values)))
    return Dataset(headers=headers, rows=rows)


def read_xlsx(content: bytes) -> Dataset:
    """Decode the first worksheet of an XLSX/XLSM workbook."""
    try:
        wb = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as exc:
        raise InputError(f"Could not read the workbook: {exc}") from exc
    try:
        sheet = wb.worksheets[0]
        table = [list(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        wb.close()
    return rows_to_dataset(table)


def _decode(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("cp1252", errors="replace")


def sniff_delimiter(text: str) -> str:
    sample = "\n".join(text.splitlines()[:20])
    try:
        return csv.Sniffer().sniff(sample, delimiters=_CSV_DELIMITERS).delimiter
    except csv.Error:
        return ","


def read_csv(content: bytes) -> Dataset:
    """Decode a CSV file, sniffing its delimiter (``,``, ``;``, ``|`` or tab)."""
    text = _decode(content)
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=sniff_delimiter(text))
    return rows_to_dataset([list(row) for row in reader])
