"""Shared test doubles and sample-file builders."""

from __future__ import annotations

import io
from typing import Any

import openpyxl

from layoutconv.model_providers.mock_provider import MockModelProvider
from layoutconv.persistence.memory_backend import MemoryCacheBackend, MemoryFileStore

__all__ = ["MemoryCacheBackend", "MemoryFileStore", "MockModelProvider", "xlsx_bytes", "csv_bytes"]


def xlsx_bytes(rows: list[list[Any]], sheet_title: str = "Folha") -> bytes:
    """Workbook whose first sheet holds ``rows`` (first row = headers)."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = sheet_title
    for row in rows:
        ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def csv_bytes(rows: list[list[str]], delimiter: str = ",", encoding: str = "utf-8") -> bytes:
    return "\r\n".join(delimiter.join(r) for r in rows).encode(encoding)
