"""Dataset, extraction result and converted document models."""

from __future__ import annotations

from pathlib import PurePath
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

from layoutconv.models.enums import OutputEncoding, OutputFormat


class Dataset(BaseModel):
    """Headers plus rows keyed by header. Replaced wholesale on every load."""

    headers: list[str] = Field(default_factory=list)
    rows: list[dict[str, str]] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def sample(self, header: str) -> str:
        """First data row's value for ``header`` (empty when there are no rows)."""
        if not self.rows:
            return ""
        return str(self.rows[0].get(header, "") or "")

    def preview(self, limit: int = 5) -> list[dict[str, str]]:
        return self.rows[:limit]


class ExtractionResult(BaseModel):
    """Structured reply of the PDF table extractor.

    Rows may be objects keyed by header or arrays in header order.
    """

    headers: list[str] = Field(default_factory=list)
    rows: list[Union[dict[str, Any], list[Any]]] = Field(default_factory=list)
    error: Optional[str] = None


class ConvertedDocument(BaseModel):
    """Encoded output ready to be offered for download."""

    content: bytes
    output_format: OutputFormat
    encoding: OutputEncoding
    file_name: str
    record_count: int = 0

    @property
    def media_type(self) -> str:
        base = "text/plain" if self.output_format is OutputFormat.POSITIONAL else "text/csv"
        return f"{base};charset={self.encoding.value.lower()}"


def converted_file_name(source_name: str, output_format: OutputFormat) -> str:
    """``"folha.xlsx" -> "folha_convertido.txt"``."""
    stem = PurePath(source_name).stem if source_name else "arquivo"
    return f"{stem or 'arquivo'}_convertido.{output_format.extension}"
