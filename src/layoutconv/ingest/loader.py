"""Route an uploaded file to its decoder and seed the column mappings."""

from __future__ import annotations

from enum import StrEnum
from pathlib import PurePath
from typing import Any

from pydantic import BaseModel, Field

from layoutconv.core.exceptions import ExtractionError, InputError, NoHeadersError, UnsupportedFileTypeError
from layoutconv.core.logging_config import get_logger
from layoutconv.ingest.pdf_extractor import PDF_MEDIA_TYPE, PdfTableExtractor
from layoutconv.ingest.spreadsheet import cell_text, read_csv, read_xlsx
from layoutconv.models.catalog import FieldCatalog
from layoutconv.models.dataset import Dataset, ExtractionResult
from layoutconv.models.mapping import ColumnMapping
from layoutconv.pipeline.inference import build_column_mappings

logger = get_logger(__name__)


class SourceKind(StrEnum):
    XLSX = "xlsx"
    CSV = "csv"
    PDF = "pdf"


_BY_SUFFIX = {
    ".xlsx": SourceKind.XLSX,
    ".xlsm": SourceKind.XLSX,
    ".csv": SourceKind.CSV,
    ".pdf": SourceKind.PDF,
}

_BY_CONTENT_TYPE = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": SourceKind.XLSX,
    "application/vnd.ms-excel.sheet.macroenabled.12": SourceKind.XLSX,
    "text/csv": SourceKind.CSV,
    PDF_MEDIA_TYPE: SourceKind.PDF,
}


class LoadResult(BaseModel):
    """A freshly loaded dataset, its guessed mappings and any non-fatal warnings."""

    source_kind: SourceKind
    dataset: Dataset
    mappings: list[ColumnMapping] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


def detect_kind(file_name: str, content_type: str = "") -> SourceKind:
    """Source kind from the file extension, falling back to the content type."""
    suffix = PurePath(file_name or "").suffix.lower()
    if suffix in _BY_SUFFIX:
        return _BY_SUFFIX[suffix]
    kind = _BY_CONTENT_TYPE.get((content_type or "").split(";")[0].strip().lower())
    if kind is None:
        raise UnsupportedFileTypeError(file_name, content_type)
    return kind


def _cell(value: Any) -> str:
    return cell_text(value) if not isinstance(value, str) else value.strip()


def rows_from_extraction(result: ExtractionResult) -> list[dict[str, str]]:
    """Extracted rows keyed by header; array rows are mapped onto headers by position."""
    rows: list[dict[str, str]] = []
    for raw in result.rows:
        if isinstance(raw, list):
            rows.append({h: _cell(raw[i]) if i < len(raw) else "" for i, h in enumerate(result.headers)})
        else:
            rows.append({h: _cell(raw.get(h)) for h in result.headers})
    return rows


class DatasetLoader:
    """Turns uploaded bytes into a ``LoadResult``.

    Raises ``InputError`` subclasses for unsupported, unreadable or
    header-less files and ``ExtractionError`` when a PDF yields no headers.
    """

    def __init__(self, catalog: FieldCatalog, extractor: PdfTableExtractor | None = None) -> None:
        self._catalog = catalog
        self._extractor = extractor

    async def load(self, file_name: str, content: bytes, content_type: str = "") -> LoadResult:
        kind = detect_kind(file_name, content_type)
        warnings: list[str] = []

        if kind is SourceKind.PDF:
            dataset = await self._load_pdf(content, warnings)
        else:
            dataset = read_xlsx(content) if kind is SourceKind.XLSX else read_csv(content)
            if not dataset.headers:
                raise NoHeadersError(f"Could not extract headers from {file_name!r}")

        mappings = build_column_mappings(dataset, self._catalog)
        logger.info(
            "Dataset loaded",
            extra={
                "file_name": file_name,
                "source_kind": kind.value,
                "columns": len(dataset.headers),
                "rows": len(dataset.rows),
            },
        )
        return LoadResult(source_kind=kind, dataset=dataset, mappings=mappings, warnings=warnings)

    async def _load_pdf(self, content: bytes, warnings: list[str]) -> Dataset:
        if self._extractor is None:
            raise InputError("PDF extraction is not configured")
        result = await self._extractor.extract(content)

        if result.error or not result.rows:
            message = result.error or "No table found in the PDF"
            logger.warning("PDF extraction incomplete", extra={"error": message, "headers": len(result.headers)})
            if not result.headers:
                raise ExtractionError(message)
            warnings.append(message)
            warnings.append("PDF headers were extracted but no data rows were returned")
            return Dataset(headers=list(result.headers), rows=[])

        return Dataset(headers=list(result.headers), rows=rows_from_extraction(result))
