"""Convert a spreadsheet or PDF into a positional or delimited flat file.

Usage:
    python scripts/convert_file.py --input folha.xlsx --layout layout.json
    python scripts/convert_file.py --input folha.csv --layout layout.json --encoding ISO-8859-1 --output out.txt

The layout file is JSON:

    {
      "format": "positional",
      "delimiter": "|",
      "encoding": "UTF-8",
      "custom_fields": ["Data Admissão"],
      "mappings": [{"header": "Salario", "mapped_field": "margem_bruta", "data_type": "Accounting"}],
      "fields": [
        {"mapped_field": "nome", "length": 20},
        {"field_name": "tipo", "static_value": "A", "length": 1},
        {"mapped_field": "cpf", "length": 11}
      ]
    }

When "fields" is present it is the complete, ordered output layout; when it
is absent every mapped column is emitted with its defaults.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from layoutconv.core.config import AppSettings
from layoutconv.core.exceptions import LayoutConvError, SessionError
from layoutconv.core.logging_config import configure_logging
from layoutconv.ingest.loader import DatasetLoader
from layoutconv.ingest.pdf_extractor import create_pdf_extractor
from layoutconv.models.dataset import ConvertedDocument
from layoutconv.models.enums import DateFormat, OutputEncoding, OutputFormat, PaddingDirection, SemanticType
from layoutconv.models.output import MappedOutputField
from layoutconv.persistence import create_cache
from layoutconv.session import ConversionSession


class MappingOverride(BaseModel):
    """Edit for the column whose header is ``header``; unset keys keep the guess."""

    header: str
    mapped_field: Optional[str] = None
    data_type: Optional[SemanticType] = None
    length: Optional[int] = None
    remove_mask: Optional[bool] = None


class FieldEntry(BaseModel):
    """One output column: mapped when ``mapped_field`` is set, static otherwise."""

    mapped_field: Optional[str] = None
    field_name: Optional[str] = None
    static_value: str = ""
    length: Optional[int] = None
    padding_char: Optional[str] = None
    padding_direction: Optional[PaddingDirection] = None
    date_format: Optional[DateFormat] = None


class LayoutFile(BaseModel):
    format: OutputFormat = OutputFormat.POSITIONAL
    delimiter: Optional[str] = None
    encoding: Optional[OutputEncoding] = None
    custom_fields: list[str] = Field(default_factory=list)
    mappings: list[MappingOverride] = Field(default_factory=list)
    fields: Optional[list[FieldEntry]] = None


def apply_mappings(session: ConversionSession, overrides: list[MappingOverride]) -> None:
    headers = [m.original_header for m in session.mappings]
    for override in overrides:
        if override.header not in headers:
            raise SessionError(f"Layout references unknown column {override.header!r}")
        changes = override.model_dump(exclude_unset=True, exclude={"header"})
        session.update_mapping(headers.index(override.header), **changes)


def apply_fields(session: ConversionSession, entries: list[FieldEntry]) -> None:
    """Make the output layout exactly ``entries``, in order."""
    ordered_ids: list[str] = []
    for entry in entries:
        if entry.mapped_field is not None:
            field = next(
                (f for f in session.output.fields
                 if isinstance(f, MappedOutputField) and f.mapped_field == entry.mapped_field),
                None,
            )
            if field is None:
                raise SessionError(f"Field {entry.mapped_field!r} is not mapped to any column")
            changes = entry.model_dump(
                exclude_unset=True, exclude={"mapped_field", "field_name", "static_value"},
            )
            if changes:
                session.update_output_field(field.id, **changes)
            ordered_ids.append(field.id)
        else:
            before = {f.id for f in session.output.fields}
            positional = session.output.is_positional
            session.save_static_field(
                field_name=entry.field_name or "",
                static_value=entry.static_value,
                length=entry.length or (len(entry.static_value) if positional else None),
                padding_char=entry.padding_char or " ",
                padding_direction=entry.padding_direction or PaddingDirection.RIGHT,
            )
            ordered_ids.extend(f.id for f in session.output.fields if f.id not in before)

    for field in list(session.output.fields):
        if field.id not in ordered_ids:
            session.remove_output_field(field.id)
    for position, field_id in enumerate(ordered_ids):
        session.move_output_field(field_id, position)


async def run(input_path: Path, layout: LayoutFile, settings: AppSettings,
              encoding: OutputEncoding | None = None) -> ConvertedDocument:
    session = ConversionSession(config=settings.conversion)
    extractor = create_pdf_extractor(settings.extraction, create_cache(settings))
    loader = DatasetLoader(session.catalog, extractor)

    for name in layout.custom_fields:
        session.add_catalog_field(name)
    result = await session.load(loader, input_path.name, input_path.read_bytes())
    for warning in result.warnings:
        print(f"  Warning: {warning}", file=sys.stderr)

    session.set_output_format(layout.format)
    if layout.delimiter and not session.output.is_positional:
        session.set_delimiter(layout.delimiter)
    apply_mappings(session, layout.mappings)
    if layout.fields is not None:
        apply_fields(session, layout.fields)

    return session.convert(encoding or layout.encoding)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Convert a spreadsheet or PDF into a flat file")
    parser.add_argument("--input", required=True, type=Path, help="XLSX, CSV or PDF file to convert")
    parser.add_argument("--layout", required=True, type=Path, help="JSON layout file")
    parser.add_argument("--encoding", default=None, choices=[e.value for e in OutputEncoding],
                        help="Output character encoding (overrides the layout)")
    parser.add_argument("--output", default=None, type=Path,
                        help="Output path (default: <input stem>_convertido.<txt|csv> next to the input)")
    args = parser.parse_args(argv)

    settings = AppSettings()
    configure_logging(level=settings.log_level, stream=sys.stderr)

    try:
        layout = LayoutFile.model_validate_json(args.layout.read_text(encoding="utf-8"))
        encoding = OutputEncoding(args.encoding) if args.encoding else None
        document = asyncio.run(run(args.input, layout, settings, encoding))
    except (LayoutConvError, ValidationError) as exc:
        print(f"Conversion failed: {exc}", file=sys.stderr)
        return 1

    output = args.output or args.input.with_name(document.file_name)
    output.write_bytes(document.content)
    print(f"Wrote {document.record_count} records to {output} ({document.encoding.value})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
