"""Output assembly — rows × ordered output fields → encoded document.

Per cell: resolve the raw value, trim it, remove its mask when the mapping
asks for it, normalize it for its semantic type and render it for the
active output format. Lines end in "\\n"; the document carries no trailing
newline.
"""

from __future__ import annotations

from layoutconv.core.logging_config import get_logger
from layoutconv.models.catalog import FieldCatalog
from layoutconv.models.dataset import ConvertedDocument, Dataset, converted_file_name
from layoutconv.models.enums import OutputEncoding, SemanticType
from layoutconv.models.mapping import ColumnMapping, find_mapping
from layoutconv.models.output import MappedOutputField, OutputConfiguration, StaticOutputField
from layoutconv.pipeline.formatter import default_padding, format_positional, join_delimited
from layoutconv.pipeline.masks import remove_mask
from layoutconv.pipeline.normalizer import classify_static, normalize_value
from layoutconv.pipeline.validation import ensure_convertible

logger = get_logger(__name__)

LINE_TERMINATOR = "\n"


class OutputAssembler:
    """Renders a dataset under one output configuration.

    One assembler serves one conversion; it keeps no state between runs.
    """

    def __init__(self, mappings: list[ColumnMapping], config: OutputConfiguration) -> None:
        self._mappings = mappings
        self._config = config
        self._fields = config.ordered_fields()

    def resolve(
        self, row: dict[str, str], field: MappedOutputField | StaticOutputField,
    ) -> tuple[str, SemanticType | None]:
        """Normalized value of one cell and the type that governs its padding."""
        if isinstance(field, StaticOutputField):
            return field.static_value or "", classify_static(field.static_value)

        mapping = find_mapping(self._mappings, field.mapped_field)
        if mapping is None or not mapping.original_header:
            logger.warning(
                "No column mapping for output field; emitting empty value",
                extra={"field_id": field.mapped_field},
            )
            return "", None
        if mapping.original_header not in row:
            logger.warning(
                "Row has no value for mapped column; emitting empty value",
                extra={"field_id": field.mapped_field, "header": mapping.original_header},
            )

        raw = row.get(mapping.original_header)
        value = "" if raw is None else str(raw).strip()
        data_type = mapping.data_type
        cleaned = remove_mask(value, data_type) if mapping.remove_mask and value else value
        normalized = normalize_value(
            cleaned,
            data_type,
            field.date_format,
            original=value,
            field_id=field.mapped_field,
        )
        return normalized, data_type

    def render_line(self, row: dict[str, str]) -> str:
        resolved = [(field, *self.resolve(row, field)) for field in self._fields]
        if not self._config.is_positional:
            return join_delimited([value for _, value, _ in resolved], self._config.delimiter or "")

        cells: list[str] = []
        for field, value, data_type in resolved:
            default_char, default_direction = default_padding(data_type)
            cells.append(format_positional(
                value,
                field.length or 0,
                field.padding_char or default_char,
                field.padding_direction or default_direction,
                field_id=field.label,
            ))
        return "".join(cells)

    def render(self, dataset: Dataset) -> str:
        """Whole document as text; only the final newline is omitted."""
        return LINE_TERMINATOR.join(self.render_line(row) for row in dataset.rows)


def encode_document(text: str, encoding: OutputEncoding) -> bytes:
    """Encode into the output charset; unencodable characters become "?"."""
    try:
        return text.encode(encoding.codec)
    except UnicodeEncodeError as exc:
        logger.warning(
            "Characters not representable in output encoding were replaced",
            extra={"encoding": encoding.value, "position": exc.start},
        )
        return text.encode(encoding.codec, errors="replace")


def convert(
    dataset: Dataset,
    mappings: list[ColumnMapping],
    config: OutputConfiguration,
    encoding: OutputEncoding = OutputEncoding.UTF_8,
    *,
    source_name: str = "",
    catalog: FieldCatalog | None = None,
) -> ConvertedDocument:
    """Validate, render and encode. Raises ConfigurationError before any output."""
    ensure_convertible(dataset, mappings, config, catalog)
    text = OutputAssembler(mappings, config).render(dataset)
    document = ConvertedDocument(
        content=encode_document(text, encoding),
        output_format=config.format,
        encoding=encoding,
        file_name=converted_file_name(source_name, config.format),
        record_count=len(dataset.rows),
    )
    logger.info(
        "Conversion completed",
        extra={
            "records": document.record_count,
            "format": config.format.value,
            "encoding": encoding.value,
            "bytes": len(document.content),
        },
    )
    return document
