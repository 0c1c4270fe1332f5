"""Conversion session — the single owner of one upload's mutable state.

A session holds the dataset, its column mappings, the output configuration
and the last converted document. Every mapping edit or format change is
followed by ``resync`` so the output layout never references a field that
is no longer mapped. Any configuration change discards the converted
document; it has to be converted again before download.
"""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from layoutconv.core.config import ConversionConfig
from layoutconv.core.exceptions import (
    CatalogError,
    ConfigurationIssue,
    ExtractionError,
    InputError,
    SessionError,
    SessionNotFoundError,
)
from layoutconv.core.logging_config import get_logger
from layoutconv.core.protocols import IFileStore
from layoutconv.ingest.loader import DatasetLoader, LoadResult
from layoutconv.models.catalog import FieldCatalog, PredefinedField
from layoutconv.models.dataset import ConvertedDocument, Dataset, converted_file_name
from layoutconv.models.enums import LENGTH_TYPES, OutputEncoding, OutputFormat, PaddingDirection, SemanticType
from layoutconv.models.mapping import ColumnMapping
from layoutconv.models.output import OutputConfiguration
from layoutconv.pipeline import layout, sync
from layoutconv.pipeline.assembler import convert
from layoutconv.pipeline.inference import default_remove_mask, guess_type
from layoutconv.pipeline.validation import collect_issues

logger = get_logger(__name__)

_MAPPING_KEYS = frozenset({"mapped_field", "data_type", "length", "remove_mask"})


class ConversionSession:
    """State of one conversion, from upload to download."""

    def __init__(
        self,
        catalog: FieldCatalog | None = None,
        config: ConversionConfig | None = None,
        session_id: str | None = None,
    ) -> None:
        self.id = session_id or uuid4().hex
        self.catalog = catalog if catalog is not None else FieldCatalog()
        self._config = config or ConversionConfig()
        self.reset()

    # -- lifecycle ---------------------------------------------------------

    def reset(self) -> None:
        """Back to the pre-upload state. Custom catalog fields are kept."""
        self.file_name: str | None = None
        self.dataset: Dataset | None = None
        self.mappings: list[ColumnMapping] = []
        self.output = OutputConfiguration()
        self.encoding = OutputEncoding(self._config.default_encoding)
        self.warnings: list[str] = []
        self.document: ConvertedDocument | None = None

    async def load(
        self, loader: DatasetLoader, file_name: str, content: bytes, content_type: str = "",
    ) -> LoadResult:
        """Replace the dataset with a new upload. Input errors reset the session."""
        try:
            result = await loader.load(file_name, content, content_type)
        except (InputError, ExtractionError):
            self.reset()
            raise

        fmt, delimiter = self.output.format, self.output.delimiter
        self.reset()
        self.file_name = file_name
        self.dataset = result.dataset
        self.mappings = result.mappings
        self.warnings = list(result.warnings)
        self.output = OutputConfiguration(format=fmt, delimiter=delimiter)
        self._resync()
        return result

    @property
    def is_loaded(self) -> bool:
        return self.dataset is not None

    def _require_dataset(self) -> Dataset:
        if self.dataset is None:
            raise SessionError("Upload a file before configuring the conversion")
        return self.dataset

    def _resync(self) -> None:
        self.output = sync.resync(
            self.mappings,
            self.output,
            default_length=self._config.default_length,
            default_delimiter=self._config.default_delimiter,
        )

    def _set_output(self, output: OutputConfiguration) -> None:
        self.output = output
        self.document = None

    # -- mappings ----------------------------------------------------------

    def update_mapping(self, index: int, **changes: Any) -> ColumnMapping:
        """Edit one column mapping and resynchronize the output layout.

        Changing the type clears the length for non-text types and resets
        mask removal to the type default. Mapping an untyped column guesses
        the type from the catalog field's name and the column's sample.
        """
        dataset = self._require_dataset()
        unknown = set(changes) - _MAPPING_KEYS
        if unknown:
            raise SessionError(f"Cannot edit {', '.join(sorted(unknown))} on a column mapping")
        if not 0 <= index < len(self.mappings):
            raise SessionError(f"No column mapping at index {index}")

        mapping = self.mappings[index]
        update: dict[str, Any] = {}

        if "mapped_field" in changes:
            target = changes["mapped_field"] or None
            if target is not None and target not in self.catalog:
                raise CatalogError(f"Unknown field {target!r}")
            update["mapped_field"] = target
            if target is not None and mapping.data_type is None:
                field = self.catalog.get(target)
                guessed = guess_type(field.name if field else mapping.original_header,
                                     dataset.sample(mapping.original_header))
                update["data_type"] = guessed
                update["remove_mask"] = default_remove_mask(target, guessed)

        if "data_type" in changes:
            data_type = SemanticType(changes["data_type"]) if changes["data_type"] else None
            update["data_type"] = data_type
            if data_type not in LENGTH_TYPES:
                update["length"] = None
            update["remove_mask"] = default_remove_mask(None, data_type)

        if "length" in changes:
            length = changes["length"]
            update["length"] = int(length) if length is not None and int(length) > 0 else None

        if "remove_mask" in changes:
            update["remove_mask"] = bool(changes["remove_mask"])

        edited = mapping.model_copy(update=update)
        self.mappings = [edited if i == index else m for i, m in enumerate(self.mappings)]
        self.document = None
        self._resync()
        return edited

    # -- output configuration ---------------------------------------------

    def set_output_format(self, output_format: OutputFormat) -> OutputConfiguration:
        self._set_output(sync.set_output_format(
            self.mappings,
            self.output,
            OutputFormat(output_format),
            default_length=self._config.default_length,
            default_delimiter=self._config.default_delimiter,
        ))
        return self.output

    def set_delimiter(self, delimiter: str) -> OutputConfiguration:
        if self.output.is_positional:
            raise SessionError("A delimiter only applies to delimited output")
        self._set_output(self.output.model_copy(update={"delimiter": delimiter or None}))
        return self.output

    def set_encoding(self, encoding: OutputEncoding | str) -> OutputEncoding:
        self.encoding = OutputEncoding(encoding)
        self.document = None
        return self.encoding

    def add_mapped_output_field(self) -> OutputConfiguration:
        self._set_output(layout.add_mapped_output_field(
            self.output, self.mappings, default_length=self._config.default_length,
        ))
        return self.output

    def save_static_field(
        self,
        *,
        field_name: str,
        static_value: str = "",
        length: int | None = None,
        padding_char: str | None = " ",
        padding_direction: PaddingDirection | None = PaddingDirection.RIGHT,
        field_id: str | None = None,
    ) -> OutputConfiguration:
        self._set_output(layout.save_static_field(
            self.output,
            field_name=field_name,
            static_value=static_value,
            length=length,
            padding_char=padding_char,
            padding_direction=padding_direction,
            field_id=field_id,
        ))
        return self.output

    def update_output_field(self, field_id: str, **changes: Any) -> OutputConfiguration:
        self._set_output(layout.update_output_field(self.output, field_id, self.mappings, **changes))
        return self.output

    def move_output_field(self, field_id: str, position: int) -> OutputConfiguration:
        self._set_output(layout.move_output_field(self.output, field_id, position))
        return self.output

    def remove_output_field(self, field_id: str) -> OutputConfiguration:
        self._set_output(layout.remove_output_field(self.output, field_id))
        return self.output

    # -- catalog -----------------------------------------------------------

    def add_catalog_field(self, name: str) -> PredefinedField:
        field = self.catalog.add(name)
        logger.info("Catalog field added", extra={"field_id": field.id})
        return field

    def remove_catalog_field(self, field_id: str) -> PredefinedField | None:
        """Remove a custom field, unmapping every column that used it."""
        field = self.catalog.remove(field_id)
        if field is None:
            return None
        self.forget_field(field_id)
        logger.info("Catalog field removed", extra={"field_id": field_id})
        return field

    def forget_field(self, field_id: str) -> None:
        """Unmap every column targeting ``field_id`` and drop its output field."""
        self.mappings = [
            m.model_copy(update={"mapped_field": None}) if m.mapped_field == field_id else m
            for m in self.mappings
        ]
        self._set_output(layout.prune_mapped_field(self.output, field_id))
        self._resync()

    # -- conversion --------------------------------------------------------

    def issues(self) -> list[ConfigurationIssue]:
        return collect_issues(self.dataset, self.mappings, self.output, self.catalog)

    def convert(self, encoding: OutputEncoding | str | None = None) -> ConvertedDocument:
        """Validate and convert; a failed validation leaves no document behind."""
        if encoding is not None:
            self.set_encoding(encoding)
        self.document = None
        self.document = convert(
            self._require_dataset(),
            self.mappings,
            self.output,
            self.encoding,
            source_name=self.file_name or "",
            catalog=self.catalog,
        )
        return self.document

    def preview(self, limit: int = 5) -> list[dict[str, str]]:
        return self.dataset.preview(limit) if self.dataset is not None else []

    @property
    def download_name(self) -> str:
        return converted_file_name(self.file_name or "", self.output.format)

    def require_document(self) -> ConvertedDocument:
        if self.document is None:
            raise SessionError("Convert the file before downloading it")
        return self.document

    def publish(self, file_store: IFileStore, prefix: str = "converted") -> str:
        """Write the converted document to ``<prefix>/<file_name>``."""
        document = self.require_document()
        path = f"{prefix.strip('/')}/{document.file_name}" if prefix.strip("/") else document.file_name
        stored = file_store.write(path, document.content, content_type=document.media_type)
        logger.info("Converted document published", extra={"path": stored, "bytes": len(document.content)})
        return stored


class SessionRegistry:
    """In-process registry of conversion sessions sharing one field catalog."""

    def __init__(self, catalog: FieldCatalog | None = None, config: ConversionConfig | None = None) -> None:
        self.catalog = catalog if catalog is not None else FieldCatalog()
        self._config = config or ConversionConfig()
        self._sessions: dict[str, ConversionSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self) -> ConversionSession:
        session = ConversionSession(self.catalog, self._config)
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> ConversionSession:
        try:
            return self._sessions[session_id]
        except KeyError as exc:
            raise SessionNotFoundError(session_id) from exc

    def discard(self, session_id: str) -> None:
        self.get(session_id)
        del self._sessions[session_id]

    def remove_catalog_field(self, field_id: str) -> PredefinedField | None:
        """Remove a custom field from the shared catalog and from every session."""
        field = self.catalog.remove(field_id)
        if field is None:
            return None
        for session in self._sessions.values():
            session.forget_field(field_id)
        logger.info("Catalog field removed", extra={"field_id": field_id})
        return field
