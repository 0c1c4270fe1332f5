"""layoutconv exception hierarchy."""

from __future__ import annotations

from pydantic import BaseModel


class LayoutConvError(Exception):
    """Base exception for all layoutconv errors."""


class InputError(LayoutConvError):
    """The uploaded file cannot be turned into a dataset."""


class UnsupportedFileTypeError(InputError):
    """File type is not a supported spreadsheet or PDF."""

    def __init__(self, file_name: str, content_type: str = "") -> None:
        self.file_name = file_name
        self.content_type = content_type
        super().__init__(
            f"Unsupported file type for {file_name!r} ({content_type or 'unknown'}). "
            "Use an XLSX, CSV or PDF file."
        )


class NoHeadersError(InputError):
    """No header row could be extracted from the file."""


class ExtractionError(LayoutConvError):
    """AI table extraction returned no usable headers."""


class ConfigurationIssue(BaseModel):
    """A single problem that blocks conversion."""

    message: str
    field_id: str | None = None


class ConfigurationError(LayoutConvError):
    """Output configuration is not valid for conversion."""

    def __init__(self, issues: list[ConfigurationIssue]) -> None:
        self.issues = issues
        detail = "; ".join(i.message for i in issues) or "invalid configuration"
        super().__init__(detail)


class CatalogError(LayoutConvError):
    """Field catalog operation rejected."""


class DuplicateFieldError(CatalogError):
    """A field with the derived id already exists."""

    def __init__(self, field_id: str) -> None:
        self.field_id = field_id
        super().__init__(f"A field with id {field_id!r} already exists")


class CoreFieldError(CatalogError):
    """Core catalog fields cannot be removed."""

    def __init__(self, field_id: str) -> None:
        self.field_id = field_id
        super().__init__(f"Core field {field_id!r} cannot be removed")


class OutputFieldError(LayoutConvError):
    """Output field edit rejected."""


class SessionError(LayoutConvError):
    """Session is not in a state that allows the operation."""


class CacheError(LayoutConvError):
    """Cache backend operation failed."""


class FileStoreError(LayoutConvError):
    """File store operation failed."""


class SessionNotFoundError(SessionError):
    """No conversion session with the given id."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Conversion session {session_id!r} not found")
