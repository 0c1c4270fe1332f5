"""Column mapping, one per input column, created when a dataset is loaded."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from layoutconv.models.enums import LENGTH_TYPES, SemanticType


class ColumnMapping(BaseModel):
    """Mapping from an input column to a catalog field with its semantic type."""

    original_header: str
    mapped_field: Optional[str] = None
    data_type: Optional[SemanticType] = None
    length: Optional[int] = Field(default=None, ge=1)  # only for Alphanumeric/Text
    remove_mask: bool = False

    @property
    def effective_length(self) -> int | None:
        """Column length, meaningful only for text-like types."""
        if self.data_type in LENGTH_TYPES:
            return self.length
        return None


def find_mapping(mappings: list[ColumnMapping], field_id: str) -> ColumnMapping | None:
    """First mapping targeting ``field_id``, if any."""
    for m in mappings:
        if m.mapped_field == field_id:
            return m
    return None
