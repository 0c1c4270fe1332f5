"""Output layout models: mapped/static output fields and the output configuration.

Output fields are a tagged union on ``kind``: a mapped field references a
catalog field id through a column mapping, a static field carries a literal.
Neither variant can carry the other's payload.
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from layoutconv.models.enums import DateFormat, OutputFormat, PaddingDirection


class _OutputFieldBase(BaseModel):
    id: str
    order: int = Field(default=0, ge=0)
    length: Optional[int] = Field(default=None, ge=1)  # positional only
    padding_char: Optional[str] = None  # positional only
    padding_direction: Optional[PaddingDirection] = None  # positional only
    date_format: Optional[DateFormat] = None  # Date-typed mapped fields only

    @field_validator("padding_char")
    @classmethod
    def _single_char(cls, v: str | None) -> str | None:
        if v is not None and len(v) != 1:
            raise ValueError("padding_char must be exactly one character")
        return v


class MappedOutputField(_OutputFieldBase):
    """Output column whose value comes from a mapped input column."""

    kind: Literal["mapped"] = "mapped"
    mapped_field: str

    @property
    def label(self) -> str:
        return self.mapped_field


class StaticOutputField(_OutputFieldBase):
    """Output column holding the same literal on every line."""

    kind: Literal["static"] = "static"
    field_name: str
    static_value: str = ""

    @property
    def label(self) -> str:
        return self.field_name


OutputField = Annotated[
    Union[MappedOutputField, StaticOutputField],
    Field(discriminator="kind"),
]


class OutputConfiguration(BaseModel):
    """Output format, delimiter and the ordered list of output fields."""

    format: OutputFormat = OutputFormat.POSITIONAL
    delimiter: Optional[str] = None  # delimited only
    fields: list[OutputField] = Field(default_factory=list)

    @property
    def is_positional(self) -> bool:
        return self.format is OutputFormat.POSITIONAL

    def ordered_fields(self) -> list[MappedOutputField | StaticOutputField]:
        return sorted(self.fields, key=lambda f: f.order)

    def get_field(self, field_id: str) -> MappedOutputField | StaticOutputField | None:
        for f in self.fields:
            if f.id == field_id:
                return f
        return None

    def mapped_field_ids(self) -> set[str]:
        return {f.mapped_field for f in self.fields if isinstance(f, MappedOutputField)}


def renumber(
    fields: list[MappedOutputField | StaticOutputField],
) -> list[MappedOutputField | StaticOutputField]:
    """Sort by prior order (stable) and reassign a dense 0..n-1 sequence."""
    ordered = sorted(fields, key=lambda f: f.order)
    return [f if f.order == idx else f.model_copy(update={"order": idx}) for idx, f in enumerate(ordered)]
