"""Mapping → output-field synchronization.

``resync`` is a pure function: given the current column mappings and the
prior output configuration it returns the configuration the layout should
have. Callers invoke it after every mapping edit or format change. When
nothing needs to change the prior object itself is returned, so a second
call is a no-op.
"""

from __future__ import annotations

from layoutconv.models.enums import DateFormat, OutputFormat, SemanticType
from layoutconv.models.mapping import ColumnMapping
from layoutconv.models.output import (
    MappedOutputField,
    OutputConfiguration,
    StaticOutputField,
    renumber,
)
from layoutconv.pipeline.formatter import default_padding
from layoutconv.pipeline.normalizer import classify_static

DEFAULT_LENGTH = 10
DEFAULT_DELIMITER = "|"


def _mapped_field_for(
    mapping: ColumnMapping,
    index: int,
    existing: MappedOutputField | None,
    *,
    positional: bool,
    next_order: int,
    default_length: int,
) -> MappedOutputField:
    data_type = mapping.data_type
    length = existing.length if existing and existing.length is not None else mapping.effective_length
    padding_char = existing.padding_char if existing else None
    padding_direction = existing.padding_direction if existing else None

    if positional:
        default_char, default_direction = default_padding(data_type)
        length = length or default_length
        padding_char = padding_char or default_char
        padding_direction = padding_direction or default_direction
    else:
        length = padding_char = padding_direction = None

    date_format = None
    if data_type is SemanticType.DATE:
        date_format = (existing.date_format if existing else None) or DateFormat.YYYYMMDD

    return MappedOutputField(
        id=existing.id if existing else f"mapped-{mapping.mapped_field}-{index}",
        order=existing.order if existing else next_order + index,
        mapped_field=mapping.mapped_field,
        length=length,
        padding_char=padding_char,
        padding_direction=padding_direction,
        date_format=date_format,
    )


def static_positional_attrs(field: StaticOutputField, positional: bool, default_length: int) -> StaticOutputField:
    """Fill or clear the positional attributes of a static field for the active format."""
    if not positional:
        update = {"length": None, "padding_char": None, "padding_direction": None}
    else:
        default_char, default_direction = default_padding(classify_static(field.static_value))
        update = {
            "length": field.length or len(field.static_value) or default_length,
            "padding_char": field.padding_char or default_char,
            "padding_direction": field.padding_direction or default_direction,
        }
    if all(getattr(field, k) == v for k, v in update.items()):
        return field
    return field.model_copy(update=update)


def resync(
    mappings: list[ColumnMapping],
    prior: OutputConfiguration,
    output_format: OutputFormat | None = None,
    *,
    default_length: int = DEFAULT_LENGTH,
    default_delimiter: str = DEFAULT_DELIMITER,
) -> OutputConfiguration:
    """Output configuration consistent with ``mappings`` and ``output_format``.

    Every mapped column gets exactly one output field (existing length, pad
    and date format are kept); output fields whose field is no longer mapped
    are dropped; static fields only have their positional attributes
    recomputed. Orders come back as a dense 0..n-1 sequence.
    """
    fmt = output_format or prior.format
    positional = fmt is OutputFormat.POSITIONAL

    existing: dict[str, MappedOutputField] = {}
    for f in prior.fields:
        if isinstance(f, MappedOutputField) and f.mapped_field not in existing:
            existing[f.mapped_field] = f

    unique: dict[str, MappedOutputField] = {}
    for index, mapping in enumerate(mappings):
        if mapping.mapped_field is None:
            continue
        candidate = _mapped_field_for(
            mapping,
            index,
            existing.get(mapping.mapped_field),
            positional=positional,
            next_order=len(prior.fields),
            default_length=default_length,
        )
        current = unique.get(mapping.mapped_field)
        if current is None or candidate.order < current.order:
            unique[mapping.mapped_field] = candidate

    statics = [
        static_positional_attrs(f, positional, default_length)
        for f in prior.fields
        if isinstance(f, StaticOutputField)
    ]
    fields = renumber([*statics, *unique.values()])

    if fmt is prior.format:
        delimiter = prior.delimiter
    else:
        delimiter = None if positional else (prior.delimiter or default_delimiter)
    updated = OutputConfiguration(format=fmt, delimiter=delimiter, fields=fields)
    if updated == prior:
        return prior
    return updated


def set_output_format(
    mappings: list[ColumnMapping],
    prior: OutputConfiguration,
    output_format: OutputFormat,
    *,
    default_length: int = DEFAULT_LENGTH,
    default_delimiter: str = DEFAULT_DELIMITER,
) -> OutputConfiguration:
    """Switch between positional and delimited output and resynchronize."""
    return resync(
        mappings,
        prior,
        output_format,
        default_length=default_length,
        default_delimiter=default_delimiter,
    )
