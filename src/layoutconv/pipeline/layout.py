"""Output field editing — add, edit, move and remove output fields.

Each operation returns a new ``OutputConfiguration`` whose orders are a
dense 0..n-1 sequence.
"""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from layoutconv.core.exceptions import OutputFieldError
from layoutconv.models.enums import DateFormat, PaddingDirection, SemanticType
from layoutconv.models.mapping import ColumnMapping, find_mapping
from layoutconv.models.output import (
    MappedOutputField,
    OutputConfiguration,
    StaticOutputField,
    renumber,
)
from layoutconv.pipeline.formatter import default_padding
from layoutconv.pipeline.sync import DEFAULT_LENGTH

_EDITABLE = frozenset({"length", "order", "padding_char", "padding_direction", "date_format", "mapped_field"})


def _with_fields(config: OutputConfiguration, fields: list) -> OutputConfiguration:
    return config.model_copy(update={"fields": renumber(fields)})


def _require(config: OutputConfiguration, field_id: str) -> MappedOutputField | StaticOutputField:
    field = config.get_field(field_id)
    if field is None:
        raise OutputFieldError(f"Output field {field_id!r} not found")
    return field


def add_mapped_output_field(
    config: OutputConfiguration,
    mappings: list[ColumnMapping],
    *,
    default_length: int = DEFAULT_LENGTH,
) -> OutputConfiguration:
    """Append the first mapped field that is not yet part of the output."""
    used = config.mapped_field_ids()
    mapping = next((m for m in mappings if m.mapped_field and m.mapped_field not in used), None)
    if mapping is None:
        raise OutputFieldError("No mapped field left to add to the output")

    data_type = mapping.data_type
    field = MappedOutputField(
        id=f"mapped-{mapping.mapped_field}-{uuid4().hex[:8]}",
        order=max((f.order for f in config.fields), default=-1) + 1,
        mapped_field=mapping.mapped_field,
        date_format=DateFormat.YYYYMMDD if data_type is SemanticType.DATE else None,
    )
    if config.is_positional:
        char, direction = default_padding(data_type)
        field = field.model_copy(update={
            "length": mapping.effective_length or default_length,
            "padding_char": char,
            "padding_direction": direction,
        })
    return _with_fields(config, [*config.fields, field])


def save_static_field(
    config: OutputConfiguration,
    *,
    field_name: str,
    static_value: str = "",
    length: int | None = None,
    padding_char: str | None = " ",
    padding_direction: PaddingDirection | None = PaddingDirection.RIGHT,
    field_id: str | None = None,
) -> OutputConfiguration:
    """Add a static field, or replace the one with ``field_id`` keeping its order."""
    name = (field_name or "").strip()
    if not name:
        raise OutputFieldError("Static field name cannot be empty")
    if config.is_positional:
        if length is None or length <= 0:
            raise OutputFieldError(f"Static field {name!r}: length must be a positive number for positional output")
        if not padding_char or len(padding_char) != 1:
            raise OutputFieldError(f"Static field {name!r}: padding character must be exactly one character")
    else:
        length = padding_char = padding_direction = None

    if field_id is not None:
        current = _require(config, field_id)
        if not isinstance(current, StaticOutputField):
            raise OutputFieldError(f"Output field {field_id!r} is not a static field")
        order = current.order
    else:
        field_id = f"static-{uuid4().hex[:12]}"
        order = max((f.order for f in config.fields), default=-1) + 1

    field = StaticOutputField(
        id=field_id,
        order=order,
        field_name=name,
        static_value=static_value,
        length=length,
        padding_char=padding_char,
        padding_direction=padding_direction,
    )
    others = [f for f in config.fields if f.id != field_id]
    return _with_fields(config, [*others, field])


def move_output_field(config: OutputConfiguration, field_id: str, position: int) -> OutputConfiguration:
    """Move a field to ``position`` (clamped), shifting the others."""
    field = _require(config, field_id)
    ordered = [f for f in config.ordered_fields() if f.id != field_id]
    position = max(0, min(position, len(ordered)))
    ordered.insert(position, field)
    return _with_fields(config, [f.model_copy(update={"order": i}) for i, f in enumerate(ordered)])


def remove_output_field(config: OutputConfiguration, field_id: str) -> OutputConfiguration:
    _require(config, field_id)
    return _with_fields(config, [f for f in config.fields if f.id != field_id])


def prune_mapped_field(config: OutputConfiguration, mapped_field: str) -> OutputConfiguration:
    """Drop mapped output fields pointing at ``mapped_field`` (catalog removal)."""
    kept = [f for f in config.fields if not (isinstance(f, MappedOutputField) and f.mapped_field == mapped_field)]
    if len(kept) == len(config.fields):
        return config
    return _with_fields(config, kept)


def update_output_field(
    config: OutputConfiguration,
    field_id: str,
    mappings: list[ColumnMapping],
    **changes: Any,
) -> OutputConfiguration:
    """Apply edits to one output field.

    Non-positive lengths clear the length; padding characters keep only
    their first character; re-pointing a mapped field refreshes its date
    format and fills missing positional defaults.
    """
    unknown = set(changes) - _EDITABLE
    if unknown:
        raise OutputFieldError(f"Cannot edit {', '.join(sorted(unknown))} on an output field")

    field = _require(config, field_id)
    update: dict[str, Any] = {}

    if "length" in changes:
        length = changes["length"]
        update["length"] = int(length) if length is not None and int(length) > 0 else None
    if "padding_char" in changes:
        char = changes["padding_char"]
        update["padding_char"] = (str(char)[:1] or None) if char is not None else None
    if "padding_direction" in changes:
        direction = changes["padding_direction"]
        update["padding_direction"] = PaddingDirection(direction) if direction is not None else None
    if "date_format" in changes:
        fmt = changes["date_format"]
        update["date_format"] = DateFormat(fmt) if fmt is not None else None
    if "mapped_field" in changes:
        update.update(_repoint(config, field, changes["mapped_field"], mappings))

    edited = field.model_copy(update=update)
    fields = [edited if f.id == field_id else f for f in config.fields]
    result = _with_fields(config, fields)
    if changes.get("order") is not None:
        result = move_output_field(result, field_id, int(changes["order"]))
    return result


def _repoint(
    config: OutputConfiguration,
    field: MappedOutputField | StaticOutputField,
    target: str,
    mappings: list[ColumnMapping],
) -> dict[str, Any]:
    if not isinstance(field, MappedOutputField):
        raise OutputFieldError(f"Static field {field.id!r} cannot reference a mapped field")
    mapping = find_mapping(mappings, target)
    if mapping is None:
        raise OutputFieldError(f"Field {target!r} is not mapped to any input column")
    if target != field.mapped_field and target in config.mapped_field_ids():
        raise OutputFieldError(f"Field {target!r} is already part of the output")

    update: dict[str, Any] = {"mapped_field": target}
    if mapping.data_type is SemanticType.DATE:
        update["date_format"] = field.date_format or DateFormat.YYYYMMDD
    else:
        update["date_format"] = None
    if config.is_positional:
        char, direction = default_padding(mapping.data_type)
        update["length"] = field.length or mapping.effective_length or DEFAULT_LENGTH
        update["padding_char"] = field.padding_char or char
        update["padding_direction"] = field.padding_direction or direction
    return update
