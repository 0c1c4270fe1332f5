"""Field rendering for positional (fixed-width) and delimited output."""

from __future__ import annotations

from layoutconv.core.logging_config import get_logger
from layoutconv.models.enums import DIGIT_TYPES, PaddingDirection, SemanticType

logger = get_logger(__name__)

_QUOTE = '"'


def default_padding(semantic_type: SemanticType | None) -> tuple[str, PaddingDirection]:
    """Digit-family types pad left with "0"; everything else pads right with spaces."""
    if semantic_type in DIGIT_TYPES:
        return "0", PaddingDirection.LEFT
    return " ", PaddingDirection.RIGHT


def format_positional(
    value: str,
    length: int,
    padding_char: str = " ",
    padding_direction: PaddingDirection = PaddingDirection.RIGHT,
    *,
    field_id: str | None = None,
) -> str:
    """Pad or truncate ``value`` to exactly ``length`` characters.

    Overlong values keep their leftmost ``length`` characters.
    """
    text = "" if value is None else str(value)
    if length <= 0:
        return ""
    if len(text) > length:
        logger.warning(
            "Truncating value to fit positional length",
            extra={"field_id": field_id, "value_length": len(text), "length": length},
        )
        return text[:length]
    pad = (padding_char or " ")[0] * (length - len(text))
    if padding_direction is PaddingDirection.LEFT:
        return pad + text
    return text + pad


def needs_quotes(value: str, delimiter: str) -> bool:
    return (
        (bool(delimiter) and delimiter in value)
        or _QUOTE in value
        or "\n" in value
        or "\r" in value
    )


def escape_delimited(value: str, delimiter: str) -> str:
    """Quote a value holding the delimiter, a quote or a line break; double inner quotes."""
    text = "" if value is None else str(value)
    if needs_quotes(text, delimiter):
        return _QUOTE + text.replace(_QUOTE, _QUOTE * 2) + _QUOTE
    return text


def join_delimited(values: list[str], delimiter: str) -> str:
    return delimiter.join(escape_delimited(v, delimiter) for v in values)
