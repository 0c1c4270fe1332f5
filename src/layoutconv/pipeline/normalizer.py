"""Value normalization — canonical output text for a cleaned cell value.

Normalization never raises. A value that cannot be interpreted degrades to
the type's default ("" for dates and digit runs, "0.00" for Numeric, "0"
for Accounting) and a warning is logged.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from dateutil import parser as date_parser

from layoutconv.core.logging_config import get_logger
from layoutconv.models.enums import DateFormat, SemanticType
from layoutconv.pipeline.masks import canonical_decimal, digits_only

logger = get_logger(__name__)

_PLAIN_DECIMAL = re.compile(r"^-?(\d+\.?\d*|\.\d+)$")
_LEADING_NUMBER = re.compile(r"^-?(\d+\.?\d*|\.\d+)")
_STATIC_NUMBER = re.compile(r"^-?\d+([.,]\d+)?$")

_CENT = Decimal("0.01")
_UNIT = Decimal("1")

# Years accepted when reading a digit run (exclusive bounds).
_MIN_YEAR, _MAX_YEAR = 1900, 2100
# Dateutil fills missing parts from this; a result still in 1900 had no year.
_PARSE_DEFAULT = datetime(_MIN_YEAR, 1, 1)


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------

def parse_decimal(value: str) -> Decimal | None:
    """Read a signed decimal with comma or dot separator, or None."""
    text = str(value).strip()
    if not text:
        return None
    if not _PLAIN_DECIMAL.match(text):
        text = canonical_decimal(text)
    match = _LEADING_NUMBER.match(text)
    if not match:
        return None
    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return None


def normalize_numeric(value: str, *, field_id: str | None = None) -> str:
    """Two fixed decimals: ``"179.1" -> "179.10"``, ``"-350" -> "-350.00"``."""
    number = parse_decimal(value)
    if number is None:
        if str(value).strip():
            logger.warning(
                "Could not parse numeric value; using 0.00",
                extra={"field_id": field_id, "value": value},
            )
        return "0.00"
    quantized = number.quantize(_CENT, rounding=ROUND_HALF_UP)
    if quantized == 0:
        quantized = abs(quantized)
    return f"{quantized:f}"


def normalize_accounting(value: str, *, field_id: str | None = None) -> str:
    """Integer cents: ``"1234.56" -> "123456"``, ``"-350.00" -> "-35000"``."""
    number = parse_decimal(value)
    if number is None:
        if str(value).strip():
            logger.warning(
                "Could not parse accounting value; using 0",
                extra={"field_id": field_id, "value": value},
            )
        return "0"
    cents = (number * 100).quantize(_UNIT, rounding=ROUND_HALF_UP)
    return str(int(cents))


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

def _complete_year(two_digits: int) -> int:
    return 2000 + two_digits if two_digits < 70 else 1900 + two_digits


def _plausible_year(y: int) -> bool:
    return _MIN_YEAR < y < _MAX_YEAR


def _from_digit_run(digits: str) -> tuple[int, int, int] | None:
    """(year, month, day) from an 8- or 6-digit run, trying orders by plausibility."""
    if len(digits) == 8:
        yyyy, mm, dd = int(digits[0:4]), int(digits[4:6]), int(digits[6:8])
        if _plausible_year(yyyy) and 1 <= mm <= 12 and 1 <= dd <= 31:
            return yyyy, mm, dd
        p1, p2, p3 = int(digits[0:2]), int(digits[2:4]), int(digits[4:8])
        if 1 <= p1 <= 31 and 1 <= p2 <= 12 and _plausible_year(p3):
            return p3, p2, p1
        if 1 <= p1 <= 12 and 1 <= p2 <= 31 and _plausible_year(p3):
            return p3, p1, p2
    elif len(digits) == 6:
        dd, mm, yy = int(digits[0:2]), int(digits[2:4]), int(digits[4:6])
        if 1 <= dd <= 31 and 1 <= mm <= 12:
            return _complete_year(yy), mm, dd
    return None


def _from_separated(original: str) -> tuple[int, int, int] | None:
    """(year, month, day) from ``DD/MM/YYYY``, ``YYYY-MM-DD``, ``DD-MM-YY`` and friends."""
    text = original.strip()
    parts = text.split("/")
    if len(parts) != 3:
        parts = text.split("-")
    if len(parts) != 3:
        return None
    parts = [p.strip() for p in parts]
    if not all(p.isdigit() for p in parts):
        return None
    if len(parts[0]) == 4:
        return int(parts[0]), int(parts[1]), int(parts[2])
    if len(parts[2]) == 4:
        return int(parts[2]), int(parts[1]), int(parts[0])
    if len(parts[2]) == 2:
        return _complete_year(int(parts[2])), int(parts[1]), int(parts[0])
    return None


def _calendar_date(triple: tuple[int, int, int] | None) -> date | None:
    """Reject triples that do not name a real calendar day (e.g. 31 April)."""
    if triple is None:
        return None
    year, month, day = triple
    try:
        parsed = date(year, month, day)
    except ValueError:
        return None
    if (parsed.year, parsed.month, parsed.day) != (year, month, day):
        return None
    return parsed


def _general_parse(original: str) -> date | None:
    try:
        parsed = date_parser.parse(original, dayfirst=True, default=_PARSE_DEFAULT)
    except (ValueError, OverflowError):
        return None
    if parsed.year <= _MIN_YEAR:
        return None
    return parsed.date()


def parse_date(value: str, original: str | None = None) -> date | None:
    """Best-effort calendar date from a cleaned value and the original text."""
    source = (original if original is not None else value) or ""
    digits = digits_only(value or "")
    parsed = _calendar_date(_from_digit_run(digits))
    if parsed is None and source:
        parsed = _calendar_date(_from_separated(source))
    if parsed is None and source.strip():
        parsed = _general_parse(source)
    return parsed


def format_date(value: date, date_format: DateFormat | None) -> str:
    if date_format is DateFormat.DDMMYYYY:
        return f"{value.day:02d}{value.month:02d}{value.year:04d}"
    return f"{value.year:04d}{value.month:02d}{value.day:02d}"


def normalize_date(
    value: str,
    date_format: DateFormat | None = None,
    original: str | None = None,
    *,
    field_id: str | None = None,
) -> str:
    """Date digits in the configured order, or "" when no date can be read."""
    if not (value or "").strip() and not (original or "").strip():
        return ""
    parsed = parse_date(value, original)
    if parsed is None:
        logger.warning(
            "Could not parse date; output left empty",
            extra={"field_id": field_id, "value": original if original is not None else value},
        )
        return ""
    return format_date(parsed, date_format)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

def normalize_value(
    value: str,
    semantic_type: SemanticType | None,
    date_format: DateFormat | None = None,
    original: str | None = None,
    *,
    field_id: str | None = None,
) -> str:
    """Canonical representation of ``value`` for ``semantic_type``.

    ``original`` is the trimmed, unmasked cell text; date parsing falls back
    to it when the cleaned digits are not conclusive.
    """
    text = "" if value is None else str(value)
    try:
        if semantic_type in (SemanticType.INTEGER, SemanticType.CPF, SemanticType.CNPJ):
            return digits_only(text)
        if semantic_type is SemanticType.NUMERIC:
            return normalize_numeric(text, field_id=field_id)
        if semantic_type is SemanticType.ACCOUNTING:
            return normalize_accounting(text, field_id=field_id)
        if semantic_type is SemanticType.DATE:
            return normalize_date(text, date_format, original, field_id=field_id)
    except (ValueError, ArithmeticError) as exc:
        logger.warning(
            "Normalization failed; using default",
            extra={"field_id": field_id, "value": text, "error": str(exc)},
        )
        return default_for(semantic_type)
    return text


def default_for(semantic_type: SemanticType | None) -> str:
    """Value emitted when a cell cannot be normalized."""
    if semantic_type is SemanticType.NUMERIC:
        return "0.00"
    if semantic_type is SemanticType.ACCOUNTING:
        return "0"
    return ""


def classify_static(value: str) -> SemanticType:
    """Static literals pad like numbers when they look like one, else like text."""
    return SemanticType.NUMERIC if _STATIC_NUMBER.match(value or "") else SemanticType.TEXT
