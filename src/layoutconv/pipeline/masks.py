"""Strip formatting artifacts from raw cell values by semantic type."""

from __future__ import annotations

import re
from decimal import Decimal

from layoutconv.models.enums import SemanticType

_NON_DIGIT = re.compile(r"\D")
_CURRENCY = re.compile(r"(R\$|US\$|\$|€|£)")
_WHITESPACE = re.compile(r"\s+")
_NUMBER_CHARS = re.compile(r"[^0-9.,]")
_SCIENTIFIC = re.compile(r"^-?\d+(\.\d+)?[eE][-+]?\d+$")
# One dot followed by a three-digit group, as in pt-BR "1.234".
_DOT_GROUPED = re.compile(r"^[1-9]\d{0,2}\.\d{3}$")

_DIGIT_ONLY_TYPES = frozenset({
    SemanticType.CPF,
    SemanticType.CNPJ,
    SemanticType.INTEGER,
    SemanticType.NUMERIC,
    SemanticType.DATE,
})


def digits_only(value: str) -> str:
    return _NON_DIGIT.sub("", value)


def _split_sign(value: str) -> tuple[bool, str]:
    """Detect a leading minus, a trailing minus (``123,45-``) or accounting parentheses."""
    text = value.strip()
    negative = False
    if text.startswith("(") and text.endswith(")"):
        negative, text = True, text[1:-1].strip()
    if text.endswith("-"):
        negative, text = True, text[:-1].strip()
    if text.startswith("-"):
        negative, text = True, text[1:].strip()
    return negative, text


def canonical_decimal(value: str) -> str:
    """Rewrite a localized amount as a plain ``-1234.56`` string.

    Currency symbols and spaces are dropped. When both separators occur the
    last one is the decimal mark. A lone comma is a decimal comma; repeated
    commas or repeated dots are thousands grouping. A lone dot is grouping when
    exactly three digits follow it and the integer part does not start with
    zero (``1.234``); otherwise it is a decimal point. Exponent notation
    (``1e-05``) is expanded to positional digits.
    """
    plain = value.strip()
    if _SCIENTIFIC.match(plain):
        return format(Decimal(plain), "f")
    negative, text = _split_sign(value)
    text = _WHITESPACE.sub("", _CURRENCY.sub("", text))
    if text.startswith("-"):
        negative, text = True, text[1:]
    text = _NUMBER_CHARS.sub("", text)

    has_comma, has_dot = "," in text, "." in text
    if has_comma and has_dot:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif has_comma:
        text = text.replace(",", "") if text.count(",") > 1 else text.replace(",", ".")
    elif has_dot and (text.count(".") > 1 or _DOT_GROUPED.match(text)):
        text = text.replace(".", "")

    if negative and text:
        text = f"-{text}"
    return text


def remove_mask(value: str, semantic_type: SemanticType | None) -> str:
    """Strip the mask of ``value`` according to its semantic type.

    CPF, CNPJ, Integer, Numeric and Date keep digits only; Accounting keeps
    a canonical signed decimal; Text and Alphanumeric pass through.
    """
    if value is None or semantic_type is None:
        return ""
    text = str(value)
    if semantic_type in _DIGIT_ONLY_TYPES:
        return digits_only(text)
    if semantic_type is SemanticType.ACCOUNTING:
        return canonical_decimal(text)
    return text
