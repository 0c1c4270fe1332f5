"""Closed enumerations shared by the data model and the pipeline."""

from __future__ import annotations

from enum import StrEnum


class SemanticType(StrEnum):
    INTEGER = "Integer"
    ALPHANUMERIC = "Alphanumeric"
    NUMERIC = "Numeric"
    ACCOUNTING = "Accounting"
    DATE = "Date"
    TEXT = "Text"
    CPF = "CPF"
    CNPJ = "CNPJ"


class OutputFormat(StrEnum):
    POSITIONAL = "positional"
    DELIMITED = "delimited"

    @property
    def extension(self) -> str:
        """File extension used for the downloadable document."""
        return "txt" if self is OutputFormat.POSITIONAL else "csv"


class PaddingDirection(StrEnum):
    LEFT = "left"
    RIGHT = "right"


class DateFormat(StrEnum):
    YYYYMMDD = "YYYYMMDD"
    DDMMYYYY = "DDMMYYYY"


class OutputEncoding(StrEnum):
    UTF_8 = "UTF-8"
    ISO_8859_1 = "ISO-8859-1"
    WINDOWS_1252 = "Windows-1252"

    @property
    def codec(self) -> str:
        """Python codec name for ``str.encode``."""
        return {
            OutputEncoding.UTF_8: "utf-8",
            OutputEncoding.ISO_8859_1: "iso-8859-1",
            OutputEncoding.WINDOWS_1252: "cp1252",
        }[self]


# Types rendered as digit runs; they pad left with zeros by default.
DIGIT_TYPES: frozenset[SemanticType] = frozenset({
    SemanticType.INTEGER,
    SemanticType.NUMERIC,
    SemanticType.ACCOUNTING,
    SemanticType.CPF,
    SemanticType.CNPJ,
})

# Only these types carry a column length on the mapping.
LENGTH_TYPES: frozenset[SemanticType] = frozenset({
    SemanticType.ALPHANUMERIC,
    SemanticType.TEXT,
})

# Types whose mask is removed unless the user turns it off.
MASKED_BY_DEFAULT: frozenset[SemanticType] = frozenset({
    SemanticType.CPF,
    SemanticType.CNPJ,
    SemanticType.DATE,
    SemanticType.ACCOUNTING,
    SemanticType.INTEGER,
})
