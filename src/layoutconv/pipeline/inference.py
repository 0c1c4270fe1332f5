"""Type inference — guesses target field and semantic type for an input column.

Field guesses come from an ordered keyword table matched against the
normalized header (first match wins). Type guesses look at header keywords
first, then at the shape of a sample cell, and always yield a type.
"""

from __future__ import annotations

import re

from layoutconv.models.catalog import FieldCatalog, strip_accents
from layoutconv.models.dataset import Dataset
from layoutconv.models.enums import MASKED_BY_DEFAULT, SemanticType
from layoutconv.models.mapping import ColumnMapping

# Ordered: first field whose keyword appears in the header wins.
FIELD_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("matricula", ("matricula", "mat", "registro", "id func", "cod func")),
    ("cpf", ("cpf", "cadastro pessoa fisica")),
    ("rg", ("rg", "identidade", "registro geral")),
    ("nome", ("nome", "nome completo", "funcionario", "colaborador", "name", "servidor")),
    ("email", ("email", "e-mail", "correio eletronico", "contato")),
    ("cnpj", ("cnpj", "cadastro nacional pessoa juridica")),
    ("regime", ("regime", "tipo regime")),
    ("situacao", ("situacao", "status")),
    ("categoria", ("categoria",)),
    ("secretaria", ("secretaria", "orgao", "unidade", "orgao pagador")),
    ("setor", ("setor", "departamento", "lotacao")),
    ("margem_bruta", ("margem bruta", "valor bruto", "bruto", "salario bruto")),
    ("margem_reservada", ("margem reservada", "reservada", "valor reservado")),
    ("margem_liquida", ("margem liquida", "liquido", "valor liquido", "disponivel", "margem disponivel")),
]

# Header stems checked in priority order; substring match on the normalized header.
TYPE_KEYWORDS: list[tuple[SemanticType, tuple[str, ...]]] = [
    (SemanticType.CNPJ, ("cnpj",)),
    (SemanticType.CPF, ("cpf",)),
    (SemanticType.DATE, ("data", "date", "nasc")),
    (SemanticType.ACCOUNTING, (
        "margem", "valor", "salario", "contabil", "saldo", "preco", "brut", "liquid", "reservad",
    )),
    (SemanticType.INTEGER, ("matricula", "mat", "cod", "numero", "num")),
    (SemanticType.ALPHANUMERIC, (r"\brg\b",)),
    (SemanticType.NUMERIC, ("idade", "quant")),
    (SemanticType.TEXT, (
        "nome", "descri", "texto", "obs", "secretaria", "setor", "regime",
        "situacao", "categoria", "email", "orgao",
    )),
]

_DATE_SHAPES = (
    re.compile(r"^\d{1,2}[-/]\d{1,2}[-/]\d{2,4}$"),
    re.compile(r"^\d{4}[-/]\d{1,2}[-/]\d{1,2}$"),
    re.compile(r"^\d{6,8}$"),
)
_CPF_SHAPE = re.compile(r"^\d{3}\.?\d{3}\.?\d{3}-?\d{2}$")
_CNPJ_SHAPE = re.compile(r"^\d{2}\.?\d{3}\.?\d{3}/?\d{4}-?\d{2}$")
_CURRENCY_SHAPES = (
    re.compile(r"[R$]"),
    re.compile(r"[,.]\d{2}$"),
    re.compile(r"^-?\d{1,3}(\.\d{3})*(,\d+)?$"),
    re.compile(r"^-?\d+,\d+$"),
)
_INTEGER_SHAPE = re.compile(r"^-?\d+$")
_DECIMAL_SHAPE = re.compile(r"^-?\d+(\.\d+)?$")


def normalize_header(header: str) -> str:
    """Lowercase, trim and strip diacritics."""
    return strip_accents(str(header).strip().lower())


def _contains_keyword(text: str, keyword: str) -> bool:
    if keyword.startswith(r"\b"):
        return re.search(keyword, text) is not None
    return keyword in text


def _has_word(text: str, keyword: str) -> bool:
    return re.search(rf"(?<![a-z0-9]){re.escape(keyword)}(?![a-z0-9])", text) is not None


def guess_field(header: str, catalog: FieldCatalog | None = None) -> str | None:
    """Guess the catalog field a header refers to, or None.

    Keywords match whole words so short stems ("rg", "mat") do not fire
    inside longer words ("margem", "formato").
    """
    normalized = normalize_header(header)
    for field_id, keywords in FIELD_KEYWORDS:
        if catalog is not None and field_id not in catalog:
            continue
        if any(_has_word(normalized, kw) for kw in keywords):
            return field_id
    if catalog is not None:
        # Custom fields are matched by their own display name.
        for field in catalog:
            if not field.core and _has_word(normalized, normalize_header(field.name)):
                return field.id
    return None


def guess_type_from_header(header: str) -> SemanticType | None:
    normalized = normalize_header(header)
    for semantic_type, keywords in TYPE_KEYWORDS:
        if any(_contains_keyword(normalized, kw) for kw in keywords):
            return semantic_type
    return None


def guess_type_from_sample(sample: str) -> SemanticType | None:
    value = str(sample).strip()
    if not value:
        return None
    if any(p.search(value) for p in _DATE_SHAPES):
        return SemanticType.DATE
    if _CPF_SHAPE.match(value):
        return SemanticType.CPF
    if _CNPJ_SHAPE.match(value):
        return SemanticType.CNPJ
    if any(p.search(value) for p in _CURRENCY_SHAPES):
        return SemanticType.ACCOUNTING
    if _INTEGER_SHAPE.match(value):
        return SemanticType.INTEGER
    if _DECIMAL_SHAPE.match(value):
        return SemanticType.NUMERIC
    return None


def guess_type(header: str, sample: object = "") -> SemanticType:
    """Guess a semantic type; never returns None."""
    by_header = guess_type_from_header(header)
    if by_header is not None:
        return by_header
    sample_text = "" if sample is None else str(sample).strip()
    by_sample = guess_type_from_sample(sample_text)
    if by_sample is not None:
        return by_sample
    # Letters in header or sample, or nothing conclusive at all: Alphanumeric.
    return SemanticType.ALPHANUMERIC


def default_remove_mask(field_id: str | None, semantic_type: SemanticType | None) -> bool:
    """Mask removal default: identity-document fields and digit/date types."""
    if field_id in ("cpf", "rg", "cnpj"):
        return True
    return semantic_type in MASKED_BY_DEFAULT


def infer(header: str, sample: object = "", catalog: FieldCatalog | None = None) -> tuple[str | None, SemanticType]:
    """``(guessed_field_id, guessed_type)`` for one column."""
    return guess_field(header, catalog), guess_type(header, sample)


def build_column_mappings(dataset: Dataset, catalog: FieldCatalog | None = None) -> list[ColumnMapping]:
    """One mapping per header, seeded from the guesses on the first data row."""
    mappings: list[ColumnMapping] = []
    for header in dataset.headers:
        field_id, semantic_type = infer(header, dataset.sample(header), catalog)
        mappings.append(ColumnMapping(
            original_header=header,
            mapped_field=field_id,
            data_type=semantic_type,
            length=None,
            remove_mask=default_remove_mask(field_id, semantic_type),
        ))
    return mappings
