"""Predefined field catalog — the target vocabulary columns are mapped onto."""

from __future__ import annotations

import re
import unicodedata

from pydantic import BaseModel

from layoutconv.core.exceptions import CatalogError, CoreFieldError, DuplicateFieldError


class PredefinedField(BaseModel):
    """A target field columns can be mapped to."""

    id: str
    name: str
    core: bool = False

    model_config = {"frozen": True}


CORE_FIELDS: tuple[PredefinedField, ...] = (
    PredefinedField(id="matricula", name="Matrícula", core=True),
    PredefinedField(id="cpf", name="CPF", core=True),
    PredefinedField(id="rg", name="RG", core=True),
    PredefinedField(id="nome", name="Nome", core=True),
    PredefinedField(id="email", name="E-mail", core=True),
    PredefinedField(id="cnpj", name="CNPJ", core=True),
    PredefinedField(id="regime", name="Regime", core=True),
    PredefinedField(id="situacao", name="Situação", core=True),
    PredefinedField(id="categoria", name="Categoria", core=True),
    PredefinedField(id="secretaria", name="Secretaria", core=True),
    PredefinedField(id="setor", name="Setor", core=True),
    PredefinedField(id="margem_bruta", name="Margem Bruta", core=True),
    PredefinedField(id="margem_reservada", name="Margem Reservada", core=True),
    PredefinedField(id="margem_liquida", name="Margem Líquida", core=True),
)


def strip_accents(text: str) -> str:
    """Remove combining diacritical marks (NFD decomposition)."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def slugify(name: str) -> str:
    """Derive a field id from a display name: ``"Data Admissão" -> "data_admissao"``."""
    slug = strip_accents(name.strip()).lower()
    slug = re.sub(r"\s+", "_", slug)
    return re.sub(r"[^a-z0-9_]", "", slug)


class FieldCatalog:
    """Process-wide, in-memory set of predefined fields.

    Core entries are immutable; custom entries can be added and removed.
    Insertion order is preserved for display.
    """

    def __init__(self, fields: tuple[PredefinedField, ...] | list[PredefinedField] = CORE_FIELDS) -> None:
        self._fields: dict[str, PredefinedField] = {}
        for f in fields:
            if f.id in self._fields:
                raise DuplicateFieldError(f.id)
            self._fields[f.id] = f

    def __contains__(self, field_id: object) -> bool:
        return field_id in self._fields

    def __iter__(self):
        return iter(self._fields.values())

    def __len__(self) -> int:
        return len(self._fields)

    def get(self, field_id: str) -> PredefinedField | None:
        return self._fields.get(field_id)

    def add(self, name: str) -> PredefinedField:
        """Add a custom field whose id is derived from ``name``."""
        display = name.strip()
        if not display:
            raise CatalogError("Field name cannot be empty")
        field_id = slugify(display)
        if not field_id:
            raise CatalogError(f"Field name {display!r} does not produce a valid id")
        if field_id in self._fields:
            raise DuplicateFieldError(field_id)
        field = PredefinedField(id=field_id, name=display)
        self._fields[field_id] = field
        return field

    def remove(self, field_id: str) -> PredefinedField | None:
        """Remove a custom field. Returns the removed field, or None if unknown."""
        field = self._fields.get(field_id)
        if field is None:
            return None
        if field.core:
            raise CoreFieldError(field_id)
        del self._fields[field_id]
        return field

    def reset(self) -> None:
        """Drop every custom field, keeping the core set."""
        self._fields = {k: v for k, v in self._fields.items() if v.core}
