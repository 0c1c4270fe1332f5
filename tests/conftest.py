"""Shared fixtures: catalog, the payroll sample dataset and its mappings."""

from __future__ import annotations

import pytest

from layoutconv.core.logging_config import reset_logging
from layoutconv.models.catalog import FieldCatalog
from layoutconv.models.dataset import Dataset
from layoutconv.models.enums import SemanticType
from layoutconv.models.mapping import ColumnMapping


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def catalog() -> FieldCatalog:
    return FieldCatalog()


@pytest.fixture
def payroll_dataset() -> Dataset:
    return Dataset(
        headers=["Nome", "CPF", "Salario"],
        rows=[{"Nome": "Ana Silva", "CPF": "123.456.789-00", "Salario": "1.234,56"}],
    )


@pytest.fixture
def payroll_mappings() -> list[ColumnMapping]:
    return [
        ColumnMapping(original_header="Nome", mapped_field="nome", data_type=SemanticType.TEXT, length=20),
        ColumnMapping(original_header="CPF", mapped_field="cpf", data_type=SemanticType.CPF, remove_mask=True),
        ColumnMapping(
            original_header="Salario", mapped_field="margem_bruta",
            data_type=SemanticType.ACCOUNTING, remove_mask=True,
        ),
    ]
