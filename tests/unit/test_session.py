"""Tests for conversion sessions and the session registry."""

from __future__ import annotations

import pytest

from layoutconv.core.config import ConversionConfig
from layoutconv.core.exceptions import (
    CatalogError,
    ConfigurationError,
    SessionError,
    SessionNotFoundError,
    UnsupportedFileTypeError,
)
from layoutconv.ingest.loader import DatasetLoader
from layoutconv.models.enums import OutputEncoding, OutputFormat, SemanticType
from layoutconv.models.output import MappedOutputField
from layoutconv.session import ConversionSession, SessionRegistry
from tests.fakes import MemoryFileStore, csv_bytes

FOLHA = csv_bytes(
    [["Nome", "CPF", "Salario"], ["Ana Silva", "123.456.789-00", "1.234,56"], ["Bia", "987.654.321-00", "10,00"]],
    delimiter=";",
)


def _field(session: ConversionSession, mapped_field: str) -> MappedOutputField:
    return next(f for f in session.output.fields if isinstance(f, MappedOutputField) and f.mapped_field == mapped_field)


@pytest.fixture
def session(catalog) -> ConversionSession:
    return ConversionSession(catalog)


@pytest.fixture
def loader(catalog) -> DatasetLoader:
    return DatasetLoader(catalog)


@pytest.fixture
async def loaded(session, loader) -> ConversionSession:
    await session.load(loader, "folha.csv", FOLHA)
    return session


class TestLoad:
    async def test_seeds_mappings_and_output(self, loaded):
        assert loaded.is_loaded
        assert loaded.file_name == "folha.csv"
        assert [m.mapped_field for m in loaded.mappings] == ["nome", "cpf", None]
        assert sorted(loaded.output.mapped_field_ids()) == ["cpf", "nome"]
        assert loaded.download_name == "folha_convertido.txt"

    async def test_keeps_format_across_loads(self, loaded, loader):
        loaded.set_output_format(OutputFormat.DELIMITED)
        loaded.set_delimiter(";")
        await loaded.load(loader, "outra.csv", FOLHA)
        assert loaded.output.format is OutputFormat.DELIMITED
        assert loaded.output.delimiter == ";"

    async def test_input_error_resets(self, loaded, loader):
        with pytest.raises(UnsupportedFileTypeError):
            await loaded.load(loader, "folha.ods", b"PK")
        assert not loaded.is_loaded
        assert loaded.mappings == []
        assert loaded.output.fields == []

    def test_edits_require_a_dataset(self, session):
        with pytest.raises(SessionError, match="Upload a file"):
            session.update_mapping(0, length=5)

    async def test_preview(self, loaded):
        assert loaded.preview(1) == [{"Nome": "Ana Silva", "CPF": "123.456.789-00", "Salario": "1.234,56"}]


class TestUpdateMapping:
    async def test_mapping_a_column_adds_output_field(self, loaded):
        loaded.update_mapping(2, mapped_field="margem_bruta")
        assert "margem_bruta" in loaded.output.mapped_field_ids()
        assert _field(loaded, "margem_bruta").order == 2

    async def test_unmapping_removes_output_field(self, loaded):
        loaded.update_mapping(1, mapped_field=None)
        assert "cpf" not in loaded.output.mapped_field_ids()

    async def test_untyped_column_gets_guessed_type(self, loaded):
        loaded.update_mapping(2, data_type=None)
        edited = loaded.update_mapping(2, mapped_field="margem_bruta")
        assert edited.data_type is SemanticType.ACCOUNTING
        assert edited.remove_mask is True

    async def test_type_change_clears_length_and_resets_mask(self, loaded):
        loaded.update_mapping(0, length=30)
        edited = loaded.update_mapping(0, data_type=SemanticType.INTEGER)
        assert edited.length is None
        assert edited.remove_mask is True

    async def test_non_positive_length_clears(self, loaded):
        assert loaded.update_mapping(0, length=0).length is None

    async def test_unknown_field_rejected(self, loaded):
        with pytest.raises(CatalogError):
            loaded.update_mapping(0, mapped_field="apelido")

    async def test_unknown_key_rejected(self, loaded):
        with pytest.raises(SessionError, match="original_header"):
            loaded.update_mapping(0, original_header="x")

    async def test_bad_index_rejected(self, loaded):
        with pytest.raises(SessionError, match="index 9"):
            loaded.update_mapping(9, length=1)


class TestOutputConfiguration:
    async def test_delimiter_only_for_delimited(self, loaded):
        with pytest.raises(SessionError):
            loaded.set_delimiter(";")

    async def test_format_toggle_sets_default_delimiter(self, catalog, loader):
        session = ConversionSession(catalog, ConversionConfig(default_delimiter=";"))
        await session.load(loader, "folha.csv", FOLHA)
        session.set_output_format(OutputFormat.DELIMITED)
        assert session.output.delimiter == ";"
        assert all(f.length is None for f in session.output.fields)

    async def test_static_field_round_trip(self, loaded):
        loaded.save_static_field(field_name="tipo", static_value="A", length=1)
        static = loaded.output.ordered_fields()[-1]
        loaded.move_output_field(static.id, 0)
        assert loaded.output.ordered_fields()[0].id == static.id
        loaded.remove_output_field(static.id)
        assert len(loaded.output.fields) == 2


class TestConvert:
    async def test_positional(self, loaded):
        loaded.update_mapping(2, mapped_field="margem_bruta")
        loaded.update_output_field(_field(loaded, "nome").id, length=20)
        loaded.update_output_field(_field(loaded, "cpf").id, length=11)
        document = loaded.convert()
        first_line = document.content.decode().split("\n")[0]
        assert first_line == "Ana Silva           " + "12345678900" + "0000123456"
        assert document.record_count == 2

    async def test_delimited(self, loaded):
        loaded.update_mapping(2, mapped_field="margem_bruta")
        loaded.set_output_format(OutputFormat.DELIMITED)
        document = loaded.convert(OutputEncoding.WINDOWS_1252)
        assert document.content == b"Ana Silva|12345678900|123456\nBia|98765432100|1000"
        assert loaded.encoding is OutputEncoding.WINDOWS_1252
        assert document.file_name == "folha_convertido.csv"

    async def test_configuration_change_discards_document(self, loaded):
        loaded.convert()
        loaded.update_mapping(0, length=15)
        with pytest.raises(SessionError, match="Convert the file"):
            loaded.require_document()

    async def test_invalid_configuration_leaves_no_document(self, loaded):
        loaded.convert()
        loaded.update_mapping(0, data_type=None)
        assert loaded.issues()
        with pytest.raises(ConfigurationError):
            loaded.convert()
        assert loaded.document is None

    async def test_publish(self, loaded):
        store = MemoryFileStore()
        loaded.convert()
        path = loaded.publish(store, prefix="/entregas/")
        assert path == "entregas/folha_convertido.txt"
        assert store.read(path) == loaded.document.content
        assert store.content_type(path) == "text/plain;charset=utf-8"

    async def test_publish_requires_document(self, loaded):
        with pytest.raises(SessionError):
            loaded.publish(MemoryFileStore())


class TestCatalogFields:
    async def test_removal_unmaps_columns_and_prunes_output(self, loaded):
        field = loaded.add_catalog_field("Salário Base")
        loaded.update_mapping(2, mapped_field=field.id)
        assert field.id in loaded.output.mapped_field_ids()

        loaded.remove_catalog_field(field.id)
        assert loaded.mappings[2].mapped_field is None
        assert field.id not in loaded.output.mapped_field_ids()
        assert field.id not in loaded.catalog

    async def test_unknown_removal_is_noop(self, loaded):
        assert loaded.remove_catalog_field("nada") is None


class TestSessionRegistry:
    def test_create_get_discard(self):
        registry = SessionRegistry()
        session = registry.create()
        assert registry.get(session.id) is session
        assert len(registry) == 1
        registry.discard(session.id)
        with pytest.raises(SessionNotFoundError):
            registry.get(session.id)

    def test_sessions_share_catalog(self):
        registry = SessionRegistry()
        registry.create().add_catalog_field("Turno")
        assert "turno" in registry.create().catalog

    async def test_catalog_removal_reaches_every_session(self, catalog, loader):
        registry = SessionRegistry(catalog)
        field = catalog.add("Turno")
        sessions = [registry.create(), registry.create()]
        for session in sessions:
            await session.load(loader, "folha.csv", FOLHA)
            session.update_mapping(2, mapped_field=field.id)

        assert registry.remove_catalog_field(field.id) == field
        for session in sessions:
            assert field.id not in session.output.mapped_field_ids()
