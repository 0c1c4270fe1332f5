"""Tests for output assembly and encoding."""

from __future__ import annotations

import logging

import pytest

from layoutconv.core.exceptions import ConfigurationError
from layoutconv.models.dataset import Dataset
from layoutconv.models.enums import OutputEncoding, OutputFormat, SemanticType
from layoutconv.models.mapping import ColumnMapping
from layoutconv.models.output import MappedOutputField, OutputConfiguration
from layoutconv.pipeline.assembler import OutputAssembler, convert, encode_document
from layoutconv.pipeline.layout import save_static_field, update_output_field
from layoutconv.pipeline.sync import resync


def _id_of(config: OutputConfiguration, mapped_field: str) -> str:
    return next(f.id for f in config.fields if isinstance(f, MappedOutputField) and f.mapped_field == mapped_field)


@pytest.fixture
def positional(payroll_mappings) -> OutputConfiguration:
    config = resync(payroll_mappings, OutputConfiguration())
    return update_output_field(config, _id_of(config, "cpf"), payroll_mappings, length=11)


@pytest.fixture
def delimited(payroll_mappings) -> OutputConfiguration:
    return resync(payroll_mappings, OutputConfiguration(format=OutputFormat.DELIMITED, delimiter="|"))


class TestConvert:
    def test_positional_line(self, payroll_dataset, payroll_mappings, positional, catalog):
        document = convert(payroll_dataset, payroll_mappings, positional, source_name="folha.xlsx", catalog=catalog)
        assert document.content == b"Ana Silva           " + b"12345678900" + b"0000123456"
        assert document.record_count == 1
        assert document.file_name == "folha_convertido.txt"
        assert document.media_type == "text/plain;charset=utf-8"

    def test_delimited_line(self, payroll_dataset, payroll_mappings, delimited):
        document = convert(payroll_dataset, payroll_mappings, delimited, source_name="folha.xlsx")
        assert document.content == b"Ana Silva|12345678900|123456"
        assert document.file_name == "folha_convertido.csv"
        assert document.media_type == "text/csv;charset=utf-8"

    def test_lines_joined_without_trailing_newline(self, payroll_mappings, delimited):
        dataset = Dataset(
            headers=["Nome", "CPF", "Salario"],
            rows=[
                {"Nome": "Ana", "CPF": "1", "Salario": "10"},
                {"Nome": "Bia", "CPF": "2", "Salario": "-350,00"},
            ],
        )
        document = convert(dataset, payroll_mappings, delimited)
        assert document.content.decode() == "Ana|1|1000\nBia|2|-35000"

    def test_invalid_configuration_produces_nothing(self, payroll_mappings):
        with pytest.raises(ConfigurationError) as exc_info:
            convert(Dataset(headers=["Nome"]), payroll_mappings, OutputConfiguration())
        assert exc_info.value.issues

    def test_encoding_is_applied(self, payroll_mappings, delimited):
        dataset = Dataset(headers=["Nome", "CPF", "Salario"],
                          rows=[{"Nome": "João", "CPF": "1", "Salario": "1"}])
        document = convert(dataset, payroll_mappings, delimited, OutputEncoding.ISO_8859_1)
        assert document.content == "João|1|100".encode("iso-8859-1")
        assert document.encoding is OutputEncoding.ISO_8859_1
        assert document.media_type == "text/csv;charset=iso-8859-1"


class TestOutputAssembler:
    def test_missing_column_emits_empty_value(self, payroll_mappings, delimited, caplog):
        assembler = OutputAssembler(payroll_mappings, delimited)
        with caplog.at_level(logging.WARNING, logger="layoutconv"):
            line = assembler.render_line({"Nome": "Ana", "Salario": "1,00"})
        assert line == "Ana||100"
        assert "Row has no value for mapped column" in caplog.text

    def test_unmapped_output_field_emits_empty_value(self, payroll_mappings, delimited):
        assembler = OutputAssembler(payroll_mappings[:1], delimited)
        assert assembler.render_line({"Nome": "Ana", "CPF": "1", "Salario": "1"}) == "Ana||"

    def test_static_fields_positional(self, payroll_mappings, positional):
        config = save_static_field(positional, field_name="tipo", static_value="A", length=2)
        line = OutputAssembler(payroll_mappings, config).render_line(
            {"Nome": "Ana", "CPF": "1", "Salario": "1"},
        )
        assert line.endswith("A ")
        assert len(line) == 20 + 11 + 10 + 2

    def test_static_fields_delimited(self, payroll_mappings, delimited):
        config = save_static_field(delimited, field_name="tipo", static_value="X;Y")
        line = OutputAssembler(payroll_mappings, config).render_line(
            {"Nome": "Ana", "CPF": "1", "Salario": "1"},
        )
        assert line == "Ana|1|100|X;Y"

    def test_delimited_values_are_quoted(self, payroll_mappings, delimited):
        line = OutputAssembler(payroll_mappings, delimited).render_line(
            {"Nome": 'Ana "A|B"', "CPF": "1", "Salario": "1"},
        )
        assert line == '"Ana ""A|B"""|1|100'

    def test_overlong_value_truncated_left(self, payroll_mappings, positional):
        line = OutputAssembler(payroll_mappings, positional).render_line(
            {"Nome": "Maria Aparecida dos Santos", "CPF": "1", "Salario": "1"},
        )
        assert line[:20] == "Maria Aparecida dos "

    def test_mask_kept_when_not_removed(self, delimited):
        mappings = [
            ColumnMapping(original_header="Nome", mapped_field="nome", data_type=SemanticType.TEXT),
            ColumnMapping(original_header="CPF", mapped_field="cpf", data_type=SemanticType.TEXT),
        ]
        config = resync(mappings, delimited)
        line = OutputAssembler(mappings, config).render_line({"Nome": " Ana ", "CPF": "123.456.789-00"})
        assert line == "Ana|123.456.789-00"


class TestEncodeDocument:
    def test_utf8(self):
        assert encode_document("Situação", OutputEncoding.UTF_8) == "Situação".encode("utf-8")

    def test_windows_1252_euro(self):
        assert encode_document("€", OutputEncoding.WINDOWS_1252) == b"\x80"

    def test_unencodable_replaced(self, caplog):
        with caplog.at_level(logging.WARNING, logger="layoutconv"):
            assert encode_document("a€b", OutputEncoding.ISO_8859_1) == b"a?b"
        assert "replaced" in caplog.text
