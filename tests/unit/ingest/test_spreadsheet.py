"""Tests for XLSX and CSV decoding."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from layoutconv.core.exceptions import InputError
from layoutconv.ingest.spreadsheet import (
    cell_text,
    read_csv,
    read_xlsx,
    rows_to_dataset,
    sniff_delimiter,
    unique_headers,
)
from layoutconv.models.enums import SemanticType
from layoutconv.pipeline.masks import remove_mask
from layoutconv.pipeline.normalizer import normalize_value
from tests.fakes import csv_bytes, xlsx_bytes


class TestCellText:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, ""),
            (datetime(2024, 3, 5), "05/03/2024"),
            (datetime(2024, 3, 5, 14, 30), "05/03/2024 14:30:00"),
            (date(1990, 12, 31), "31/12/1990"),
            (True, "TRUE"),
            (1500.0, "1500"),
            (1234.56, "1234.56"),
            (0.00001, "0.00001"),
            (2.5e-7, "0.00000025"),
            (-1e-05, "-0.00001"),
            (42, "42"),
            ("  Ana  ", "Ana"),
        ],
    )
    def test_display_string(self, value, expected):
        assert cell_text(value) == expected


class TestUniqueHeaders:
    def test_blank_and_duplicate_headers(self):
        assert unique_headers(["Nome", None, "Nome", "  ", "Nome"]) == [
            "Nome", "Column_2", "Nome_1", "Column_4", "Nome_2",
        ]

    def test_collapses_inner_whitespace(self):
        assert unique_headers(["Data\nAdmissão"]) == ["Data Admissão"]


class TestRowsToDataset:
    def test_skips_blank_rows_and_pads_short_rows(self):
        dataset = rows_to_dataset([
            ["Nome", "CPF", None],
            ["Ana", None],
            [None, "", None],
            ["Bia", "123", "extra"],
        ])
        assert dataset.headers == ["Nome", "CPF"]
        assert dataset.rows == [{"Nome": "Ana", "CPF": ""}, {"Nome": "Bia", "CPF": "123"}]

    def test_empty_table(self):
        assert rows_to_dataset([]).headers == []
        assert rows_to_dataset([[None, ""]]).headers == []


class TestReadXlsx:
    def test_first_sheet(self):
        content = xlsx_bytes([
            ["Nome", "CPF", "Admissão", "Salario"],
            ["Ana Silva", "123.456.789-00", datetime(2020, 1, 15), 1234.56],
            [None, None, None, None],
            ["Bia", "987.654.321-00", datetime(2021, 6, 1), 3000],
        ])
        dataset = read_xlsx(content)
        assert dataset.headers == ["Nome", "CPF", "Admissão", "Salario"]
        assert dataset.rows[0] == {
            "Nome": "Ana Silva", "CPF": "123.456.789-00", "Admissão": "15/01/2020", "Salario": "1234.56",
        }
        assert dataset.rows[1]["Salario"] == "3000"
        assert len(dataset.rows) == 2

    def test_tiny_floats_stay_near_zero_after_normalizing(self):
        dataset = read_xlsx(xlsx_bytes([["Valor", "Taxa"], [0.00001, 2.5e-7]]))
        assert dataset.rows[0] == {"Valor": "0.00001", "Taxa": "0.00000025"}
        valor = remove_mask(dataset.rows[0]["Valor"], SemanticType.ACCOUNTING)
        assert normalize_value(valor, SemanticType.ACCOUNTING) == "0"
        assert normalize_value(dataset.rows[0]["Taxa"], SemanticType.NUMERIC) == "0.00"

    def test_garbage_raises_input_error(self):
        with pytest.raises(InputError, match="workbook"):
            read_xlsx(b"not a workbook")


class TestReadCsv:
    def test_semicolon_file(self):
        content = csv_bytes(
            [["Nome", "CPF", "Salario"], ["Ana Silva", "123.456.789-00", "1.234,56"], ["Bia", "1", "10,00"]],
            delimiter=";",
        )
        dataset = read_csv(content)
        assert dataset.headers == ["Nome", "CPF", "Salario"]
        assert dataset.rows[0]["Salario"] == "1.234,56"

    def test_cp1252_fallback(self):
        content = csv_bytes([["Nome", "Situação"], ["Ana", "Ativo"], ["Bia", "Inativo"]], encoding="cp1252")
        assert read_csv(content).headers == ["Nome", "Situação"]

    def test_utf8_bom_stripped(self):
        content = b"\xef\xbb\xbf" + csv_bytes([["Nome", "CPF"], ["Ana", "1"], ["Bia", "2"]])
        assert read_csv(content).headers[0] == "Nome"

    def test_sniff_defaults_to_comma(self):
        assert sniff_delimiter("single") == ","
