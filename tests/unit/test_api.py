"""Tests for the HTTP API."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from layoutconv.api.app import create_app
from layoutconv.core.config import AppSettings
from layoutconv.models.dataset import ExtractionResult
from tests.fakes import MemoryCacheBackend, MemoryFileStore, MockModelProvider, csv_bytes, xlsx_bytes

FOLHA_CSV = csv_bytes(
    [["Nome", "CPF", "Salario"], ["Ana Silva", "123.456.789-00", "1.234,56"], ["Bia", "987.654.321-00", "10,00"]],
    delimiter=";",
)


@pytest.fixture
def file_store() -> MemoryFileStore:
    return MemoryFileStore()


@pytest.fixture
def provider() -> MockModelProvider:
    return MockModelProvider()


@pytest.fixture
def client(file_store, provider):
    app = create_app(AppSettings(), cache=MemoryCacheBackend(), file_store=file_store, model_provider=provider)
    with TestClient(app) as test_client:
        yield test_client


def _upload(client: TestClient, name: str = "folha.csv", content: bytes = FOLHA_CSV,
            content_type: str = "text/csv") -> dict:
    response = client.post("/sessions", files={"file": (name, content, content_type)})
    assert response.status_code == 201, response.text
    return response.json()


def _field_id(state: dict, mapped_field: str) -> str:
    return next(f["id"] for f in state["output"]["fields"] if f.get("mapped_field") == mapped_field)


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_ready(self, client):
        body = client.get("/ready").json()
        assert body["status"] == "ready"
        assert body["extraction_provider"] == "mock"


class TestCatalog:
    def test_list_core_fields(self, client):
        ids = [f["id"] for f in client.get("/catalog").json()]
        assert ids[:2] == ["matricula", "cpf"]

    def test_add_and_remove_custom_field(self, client):
        response = client.post("/catalog", json={"name": "Data Admissão"})
        assert response.status_code == 201
        assert response.json()["id"] == "data_admissao"
        assert client.post("/catalog", json={"name": "data admissao"}).status_code == 409
        assert client.delete("/catalog/data_admissao").status_code == 204
        assert client.delete("/catalog/data_admissao").status_code == 404

    def test_core_field_cannot_be_removed(self, client):
        assert client.delete("/catalog/cpf").status_code == 409

    def test_reset(self, client):
        client.post("/catalog", json={"name": "Turno"})
        ids = [f["id"] for f in client.post("/catalog/reset").json()]
        assert "turno" not in ids


class TestUpload:
    def test_csv_upload_creates_session(self, client):
        state = _upload(client)
        assert state["headers"] == ["Nome", "CPF", "Salario"]
        assert state["row_count"] == 2
        assert state["mappings"][1]["mapped_field"] == "cpf"
        assert client.get(f"/sessions/{state['id']}").json()["id"] == state["id"]

    def test_xlsx_upload(self, client):
        content = xlsx_bytes([["Matricula", "Nome"], [1001, "Ana"]])
        state = _upload(client, "folha.xlsx", content, "application/octet-stream")
        assert state["mappings"][0]["mapped_field"] == "matricula"

    def test_pdf_upload(self, client, provider):
        provider.set_structured_response(ExtractionResult, {"headers": ["Nome"], "rows": [{"Nome": "Ana"}]})
        state = _upload(client, "relatorio.pdf", b"%PDF-1.4", "application/pdf")
        assert state["row_count"] == 1

    def test_unsupported_file(self, client):
        response = client.post("/sessions", files={"file": ("folha.ods", b"PK", "application/octet-stream")})
        assert response.status_code == 415
        assert "Unsupported file type" in response.json()["detail"]

    def test_pdf_without_table(self, client):
        response = client.post("/sessions", files={"file": ("relatorio.pdf", b"%PDF", "application/pdf")})
        assert response.status_code == 422

    def test_unknown_session(self, client):
        assert client.get("/sessions/nope").status_code == 404

    def test_preview_and_discard(self, client):
        state = _upload(client)
        assert len(client.get(f"/sessions/{state['id']}/preview", params={"limit": 1}).json()) == 1
        assert client.delete(f"/sessions/{state['id']}").status_code == 204
        assert client.get(f"/sessions/{state['id']}").status_code == 404


class TestConversionFlow:
    def test_positional_download(self, client):
        state = _upload(client)
        sid = state["id"]
        state = client.patch(f"/sessions/{sid}/mappings/2", json={"mapped_field": "margem_bruta"}).json()
        client.patch(f"/sessions/{sid}/output/fields/{_field_id(state, 'nome')}", json={"length": 20})
        client.patch(f"/sessions/{sid}/output/fields/{_field_id(state, 'cpf')}", json={"length": 11})

        summary = client.post(f"/sessions/{sid}/convert").json()
        assert summary["record_count"] == 2
        assert summary["file_name"] == "folha_convertido.txt"

        response = client.get(f"/sessions/{sid}/download")
        assert response.status_code == 200
        assert response.content.split(b"\n")[0] == b"Ana Silva           12345678900" + b"0000123456"
        assert 'filename="folha_convertido.txt"' in response.headers["content-disposition"]

    def test_delimited_with_static_field(self, client):
        sid = _upload(client)["id"]
        client.patch(f"/sessions/{sid}/mappings/2", json={"mapped_field": "margem_bruta"})
        client.put(f"/sessions/{sid}/output/format", json={"format": "delimited"})
        client.put(f"/sessions/{sid}/output/delimiter", json={"delimiter": ";"})
        response = client.post(f"/sessions/{sid}/output/static", json={"field_name": "tipo", "static_value": "A"})
        assert response.status_code == 201

        summary = client.post(f"/sessions/{sid}/convert", json={"encoding": "ISO-8859-1"}).json()
        assert summary["encoding"] == "ISO-8859-1"
        body = client.get(f"/sessions/{sid}/download").content
        assert body.split(b"\n")[0] == b"Ana Silva;12345678900;123456;A"

    def test_invalid_configuration_lists_issues(self, client):
        sid = _upload(client)["id"]
        client.patch(f"/sessions/{sid}/mappings/0", json={"data_type": None})
        issues = client.get(f"/sessions/{sid}/issues").json()
        assert issues["convertible"] is False

        response = client.post(f"/sessions/{sid}/convert")
        assert response.status_code == 422
        assert response.json()["issues"][0]["field_id"] == "nome"

    def test_download_before_convert(self, client):
        sid = _upload(client)["id"]
        assert client.get(f"/sessions/{sid}/download").status_code == 409

    def test_delimiter_rejected_for_positional(self, client):
        sid = _upload(client)["id"]
        assert client.put(f"/sessions/{sid}/output/delimiter", json={"delimiter": ";"}).status_code == 409

    def test_unknown_output_field(self, client):
        sid = _upload(client)["id"]
        assert client.delete(f"/sessions/{sid}/output/fields/nope").status_code == 400

    def test_null_order_in_field_patch(self, client):
        state = _upload(client)
        sid = state["id"]
        field_id = _field_id(state, "cpf")
        response = client.patch(f"/sessions/{sid}/output/fields/{field_id}", json={"order": None, "length": 11})
        assert response.status_code == 200
        ids = [f["id"] for f in sorted(response.json()["output"]["fields"], key=lambda f: f["order"])]
        assert ids == [f["id"] for f in sorted(state["output"]["fields"], key=lambda f: f["order"])]

    def test_publish(self, client, file_store):
        sid = _upload(client)["id"]
        client.post(f"/sessions/{sid}/convert")
        response = client.post(f"/sessions/{sid}/publish", json={"prefix": "entregas"})
        assert response.json() == {"path": "entregas/folha_convertido.txt"}
        assert file_store.list_files("entregas/") == ["entregas/folha_convertido.txt"]

    def test_edit_static_field_and_add_back_mapped_field(self, client):
        sid = _upload(client)["id"]
        state = client.post(f"/sessions/{sid}/output/static",
                            json={"field_name": "tipo", "static_value": "A", "length": 1}).json()
        static_id = state["output"]["fields"][-1]["id"]
        state = client.put(f"/sessions/{sid}/output/static/{static_id}",
                           json={"field_name": "tipo", "static_value": "BB", "length": 2}).json()
        assert state["output"]["fields"][-1]["static_value"] == "BB"

        client.delete(f"/sessions/{sid}/output/fields/{_field_id(state, 'cpf')}")
        state = client.post(f"/sessions/{sid}/output/fields").json()
        assert _field_id(state, "cpf")
        assert client.post(f"/sessions/{sid}/output/fields").status_code == 400

    def test_reupload_keeps_session(self, client):
        sid = _upload(client)["id"]
        content = csv_bytes([["Nome", "Email"], ["Ana", "ana@example.com"], ["Bia", "bia@example.com"]])
        response = client.post(f"/sessions/{sid}/upload", files={"file": ("lista.csv", content, "text/csv")})
        assert response.json()["id"] == sid
        assert response.json()["headers"] == ["Nome", "Email"]
        assert client.post(f"/sessions/{sid}/reset").json()["headers"] == []
