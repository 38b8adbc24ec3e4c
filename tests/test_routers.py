"""
Testes das rotas HTTP, com banco em memória e IA mockada.
"""
import asyncio
from unittest.mock import AsyncMock

import pytest

from pbi_wizard.exceptions import SuggestionError
from pbi_wizard.schemas.cleaning import CleaningSuggestion
from pbi_wizard.schemas.modeling import DaxGenerationResponse, RelationshipSuggestion

VENDAS_CSV = b"id,cliente_id,valor\n1,10,100\n2,11,\n3,10,abc\n4,,50\n"
CLIENTES_CSV = b"id,nome\n10,Ana\n11,Bruno\n"


class TestRouters:

    @pytest.fixture(autouse=True)
    def _setup(self, client, suggestion_service):
        self.client = client
        self.service = suggestion_service
        response = self.client.post("/api/sessions", json={"name": "Vendas 2024"})
        assert response.status_code == 200
        self.session_id = response.json()["id"]

    def _upload(self, *files):
        return self.client.post(
            f"/api/sessions/{self.session_id}/files",
            files=[("files", (name, content, "text/csv")) for name, content in files],
        )

    def _file_id(self, filename):
        files = self.client.get(f"/api/sessions/{self.session_id}/files").json()
        return next(f["id"] for f in files if f["filename"] == filename)

    def test_health(self):
        assert self.client.get("/health").json() == {"status": "ok"}

    def test_upload_runs_pipeline(self):
        response = self._upload(("vendas.csv", VENDAS_CSV))

        assert response.status_code == 200
        file_id = response.json()[0]["id"]

        data_file = self.client.get(f"/api/sessions/{self.session_id}/files/{file_id}").json()
        assert data_file["status"] == "complete"
        assert data_file["profile"]["rowCount"] == 4
        assert data_file["profile"]["columnCount"] == 3
        assert data_file["profile"]["aiInsights"]["data_quality_summary"] == "Poucos valores ausentes."

    def test_upload_rejects_unsupported_extension(self):
        response = self._upload(("relatorio.pdf", b"%PDF"))

        assert response.status_code == 400
        assert self.client.get(f"/api/sessions/{self.session_id}/files").json() == []

    def test_upload_rejects_duplicate_filename(self):
        self._upload(("vendas.csv", VENDAS_CSV))

        response = self._upload(("vendas.csv", VENDAS_CSV))

        assert response.status_code == 409

    def test_unparseable_file_ends_in_error(self):
        self._upload(("quebrado.json", b"[1, 2"))

        data_file = self.client.get(f"/api/sessions/{self.session_id}/files").json()[0]
        assert data_file["status"] == "error"
        assert "JSON inválido" in data_file["error"]

    def test_unknown_session_returns_404(self):
        assert self.client.get("/api/sessions/999").status_code == 404
        assert self.client.get("/api/sessions/999/files").status_code == 404

    def test_issues(self):
        self._upload(("vendas.csv", VENDAS_CSV))
        file_id = self._file_id("vendas.csv")

        issues = self.client.get(
            f"/api/sessions/{self.session_id}/files/{file_id}/issues"
        ).json()

        assert [(i["columnName"], i["issueType"]) for i in issues] == [
            ("cliente_id", "missing_values"),
            ("valor", "missing_values"),
            ("valor", "mixed_type"),
        ]
        assert issues[2]["details"] == {"nonNumericCount": 1, "totalRows": 4}

    def test_suggestions_are_grouped_and_filtered(self):
        self.service.get_cleaning_suggestions = AsyncMock(return_value=[
            CleaningSuggestion(action="REMOVE_ROWS", description="Remover linhas"),
            CleaningSuggestion(action="CHANGE_TYPE", description="Converter"),
            CleaningSuggestion(action="FILL_MEDIAN", description="Preencher com a mediana"),
        ])
        self._upload(("vendas.csv", VENDAS_CSV))
        file_id = self._file_id("vendas.csv")

        response = self.client.post(
            f"/api/sessions/{self.session_id}/files/{file_id}/suggestions"
        )

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"cliente_id", "valor"}
        # "valor" tem dois problemas; as sugestões repetidas aparecem uma vez
        assert [s["action"] for s in body["valor"]] == ["REMOVE_ROWS", "FILL_MEDIAN"]
        assert self.service.get_cleaning_suggestions.await_count == 3

    def test_suggestions_failure_returns_502(self):
        self.service.get_cleaning_suggestions = AsyncMock(side_effect=SuggestionError("Falha"))
        self._upload(("vendas.csv", VENDAS_CSV))
        file_id = self._file_id("vendas.csv")

        response = self.client.post(
            f"/api/sessions/{self.session_id}/files/{file_id}/suggestions"
        )

        assert response.status_code == 502

    def test_suggestions_failure_waits_for_pending_calls(self):
        finished = []

        async def suggest(issue):
            if issue.issue_type == "mixed_type":
                raise SuggestionError("Falha")
            await asyncio.sleep(0.05)
            finished.append(issue.column_name)
            return []

        self.service.get_cleaning_suggestions = AsyncMock(side_effect=suggest)
        self._upload(("vendas.csv", VENDAS_CSV))
        file_id = self._file_id("vendas.csv")

        response = self.client.post(
            f"/api/sessions/{self.session_id}/files/{file_id}/suggestions"
        )

        assert response.status_code == 502
        assert sorted(finished) == ["cliente_id", "valor"]

    def test_apply_cleaning_without_changes_keeps_profile_version(self):
        self._upload(("vendas.csv", VENDAS_CSV))

        response = self.client.post(
            f"/api/sessions/{self.session_id}/cleaning/apply",
            json={"selections": [
                {"file": "vendas.csv", "column": "inexistente", "action": {"action": "REMOVE_ROWS"}},
                {"file": "vendas.csv", "column": "valor", "action": {"action": "TRIM_WHITESPACE"}},
            ]},
        )

        assert response.status_code == 200
        assert [d["column"] for d in response.json()["dropped"]] == ["inexistente"]
        data_file = self.client.get(f"/api/sessions/{self.session_id}/files").json()[0]
        assert data_file["profile_version"] == 2

    def test_apply_cleaning(self):
        self._upload(("vendas.csv", VENDAS_CSV), ("clientes.csv", CLIENTES_CSV))

        response = self.client.post(
            f"/api/sessions/{self.session_id}/cleaning/apply",
            json={"selections": [
                {"file": "vendas.csv", "column": "valor", "action": {"action": "REMOVE_ROWS"}},
                {"file": "vendas.csv", "column": "valor",
                 "action": {"action": "CHANGE_TYPE", "targetType": "number"}},
                {"file": "vendas.csv", "column": "inexistente", "action": {"action": "FILL_MEAN"}},
            ]},
        )

        assert response.status_code == 200
        body = response.json()
        valor = next(c for c in body["profiles"]["vendas.csv"]["columns"] if c["name"] == "valor")
        assert valor["dataType"] == "number"
        assert valor["missingValues"] == 2
        assert body["profiles"]["vendas.csv"]["rowCount"] == 4
        assert [d["column"] for d in body["dropped"]] == ["inexistente"]

        files = {f["filename"]: f for f in self.client.get(f"/api/sessions/{self.session_id}/files").json()}
        assert files["vendas.csv"]["profile_version"] == 3
        assert files["clientes.csv"]["profile_version"] == 2

    def test_apply_cleaning_rejects_unknown_action(self):
        response = self.client.post(
            f"/api/sessions/{self.session_id}/cleaning/apply",
            json={"selections": [
                {"file": "vendas.csv", "column": "valor", "action": {"action": "DROP_TABLE"}},
            ]},
        )

        assert response.status_code == 422

    def test_relationships(self):
        self.service.get_relationship_suggestions = AsyncMock(return_value=[
            RelationshipSuggestion(
                from_table="vendas.csv", from_column="cliente_id",
                to_table="clientes.csv", to_column="id",
                type="Many-to-One", confidence="High", reason="Chave estrangeira",
            ),
        ])
        self._upload(("vendas.csv", VENDAS_CSV), ("clientes.csv", CLIENTES_CSV))
        base = f"/api/sessions/{self.session_id}/relationships"

        suggestions = self.client.post(f"{base}/suggestions").json()
        profiles = self.service.get_relationship_suggestions.call_args.args[0]
        assert set(profiles) == {"vendas.csv", "clientes.csv"}

        relationship = {k: v for k, v in suggestions[0].items() if k not in ("confidence", "reason")}
        first = self.client.post(base, json=relationship).json()
        second = self.client.post(base, json=relationship).json()

        assert first["id"] == second["id"]
        assert len(self.client.get(base).json()) == 1

        assert self.client.delete(f"{base}/{first['id']}").status_code == 200
        assert self.client.delete(f"{base}/{first['id']}").status_code == 404

    def test_relationship_suggestions_failure_returns_502(self):
        self.service.get_relationship_suggestions = AsyncMock(side_effect=SuggestionError("Falha"))

        response = self.client.post(f"/api/sessions/{self.session_id}/relationships/suggestions")

        assert response.status_code == 502

    def test_delete_file_removes_its_relationships(self):
        self._upload(("vendas.csv", VENDAS_CSV), ("clientes.csv", CLIENTES_CSV))
        base = f"/api/sessions/{self.session_id}/relationships"
        self.client.post(base, json={
            "fromTable": "vendas.csv", "fromColumn": "cliente_id",
            "toTable": "clientes.csv", "toColumn": "id", "type": "Many-to-One",
        })

        file_id = self._file_id("clientes.csv")
        response = self.client.delete(f"/api/sessions/{self.session_id}/files/{file_id}")

        assert response.status_code == 200
        assert self.client.get(base).json() == []
        assert [f["filename"] for f in self.client.get(f"/api/sessions/{self.session_id}/files").json()] == [
            "vendas.csv"
        ]

    def test_retry_file(self):
        self.service.get_insights = AsyncMock(side_effect=SuggestionError("Falha ao gerar insights"))
        self._upload(("vendas.csv", VENDAS_CSV))
        file_id = self._file_id("vendas.csv")
        assert self.client.get(f"/api/sessions/{self.session_id}/files/{file_id}").json()["status"] == "error"

        self.service.get_insights = AsyncMock(return_value=None)
        response = self.client.post(f"/api/sessions/{self.session_id}/files/{file_id}/retry")

        assert response.status_code == 200
        data_file = self.client.get(f"/api/sessions/{self.session_id}/files/{file_id}").json()
        assert data_file["status"] == "complete"
        assert data_file["error"] is None

    def test_delete_session(self):
        self._upload(("vendas.csv", VENDAS_CSV))

        assert self.client.delete(f"/api/sessions/{self.session_id}").status_code == 200
        assert self.client.get(f"/api/sessions/{self.session_id}").status_code == 404

    def test_generate_dax(self):
        self.service.get_dax_formula = AsyncMock(return_value=DaxGenerationResponse(
            dax_formula="Total Sales = SUM(Sales[Revenue])",
            explanation="Soma a receita.",
            optimization_tips="Prefira medidas.",
            common_pitfalls="Evite colunas calculadas.",
        ))

        response = self.client.post("/api/dax/generate", json={"prompt": "Total de vendas"})

        assert response.status_code == 200
        assert response.json()["dax_formula"] == "Total Sales = SUM(Sales[Revenue])"
        self.service.get_dax_formula.assert_awaited_once_with("Total de vendas")

    def test_generate_dax_failure_returns_502(self):
        self.service.get_dax_formula = AsyncMock(side_effect=SuggestionError("Falha"))

        response = self.client.post("/api/dax/generate", json={"prompt": "Total de vendas"})

        assert response.status_code == 502

    def test_generate_dax_requires_prompt(self):
        response = self.client.post("/api/dax/generate", json={"prompt": ""})

        assert response.status_code == 422
