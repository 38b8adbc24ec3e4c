"""
Testes do profiling de colunas e da montagem do perfil.
"""
import pytest

from pbi_wizard.schemas.profile import AIInsights
from pbi_wizard.services.parsing import ParsedTable, parse_file
from pbi_wizard.services.profiling import ProfilingService, is_numeric


class TestIsNumeric:

    @pytest.mark.parametrize("value", ["10", "-3", "20.5", ".5", "-.5", " 42 ", "007"])
    def test_numeric(self, value):
        assert is_numeric(value)

    @pytest.mark.parametrize("value", ["5.", "+5", "1e3", "1,000", "abc", "", "--1", "٣", "1.2.3"])
    def test_not_numeric(self, value):
        assert not is_numeric(value)

    def test_non_string(self):
        assert not is_numeric(10)


class TestProfileColumn:

    def setup_method(self):
        self.service = ProfilingService()

    def test_all_numeric(self):
        col = self.service.profile_column("valor", ["10", "20.5", "-3"])

        assert col.data_type == "number"
        assert col.missing_values == 0
        assert col.unique_values == 3
        assert col.non_numeric_count is None

    def test_mixed(self):
        col = self.service.profile_column("valor", ["10", "abc", ""])

        assert col.data_type == "mixed"
        assert col.missing_values == 1
        assert col.non_numeric_count == 1
        assert col.unique_values == 2

    def test_all_text(self):
        col = self.service.profile_column("cidade", ["SP", "RJ", "SP", " "])

        assert col.data_type == "string"
        assert col.missing_values == 1
        assert col.unique_values == 2

    def test_all_missing(self):
        col = self.service.profile_column("vazia", ["", "   ", None])

        assert col.data_type == "unknown"
        assert col.missing_values == 3
        assert col.unique_values == 0
        assert col.non_numeric_count is None

    def test_unique_values_use_trimmed_text(self):
        col = self.service.profile_column("x", ["a", " a", "a ", "b"])

        assert col.unique_values == 2

    def test_type_follows_numeric_rule(self):
        col = self.service.profile_column("valor", ["5.", "+5", "1e3", " 10 ", ".5"])

        assert col.data_type == "mixed"
        assert col.non_numeric_count == 3

    def test_empty_column(self):
        col = self.service.profile_column("x", [])

        assert col.data_type == "unknown"
        assert col.missing_values == 0


class TestBuildFileProfile:

    def setup_method(self):
        self.service = ProfilingService()

    def test_counts_and_order(self):
        table = ParsedTable(
            header=["id", "nome", "valor"],
            rows=[["1", "Ana", "10"], ["2", "", "x"], ["3", "Bia", ""]],
        )

        profile = self.service.build_file_profile(table)

        assert profile.row_count == 3
        assert profile.column_count == 3
        assert [c.name for c in profile.columns] == ["id", "nome", "valor"]
        assert profile.ai_insights is None

    def test_missing_plus_present_equals_row_count(self):
        content = (
            b"a,b,c,d\n"
            b"1,x,,\n"
            b"2,,3,\n"
            b" ,y,abc,\n"
            b"4,z,5,\n"
        )
        table = parse_file(content, "t.csv")

        profile = self.service.build_file_profile(table)

        for index, col in enumerate(profile.columns):
            present = sum(1 for row in table.rows if row[index].strip() != "")
            assert col.missing_values + present == profile.row_count

    def test_to_dict_uses_camel_case(self):
        table = ParsedTable(header=["v"], rows=[["1"], ["a"]])

        data = self.service.build_file_profile(table).to_dict()

        assert data == {
            "rowCount": 2,
            "columnCount": 1,
            "columns": [{
                "name": "v",
                "dataType": "mixed",
                "missingValues": 0,
                "uniqueValues": 2,
                "nonNumericCount": 1,
            }],
        }

    def test_attach_insights_returns_new_profile(self):
        profile = self.service.build_file_profile(ParsedTable(header=["v"], rows=[["1"]]))
        insights = AIInsights(suggested_kpis=["Total"], data_quality_summary="Ok.")

        enriched = self.service.attach_insights(profile, insights)

        assert enriched.ai_insights == insights
        assert profile.ai_insights is None
        assert enriched.to_dict()["aiInsights"]["suggested_kpis"] == ["Total"]
