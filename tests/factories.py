"""
Construtores de perfis usados nos testes.
"""
from pbi_wizard.schemas.profile import ColumnStatistics, FileProfile


def make_profile(row_count: int, *columns: ColumnStatistics) -> FileProfile:
    """Monta um FileProfile a partir das colunas informadas."""
    return FileProfile(row_count=row_count, column_count=len(columns), columns=list(columns))


def make_column(name: str, data_type: str = "string", missing: int = 0, unique: int = 0,
                non_numeric: int | None = None) -> ColumnStatistics:
    return ColumnStatistics(
        name=name,
        data_type=data_type,
        missing_values=missing,
        unique_values=unique,
        non_numeric_count=non_numeric,
    )
