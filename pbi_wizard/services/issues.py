"""
Detecção de colunas que precisam de limpeza.
"""
from pbi_wizard.schemas.cleaning import ColumnIssue, IssueDetails
from pbi_wizard.schemas.profile import FileProfile


def detect_issues(file_name: str, profile: FileProfile) -> list[ColumnIssue]:
    """
    Lista os problemas de cada coluna do perfil.

    Uma coluna gera um problema "missing_values" quando tem valores ausentes
    e outro, independente, "mixed_type" quando mistura números e texto.

    Parâmetros:
        file_name: Nome do arquivo dono do perfil.
        profile: Perfil do arquivo.

    Retorna:
        Lista de ColumnIssue na ordem das colunas.
    """
    issues = []

    for col in profile.columns:
        if col.missing_values > 0:
            issues.append(ColumnIssue(
                file_name=file_name,
                column_name=col.name,
                issue_type="missing_values",
                details=IssueDetails(
                    missing_count=col.missing_values,
                    total_rows=profile.row_count,
                ),
            ))

        if col.data_type == "mixed" and (col.non_numeric_count or 0) > 0:
            issues.append(ColumnIssue(
                file_name=file_name,
                column_name=col.name,
                issue_type="mixed_type",
                details=IssueDetails(
                    non_numeric_count=col.non_numeric_count,
                    total_rows=profile.row_count,
                ),
            ))

    return issues
