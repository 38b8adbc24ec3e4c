from pbi_wizard.schemas.profile import (
    AIInsights,
    ColumnStatistics,
    FileProfile,
)
from pbi_wizard.schemas.cleaning import (
    CleaningActionType,
    CleaningSelection,
    CleaningSuggestion,
    ColumnIssue,
    IssueDetails,
)
from pbi_wizard.schemas.modeling import (
    DaxGenerationResponse,
    DaxRequest,
    Relationship,
    RelationshipSuggestion,
)

__all__ = [
    "AIInsights",
    "ColumnStatistics",
    "FileProfile",
    "CleaningActionType",
    "CleaningSelection",
    "CleaningSuggestion",
    "ColumnIssue",
    "IssueDetails",
    "DaxGenerationResponse",
    "DaxRequest",
    "Relationship",
    "RelationshipSuggestion",
]
