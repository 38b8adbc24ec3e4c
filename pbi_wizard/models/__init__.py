from pbi_wizard.models.wizard_session import WizardSession
from pbi_wizard.models.data_file import DataFile, FileStatus
from pbi_wizard.models.relationship import TableRelationship

__all__ = ["WizardSession", "DataFile", "FileStatus", "TableRelationship"]
