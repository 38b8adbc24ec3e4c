from pbi_wizard.services.profiling import ProfilingService
from pbi_wizard.services.cleaning import CleaningSimulator
from pbi_wizard.services.gemini import SuggestionService
from pbi_wizard.services.pipeline import ProfilingPipeline

__all__ = ["ProfilingService", "CleaningSimulator", "SuggestionService", "ProfilingPipeline"]
