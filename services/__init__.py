"""Clients for the remote collaborators (generation, analysis, history)."""

from .analysis import AnalysisService, HttpAnalysisService
from .generation import GenerationService, HttpGenerationService
from .http import ApiClient

__all__ = [
    "ApiClient",
    "AnalysisService",
    "HttpAnalysisService",
    "GenerationService",
    "HttpGenerationService",
]
