from .analysis import AnalysisDocument, AnalysisType

__all__ = [
    "AnalysisDocument",
    "AnalysisType",
]
