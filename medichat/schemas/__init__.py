from .analyze import (
    AnalysisRecord,
    AnalysisRequest,
    AnalyzeResponse,
    DietaryAnalysisRequest,
    HistoryResponse,
    ImageAnalysisRequest,
    MentalHealthRequest,
    SaveAnalysisRequest,
    SaveAnalysisResponse,
    SymptomCheckRequest,
    VoiceDiagnosisRequest,
)

__all__ = [
    "AnalysisRecord",
    "AnalysisRequest",
    "AnalyzeResponse",
    "DietaryAnalysisRequest",
    "HistoryResponse",
    "ImageAnalysisRequest",
    "MentalHealthRequest",
    "SaveAnalysisRequest",
    "SaveAnalysisResponse",
    "SymptomCheckRequest",
    "VoiceDiagnosisRequest",
]
