"""
Validation and default back-fill of AI results.

Only missing fields (and empty minimum-one lists) are filled; values the model
returned are kept as they are, so normalizing twice changes nothing.
"""
import copy
import logging

from pydantic import ValidationError

from medichat.core.errors import CompletionError
from medichat.models import AnalysisType
from medichat.schemas.results import RESULT_MODELS

logger = logging.getLogger(__name__)

DEFAULT_DOCTOR_RECOMMENDATIONS = ["General Practitioner"]
DEFAULT_RESOURCE_SUGGESTIONS = ["General Practitioner", "Mental Health Professional"]
DEFAULT_PROFESSIONAL_RECOMMENDATION = "Consult a registered dietitian or healthcare provider for personalized advice."

# Per type: field -> default used when the field is missing (None counts as missing).
_MISSING_DEFAULTS: dict[AnalysisType, dict[str, object]] = {
    AnalysisType.IMAGE: {
        "assessment": "Assessment unavailable.",
        "recommendations": "Consult a healthcare professional.",
    },
    AnalysisType.VOICE: {
        "potentialConditions": [],
        "clarifyingQuestions": [],
    },
    AnalysisType.SYMPTOM: {
        "potentialConditions": [],
        "urgency": "Low",
        "urgencyReasoning": "Could not determine urgency reasoning.",
        "suggestedNextSteps": [],
    },
    AnalysisType.MENTAL_HEALTH: {
        "assessment": "Could not generate a preliminary assessment.",
        "recommendations": [],
    },
    AnalysisType.DIET: {
        "nutritionalBreakdown": "Could not estimate nutritional breakdown.",
        "healthObservations": [],
        "improvementSuggestions": [],
    },
}

# Per type: field -> default used when the field is missing OR empty.
_NON_EMPTY_DEFAULTS: dict[AnalysisType, dict[str, object]] = {
    AnalysisType.IMAGE: {"doctorRecommendations": DEFAULT_DOCTOR_RECOMMENDATIONS},
    AnalysisType.VOICE: {"doctorRecommendations": DEFAULT_DOCTOR_RECOMMENDATIONS},
    AnalysisType.SYMPTOM: {"doctorRecommendations": DEFAULT_DOCTOR_RECOMMENDATIONS},
    AnalysisType.MENTAL_HEALTH: {"resourceSuggestions": DEFAULT_RESOURCE_SUGGESTIONS},
    AnalysisType.DIET: {"professionalRecommendation": DEFAULT_PROFESSIONAL_RECOMMENDATION},
}


def validate_result(analysis_type: AnalysisType, data: object) -> dict:
    """Checks the raw model output against the type's schema. Null or mistyped output is a CompletionError."""
    if data is None:
        raise CompletionError("Received null output from the AI model.")
    if not isinstance(data, dict):
        raise CompletionError("AI output is not a JSON object.")
    try:
        RESULT_MODELS[analysis_type].model_validate(data)
    except ValidationError as e:
        logger.warning("AI output for %s does not match schema: %s", analysis_type.value, e.errors())
        raise CompletionError("AI output did not match the expected format.") from e
    return data


def normalize_result(analysis_type: AnalysisType | str, data: dict) -> dict:
    """Returns a copy of data with the per-type defaults filled in."""
    analysis_type = AnalysisType(analysis_type)
    result = copy.deepcopy(data)
    filled = []
    for field, default in _MISSING_DEFAULTS[analysis_type].items():
        if result.get(field) is None:
            result[field] = copy.deepcopy(default)
            filled.append(field)
    for field, default in _NON_EMPTY_DEFAULTS[analysis_type].items():
        if not result.get(field):
            result[field] = copy.deepcopy(default)
            filled.append(field)
    if result.get("indianMedicalRecommendations") is None:
        result["indianMedicalRecommendations"] = []
        filled.append("indianMedicalRecommendations")
    if filled:
        logger.info("Back-filled %s fields: %s", analysis_type.value, ", ".join(filled))
    return result
