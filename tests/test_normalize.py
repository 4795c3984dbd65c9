"""Default back-fill of AI results and output validation."""
import copy

import pytest

from medichat.core.errors import CompletionError
from medichat.models import AnalysisType
from medichat.services.normalize import (
    DEFAULT_DOCTOR_RECOMMENDATIONS,
    DEFAULT_PROFESSIONAL_RECOMMENDATION,
    DEFAULT_RESOURCE_SUGGESTIONS,
    normalize_result,
    validate_result,
)


def test_symptom_check_fills_only_missing_lists():
    data = {
        "potentialConditions": ["Tension headache"],
        "urgency": "Medium",
        "urgencyReasoning": "Persistent for three days.",
        "suggestedNextSteps": ["Rest", "See a GP within a week"],
    }
    out = normalize_result(AnalysisType.SYMPTOM, data)
    assert out["doctorRecommendations"] == ["General Practitioner"]
    assert out["indianMedicalRecommendations"] == []
    for key, value in data.items():
        assert out[key] == value
    assert set(out) == set(data) | {"doctorRecommendations", "indianMedicalRecommendations"}


def test_symptom_check_empty_output_gets_all_defaults():
    out = normalize_result(AnalysisType.SYMPTOM, {})
    assert out == {
        "potentialConditions": [],
        "urgency": "Low",
        "urgencyReasoning": "Could not determine urgency reasoning.",
        "suggestedNextSteps": [],
        "doctorRecommendations": DEFAULT_DOCTOR_RECOMMENDATIONS,
        "indianMedicalRecommendations": [],
    }


def test_image_defaults():
    out = normalize_result(AnalysisType.IMAGE, {"doctorRecommendations": []})
    assert out["assessment"] == "Assessment unavailable."
    assert out["recommendations"] == "Consult a healthcare professional."
    assert out["doctorRecommendations"] == ["General Practitioner"]


def test_mental_health_keeps_crisis_warning_untouched():
    out = normalize_result(AnalysisType.MENTAL_HEALTH, {"assessment": "Stress.", "resourceSuggestions": []})
    assert out["resourceSuggestions"] == DEFAULT_RESOURCE_SUGGESTIONS
    assert out["recommendations"] == []
    assert "crisisWarning" not in out

    flagged = normalize_result(AnalysisType.MENTAL_HEALTH, {"crisisWarning": "Please call a helpline now."})
    assert flagged["crisisWarning"] == "Please call a helpline now."
    assert flagged["assessment"] == "Could not generate a preliminary assessment."


def test_diet_empty_professional_recommendation_is_replaced():
    out = normalize_result(AnalysisType.DIET, {"professionalRecommendation": ""})
    assert out["professionalRecommendation"] == DEFAULT_PROFESSIONAL_RECOMMENDATION
    assert out["nutritionalBreakdown"] == "Could not estimate nutritional breakdown."
    assert out["healthObservations"] == []
    assert out["improvementSuggestions"] == []


def test_voice_present_values_preserved():
    data = {"potentialConditions": ["Cold"], "clarifyingQuestions": [], "doctorRecommendations": ["ENT"]}
    out = normalize_result(AnalysisType.VOICE, data)
    assert out["doctorRecommendations"] == ["ENT"]
    assert out["clarifyingQuestions"] == []


@pytest.mark.parametrize("analysis_type", list(AnalysisType))
def test_normalize_is_idempotent_and_does_not_mutate(analysis_type):
    data = {"indianMedicalRecommendations": None}
    before = copy.deepcopy(data)
    once = normalize_result(analysis_type, data)
    assert normalize_result(analysis_type, once) == once
    assert data == before


def test_defaults_are_not_shared_between_results():
    a = normalize_result(AnalysisType.IMAGE, {})
    a["doctorRecommendations"].append("Dermatologist")
    b = normalize_result(AnalysisType.IMAGE, {})
    assert b["doctorRecommendations"] == ["General Practitioner"]


def test_validate_result_null_output():
    with pytest.raises(CompletionError, match="null output"):
        validate_result(AnalysisType.SYMPTOM, None)


def test_validate_result_not_an_object():
    with pytest.raises(CompletionError):
        validate_result(AnalysisType.DIET, ["not", "an", "object"])


def test_validate_result_wrong_urgency():
    with pytest.raises(CompletionError):
        validate_result(AnalysisType.SYMPTOM, {"urgency": "Critical"})


def test_validate_result_accepts_partial_output():
    data = {"potentialConditions": ["Flu"]}
    assert validate_result(AnalysisType.VOICE, data) is data
