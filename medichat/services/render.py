"""
Result renderer: saved or fresh AI results -> one display shape.

Extraction is per analysis type (one extractor per tag) because the five
result payloads name equivalent content differently. Missing or mistyped
fields come out as absent sections, never as errors.
"""
from datetime import datetime, timezone

from pydantic import BaseModel

from medichat.models import AnalysisType
from medichat.schemas.analyze import AnalysisRecord

URGENCY_LEVELS = ("Low", "Medium", "High")
URGENCY_BADGES = {"High": "destructive", "Medium": "secondary", "Low": "default"}

# analysisType -> (title, badge variant, short label)
DISPLAY_INFO: dict[AnalysisType, tuple[str, str, str]] = {
    AnalysisType.IMAGE: ("Skin Image Analysis", "default", "Image Analysis"),
    AnalysisType.VOICE: ("Symptom Analysis (Audio/Text)", "secondary", "Voice Diagnosis"),
    AnalysisType.SYMPTOM: ("Symptom Checker", "destructive", "Symptom Check"),
    AnalysisType.MENTAL_HEALTH: ("Mental Well-being Check-in", "default", "Mental Health Assessment"),
    AnalysisType.DIET: ("Dietary Analysis", "secondary", "Dietary Analysis"),
}
UNKNOWN_DISPLAY_INFO = ("Unknown Analysis", "outline", "Unknown")


class IndianRecommendationView(BaseModel):
    doctor_name: str | None = None
    hospital_name: str | None = None
    specialty: str | None = None
    phone_number: str | None = None


class DisplayResult(BaseModel):
    assessment: str | None = None
    potential_conditions: list[str] = []
    urgency: str | None = None
    urgency_badge: str | None = None
    urgency_reasoning: str | None = None
    recommendations: list[str] = []
    nutritional_breakdown: str | None = None
    health_observations: list[str] = []
    clarifying_questions: list[str] = []
    specialists: list[str] = []
    professional_recommendation: str | None = None
    crisis_warning: str | None = None
    indian_recommendations: list[IndianRecommendationView] = []


class DisplayRecord(BaseModel):
    id: str
    analysis_type: str
    title: str
    badge_variant: str
    label: str
    timestamp: str
    time_ago: str
    display: DisplayResult


def _text(value) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _text_list(value) -> list[str]:
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, list):
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]
    return []


def _indian(value) -> list[IndianRecommendationView]:
    if not isinstance(value, list):
        return []
    views = []
    for item in value:
        if not isinstance(item, dict):
            continue
        view = IndianRecommendationView(
            doctor_name=_text(item.get("doctorName")),
            hospital_name=_text(item.get("hospitalName")),
            specialty=_text(item.get("specialty")),
            phone_number=_text(item.get("phoneNumber")),
        )
        if view.doctor_name or view.hospital_name:
            views.append(view)
    return views


def _image(result: dict) -> DisplayResult:
    return DisplayResult(
        assessment=_text(result.get("assessment")),
        recommendations=_text_list(result.get("recommendations")),
        specialists=_text_list(result.get("doctorRecommendations")),
        indian_recommendations=_indian(result.get("indianMedicalRecommendations")),
    )


def _voice(result: dict) -> DisplayResult:
    return DisplayResult(
        potential_conditions=_text_list(result.get("potentialConditions")),
        clarifying_questions=_text_list(result.get("clarifyingQuestions")),
        specialists=_text_list(result.get("doctorRecommendations")),
        indian_recommendations=_indian(result.get("indianMedicalRecommendations")),
    )


def _symptom(result: dict) -> DisplayResult:
    urgency = result.get("urgency") if result.get("urgency") in URGENCY_LEVELS else None
    return DisplayResult(
        potential_conditions=_text_list(result.get("potentialConditions")),
        urgency=urgency,
        urgency_badge=URGENCY_BADGES.get(urgency),
        urgency_reasoning=_text(result.get("urgencyReasoning")),
        recommendations=_text_list(result.get("suggestedNextSteps")),
        specialists=_text_list(result.get("doctorRecommendations")),
        indian_recommendations=_indian(result.get("indianMedicalRecommendations")),
    )


def _mental_health(result: dict) -> DisplayResult:
    # Pass-through of the model's judgement; there is no independent crisis check.
    return DisplayResult(
        assessment=_text(result.get("assessment")),
        recommendations=_text_list(result.get("recommendations")),
        specialists=_text_list(result.get("resourceSuggestions")),
        crisis_warning=_text(result.get("crisisWarning")),
        indian_recommendations=_indian(result.get("indianMedicalRecommendations")),
    )


def _diet(result: dict) -> DisplayResult:
    return DisplayResult(
        nutritional_breakdown=_text(result.get("nutritionalBreakdown")),
        health_observations=_text_list(result.get("healthObservations")),
        recommendations=_text_list(result.get("improvementSuggestions")),
        professional_recommendation=_text(result.get("professionalRecommendation")),
        indian_recommendations=_indian(result.get("indianMedicalRecommendations")),
    )


_EXTRACTORS = {
    AnalysisType.IMAGE: _image,
    AnalysisType.VOICE: _voice,
    AnalysisType.SYMPTOM: _symptom,
    AnalysisType.MENTAL_HEALTH: _mental_health,
    AnalysisType.DIET: _diet,
}


def render_result(analysis_type: AnalysisType | str, result) -> DisplayResult:
    try:
        kind = AnalysisType(analysis_type)
    except ValueError:
        return DisplayResult()
    if not isinstance(result, dict):
        return DisplayResult()
    return _EXTRACTORS[kind](result)


def display_info(analysis_type: AnalysisType | str) -> tuple[str, str, str]:
    """(title, badge variant, label) for the dashboard header of a record."""
    try:
        return DISPLAY_INFO[AnalysisType(analysis_type)]
    except ValueError:
        return UNKNOWN_DISPLAY_INFO


def time_ago(then: datetime, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    seconds = int((now - then).total_seconds())
    if seconds < 45:
        return "less than a minute ago"
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            count = round(seconds / size)
            return f"{count} {unit}{'s' if count != 1 else ''} ago"
    return "1 minute ago"


def render_record(record: AnalysisRecord, now: datetime | None = None) -> DisplayRecord:
    title, variant, label = display_info(record.analysis_type)
    return DisplayRecord(
        id=record.id,
        analysis_type=record.analysis_type.value,
        title=title,
        badge_variant=variant,
        label=label,
        timestamp=record.timestamp.isoformat(),
        time_ago=time_ago(record.timestamp, now),
        display=render_result(record.analysis_type, record.result),
    )
