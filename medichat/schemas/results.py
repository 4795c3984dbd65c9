"""
Output schemas the model is asked to fill, one per analysis type.

Every field is optional: the completion client validates types here and the
normalizer back-fills whatever the model left out.
"""
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from medichat.models import AnalysisType


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class IndianMedicalRecommendation(_CamelModel):
    doctor_name: str = Field(description="Name of the recommended doctor, professional or clinic in India.")
    hospital_name: str = Field(description="Affiliated hospital, clinic or organization in India.")
    specialty: str = Field(description="Specialty of the doctor or focus of the clinic.")
    phone_number: str | None = Field(
        default=None,
        description="Placeholder or general contact number (e.g. 011-xxxxxxx) or helpline.",
    )


class ImageAnalysisResult(_CamelModel):
    assessment: str | None = Field(default=None, description="Preliminary assessment of the possible skin condition.")
    recommendations: str | None = Field(default=None, description="Recommended actions based on the assessment.")
    doctor_recommendations: list[str] | None = Field(
        default=None,
        description="Types of doctors or specialists to consult. At least one, default 'General Practitioner'.",
    )
    indian_medical_recommendations: list[IndianMedicalRecommendation] | None = Field(
        default=None,
        description="Up to 3 AI-generated medical recommendations in India; must be verified by the user.",
    )


class VoiceDiagnosisResult(_CamelModel):
    potential_conditions: list[str] | None = Field(default=None, description="Potential conditions based on the symptoms.")
    clarifying_questions: list[str] | None = Field(default=None, description="Questions that would clarify the symptoms.")
    doctor_recommendations: list[str] | None = Field(
        default=None,
        description="Specialists relevant to the potential conditions. At least one, default 'General Practitioner'.",
    )
    indian_medical_recommendations: list[IndianMedicalRecommendation] | None = None


class SymptomCheckResult(_CamelModel):
    potential_conditions: list[str] | None = Field(default=None, description="Potential conditions, most likely first.")
    urgency: Literal["Low", "Medium", "High"] | None = Field(default=None, description="Urgency of the symptoms.")
    urgency_reasoning: str | None = Field(default=None, description="Brief explanation of the urgency level.")
    suggested_next_steps: list[str] | None = Field(default=None, description="Actionable next steps with timelines.")
    doctor_recommendations: list[str] | None = Field(
        default=None,
        description="Specialists to consult. At least one, default 'General Practitioner'.",
    )
    indian_medical_recommendations: list[IndianMedicalRecommendation] | None = None


class MentalHealthResult(_CamelModel):
    assessment: str | None = Field(default=None, description="Preliminary, non-diagnostic assessment.")
    recommendations: list[str] | None = Field(default=None, description="General coping strategies.")
    resource_suggestions: list[str] | None = Field(
        default=None,
        description="Types of resources or professionals. Always include 'General Practitioner'.",
    )
    crisis_warning: str | None = Field(
        default=None,
        description="Only when the description explicitly indicates crisis, self-harm or harm to others.",
    )
    indian_medical_recommendations: list[IndianMedicalRecommendation] | None = None


class DietaryAnalysisResult(_CamelModel):
    nutritional_breakdown: str | None = Field(default=None, description="Estimated macronutrient breakdown.")
    health_observations: list[str] | None = Field(default=None, description="Observations about the meal or diet.")
    improvement_suggestions: list[str] | None = Field(default=None, description="Actionable improvement suggestions.")
    professional_recommendation: str | None = Field(
        default=None,
        description="Standard recommendation to consult a registered dietitian or healthcare provider.",
    )
    indian_medical_recommendations: list[IndianMedicalRecommendation] | None = None


RESULT_MODELS: dict[AnalysisType, type[_CamelModel]] = {
    AnalysisType.IMAGE: ImageAnalysisResult,
    AnalysisType.VOICE: VoiceDiagnosisResult,
    AnalysisType.SYMPTOM: SymptomCheckResult,
    AnalysisType.MENTAL_HEALTH: MentalHealthResult,
    AnalysisType.DIET: DietaryAnalysisResult,
}


def result_json_schema(analysis_type: AnalysisType) -> dict:
    """JSON schema (camelCase keys) handed to the model as the response contract."""
    return RESULT_MODELS[analysis_type].model_json_schema(by_alias=True)
