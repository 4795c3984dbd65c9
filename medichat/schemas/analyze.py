import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel

from medichat.models import AnalysisType

SYMPTOMS_MIN_LENGTH = 10
MENTAL_HEALTH_MIN_LENGTH = 15

# data:<type>/<subtype>[;param=value...];base64,<payload>
DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?:;[\w.+-]+=[\w.+-]+)*;base64,(?P<data>.+)$", re.S)


def check_data_uri(value: str, expected_prefix: str) -> str:
    """Accepts only a base64 data URI whose MIME type starts with expected_prefix ("image/", "audio/")."""
    match = DATA_URI_RE.match(value.strip())
    if not match:
        raise ValueError("Media must be a base64 data URI (data:<mimetype>;base64,<data>).")
    mime = match.group("mime").lower()
    if not mime.startswith(expected_prefix):
        kind = expected_prefix.rstrip("/")
        raise ValueError(f"Invalid file type ({mime}). Please upload an {kind} file.")
    return value.strip()


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str) and not v.strip():
        return None
    return v


class AnalysisRequest(BaseModel):
    """Common part of every analysis request: the active user ID."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str

    @field_validator("user_id", mode="before")
    @classmethod
    def user_id_required(cls, v: str | None) -> str:
        if v is None or not str(v).strip():
            raise ValueError("User ID is required to perform analysis.")
        return str(v)


class ImageAnalysisRequest(AnalysisRequest):
    photo_data_uri: str
    description: str

    @field_validator("photo_data_uri", "description", mode="before")
    @classmethod
    def both_required(cls, v: str | None) -> str:
        if v is None or not str(v).strip():
            raise ValueError("Please provide both an image and a description.")
        return v

    @field_validator("photo_data_uri")
    @classmethod
    def image_only(cls, v: str) -> str:
        return check_data_uri(v, "image/")

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str) -> str:
        return v.strip()


class VoiceDiagnosisRequest(AnalysisRequest):
    symptoms_description: str | None = None
    audio_data_uri: str | None = None

    @field_validator("symptoms_description", "audio_data_uri", mode="before")
    @classmethod
    def blank_is_missing(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("audio_data_uri")
    @classmethod
    def audio_only(cls, v: str | None) -> str | None:
        return check_data_uri(v, "audio/") if v is not None else None

    @model_validator(mode="after")
    def text_or_audio(self):
        if not self.symptoms_description and not self.audio_data_uri:
            raise ValueError("Please describe your symptoms using text, voice, or by uploading an audio file.")
        return self


class SymptomCheckRequest(AnalysisRequest):
    symptoms: str

    @field_validator("symptoms", mode="before")
    @classmethod
    def detailed_enough(cls, v: str | None) -> str:
        text = str(v or "").strip()
        if len(text) < SYMPTOMS_MIN_LENGTH:
            raise ValueError("Please provide a more detailed description of your symptoms.")
        return text


class MentalHealthRequest(AnalysisRequest):
    description: str

    @field_validator("description", mode="before")
    @classmethod
    def detailed_enough(cls, v: str | None) -> str:
        text = str(v or "").strip()
        if len(text) < MENTAL_HEALTH_MIN_LENGTH:
            raise ValueError("Please provide more details about how you're feeling or your concerns.")
        return text


class DietaryAnalysisRequest(AnalysisRequest):
    description: str | None = None
    photo_data_uri: str | None = None

    @field_validator("description", "photo_data_uri", mode="before")
    @classmethod
    def blank_is_missing(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("photo_data_uri")
    @classmethod
    def image_only(cls, v: str | None) -> str | None:
        return check_data_uri(v, "image/") if v is not None else None

    @model_validator(mode="after")
    def text_or_photo(self):
        if not self.description and not self.photo_data_uri:
            raise ValueError("Please describe your diet/meal or upload a photo.")
        return self


REQUEST_MODELS: dict[AnalysisType, type[AnalysisRequest]] = {
    AnalysisType.IMAGE: ImageAnalysisRequest,
    AnalysisType.VOICE: VoiceDiagnosisRequest,
    AnalysisType.SYMPTOM: SymptomCheckRequest,
    AnalysisType.MENTAL_HEALTH: MentalHealthRequest,
    AnalysisType.DIET: DietaryAnalysisRequest,
}


class AnalysisRecord(BaseModel):
    """Exchange form of a saved analysis; timestamp is an aware UTC instant, ISO-8601 on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    user_id: str
    analysis_type: AnalysisType
    timestamp: datetime
    result: dict


class SaveAnalysisRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    analysis_type: AnalysisType
    result: dict


class SaveAnalysisResponse(BaseModel):
    id: str


class AnalyzeResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    analysis_type: AnalysisType
    result: dict
    display: dict
    saved: bool = False
    record_id: str | None = None
    save_error: str | None = None


class HistoryResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str | None = None
    records: list[AnalysisRecord]
    warning: str | None = None
