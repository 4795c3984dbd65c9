"""
Request builders: raw form input + active user ID -> typed analysis request.

Every builder raises AnalysisValidationError before anything is sent upstream.
"""
import base64

from pydantic import ValidationError

from medichat.core.errors import AnalysisValidationError
from medichat.schemas.analyze import (
    AnalysisRequest,
    DietaryAnalysisRequest,
    ImageAnalysisRequest,
    MentalHealthRequest,
    SymptomCheckRequest,
    VoiceDiagnosisRequest,
)


def validation_message(exc: ValidationError) -> str:
    """First readable message of a pydantic error (without the "Value error, " prefix)."""
    errs = exc.errors()
    if not errs:
        return "Invalid request."
    first = errs[0]
    ctx_error = (first.get("ctx") or {}).get("error")
    if ctx_error is not None:
        return str(ctx_error)
    return first.get("msg") or "Invalid request."


def _build(model: type[AnalysisRequest], **fields) -> AnalysisRequest:
    try:
        return model(**fields)
    except ValidationError as e:
        raise AnalysisValidationError(validation_message(e)) from e


def data_uri_from_upload(content: bytes, content_type: str | None, expected_prefix: str) -> str:
    """Encodes an uploaded file as a data URI; files outside expected_prefix ("image/", "audio/") are rejected."""
    mime = (content_type or "").split(";")[0].strip().lower()
    if not mime.startswith(expected_prefix):
        kind = expected_prefix.rstrip("/")
        raise AnalysisValidationError(f"Invalid file type ({mime or 'unknown'}). Please upload an {kind} file.")
    if not content:
        raise AnalysisValidationError("The selected file is empty.")
    b64 = base64.standard_b64encode(content).decode("utf-8")
    return f"data:{mime};base64,{b64}"


def build_image_request(user_id: str | None, description: str | None, photo_data_uri: str | None) -> ImageAnalysisRequest:
    return _build(ImageAnalysisRequest, user_id=user_id, description=description, photo_data_uri=photo_data_uri)


def build_voice_request(
    user_id: str | None,
    symptoms_description: str | None = None,
    audio_data_uri: str | None = None,
) -> VoiceDiagnosisRequest:
    return _build(
        VoiceDiagnosisRequest,
        user_id=user_id,
        symptoms_description=symptoms_description,
        audio_data_uri=audio_data_uri,
    )


def build_symptom_request(user_id: str | None, symptoms: str | None) -> SymptomCheckRequest:
    return _build(SymptomCheckRequest, user_id=user_id, symptoms=symptoms)


def build_mental_health_request(user_id: str | None, description: str | None) -> MentalHealthRequest:
    return _build(MentalHealthRequest, user_id=user_id, description=description)


def build_diet_request(
    user_id: str | None,
    description: str | None = None,
    photo_data_uri: str | None = None,
) -> DietaryAnalysisRequest:
    return _build(DietaryAnalysisRequest, user_id=user_id, description=description, photo_data_uri=photo_data_uri)
