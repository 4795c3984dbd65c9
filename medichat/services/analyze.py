import json
import logging
import time

from openai import APIConnectionError, APIError, AuthenticationError, OpenAI, RateLimitError

from medichat.core.config import get_openai_keys, settings
from medichat.core.errors import AnalysisValidationError, CompletionError
from medichat.models import AnalysisType
from medichat.schemas.analyze import (
    DATA_URI_RE,
    REQUEST_MODELS,
    AnalysisRequest,
    DietaryAnalysisRequest,
    ImageAnalysisRequest,
    MentalHealthRequest,
    SymptomCheckRequest,
    VoiceDiagnosisRequest,
)
from medichat.schemas.results import result_json_schema
from medichat.services.normalize import normalize_result, validate_result

logger = logging.getLogger(__name__)

# One client per key (key failover)
_openai_clients: dict[str, OpenAI] = {}

# On these, the next configured key is tried. Anything else fails the request.
OPENAI_FALLBACK_EXCEPTIONS = (AuthenticationError, RateLimitError)

_ANALYSIS_TYPE_OF: dict[type[AnalysisRequest], AnalysisType] = {model: t for t, model in REQUEST_MODELS.items()}

AUDIO_FORMATS = {
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/vnd.wave": "wav",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
}


def _get_client_for_key(key: str) -> OpenAI:
    if key not in _openai_clients:
        _openai_clients[key] = OpenAI(api_key=key, timeout=settings.openai_timeout)
    return _openai_clients[key]


def _openai_create_with_fallback(create_fn):
    """
    Calls create_fn(client); on AuthenticationError or RateLimitError moves on to the next key.
    When every key fails the last error is raised as a CompletionError.
    """
    keys = get_openai_keys()
    if not keys:
        raise CompletionError(
            "OPENAI_API_KEY is missing or invalid. Add OPENAI_API_KEY=sk-... or OPENAI_API_KEYS=sk-1,sk-2 to .env.",
            status_code=503,
        )
    last_exc: Exception | None = None
    for key in keys:
        try:
            client = _get_client_for_key(key)
            return create_fn(client)
        except OPENAI_FALLBACK_EXCEPTIONS as e:
            last_exc = e
            logger.warning("OpenAI key skipped (%s), trying next: %s", key[:12] + "...", e)
            continue
    _raise_completion_error(last_exc)


def ping_openai() -> tuple[bool, float, str | None]:
    """
    Minimal one-token OpenAI call for /health/ai. Tries the keys in order.
    Returns: (success, latency_ms, error_message_or_none)
    """
    t0 = time.perf_counter()
    keys = get_openai_keys()
    last_err: str | None = None
    for key in keys:
        try:
            client = _get_client_for_key(key)
            client.chat.completions.create(
                model=settings.openai_model,
                messages=[{"role": "user", "content": "Hi"}],
                max_tokens=1,
            )
            latency_ms = round((time.perf_counter() - t0) * 1000, 2)
            return (True, latency_ms, None)
        except Exception as e:
            last_err = str(e).strip()[:500] if str(e) else type(e).__name__
            if isinstance(e, OPENAI_FALLBACK_EXCEPTIONS):
                continue
            latency_ms = round((time.perf_counter() - t0) * 1000, 2)
            return (False, latency_ms, last_err)
    latency_ms = round((time.perf_counter() - t0) * 1000, 2)
    return (False, latency_ms, last_err or "No OpenAI key configured.")


def _raise_completion_error(exc: Exception | None) -> None:
    """Maps OpenAI errors onto CompletionError with a matching HTTP status (503 so it is not mistaken for a user 401)."""
    if isinstance(exc, AuthenticationError):
        raise CompletionError(
            "AI access failed: check OPENAI_API_KEY in .env and that billing is enabled.",
            status_code=503,
        ) from exc
    if isinstance(exc, RateLimitError):
        raise CompletionError("AI is busy: please try again shortly.", status_code=429) from exc
    if isinstance(exc, APIConnectionError):
        raise CompletionError("AI connection problem: the service is temporarily unreachable.", status_code=503) from exc
    if isinstance(exc, APIError):
        raise CompletionError("AI service error: this may be temporary.", status_code=502) from exc
    raise CompletionError("Unexpected error during analysis.", status_code=500) from exc


SYSTEM_PROMPT = (
    "You are an AI health-information assistant giving preliminary, non-diagnostic insights. "
    "Answer ONLY with a JSON object that conforms to the provided output schema, without any text around it. "
    "Suggestions of professionals in India are AI-generated and must be marked for independent verification."
)

FEATURE_PROMPTS: dict[AnalysisType, str] = {
    AnalysisType.IMAGE: (
        "Analyze the photo and description of a skin condition. Give a concise assessment with potential causes, "
        "actionable recommendations including when to seek professional care, the types of specialists relevant "
        "to your assessment (at least one, 'General Practitioner' if unsure) and up to 3 professionals or "
        "hospitals in India."
    ),
    AnalysisType.VOICE: (
        "Analyze the described symptoms (transcribe the audio first when a recording is attached). List potential "
        "conditions, clarifying questions, specialists relevant to those conditions (at least one, "
        "'General Practitioner' if unsure) and up to 3 professionals or hospitals in India."
    ),
    AnalysisType.SYMPTOM: (
        "Analyze the symptom description. List potential conditions most likely first, assess urgency as Low, "
        "Medium or High (chest pain, difficulty breathing, sudden severe headache or stroke signs are High), "
        "explain the urgency briefly, give next steps with timelines, recommend specialists (always include "
        "'General Practitioner' when unsure) and up to 3 professionals or hospitals in India. "
        "Do not give a definitive diagnosis."
    ),
    AnalysisType.MENTAL_HEALTH: (
        "With empathy and caution, give a preliminary assessment of the described feelings (no diagnosis), general "
        "coping strategies, resources or professionals to consider (always include 'General Practitioner') and up "
        "to 3 mental health professionals, organizations or helplines in India. Fill crisisWarning ONLY when the "
        "description explicitly mentions immediate crisis, self-harm or harm to others; otherwise leave it out."
    ),
    AnalysisType.DIET: (
        "Analyze the meal or diet (description and/or photo; the description is primary). Estimate the nutritional "
        "breakdown, clearly marked as an estimate, give health observations and general improvement suggestions, a "
        "standard recommendation to consult a registered dietitian, and up to 3 dietitians or nutritionists in India."
    ),
}


def _media_part(data_uri: str) -> dict:
    """Chat content part for an image or audio data URI."""
    match = DATA_URI_RE.match(data_uri)
    mime = match.group("mime").lower() if match else ""
    if mime.startswith("image/"):
        return {"type": "image_url", "image_url": {"url": data_uri, "detail": "high"}}
    audio_format = AUDIO_FORMATS.get(mime)
    if not match or audio_format is None:
        raise AnalysisValidationError("Unsupported audio format. Please upload a WAV or MP3 file.")
    return {"type": "input_audio", "input_audio": {"data": match.group("data"), "format": audio_format}}


def _user_content(analysis_type: AnalysisType, request: AnalysisRequest) -> list[dict]:
    lines = [FEATURE_PROMPTS[analysis_type], "", f"User ID: {request.user_id}"]
    media: str | None = None
    if isinstance(request, ImageAnalysisRequest):
        lines.append(f"Description: {request.description}")
        media = request.photo_data_uri
    elif isinstance(request, VoiceDiagnosisRequest):
        # A recording, when present, is the primary input.
        if request.audio_data_uri:
            media = request.audio_data_uri
            lines.append("Symptoms provided via the attached audio recording.")
        else:
            lines.append(f"Text description: {request.symptoms_description}")
    elif isinstance(request, SymptomCheckRequest):
        lines.append(f"Symptoms description:\n{request.symptoms}")
    elif isinstance(request, MentalHealthRequest):
        lines.append(f"User description:\n{request.description}")
    elif isinstance(request, DietaryAnalysisRequest):
        if request.description:
            lines.append(f"Description: {request.description}")
        if request.photo_data_uri:
            media = request.photo_data_uri
            lines.append("Meal photo attached: identify foods and estimate portions.")
    content = [{"type": "text", "text": "\n".join(lines)}]
    if media:
        content.append(_media_part(media))
    return content


def _response_format(analysis_type: AnalysisType, audio: bool) -> dict:
    if audio:
        # Audio chat models take plain JSON mode; the schema travels in the system message.
        return {"type": "json_object"}
    return {
        "type": "json_schema",
        "json_schema": {
            "name": analysis_type.value,
            "schema": result_json_schema(analysis_type),
            "strict": False,
        },
    }


def complete(request: AnalysisRequest) -> dict:
    """
    One completion for a built request. Returns the validated, back-filled result.
    Raises CompletionError on transport faults and on null / malformed output; nothing is retried here.
    """
    analysis_type = _ANALYSIS_TYPE_OF[type(request)]
    content = _user_content(analysis_type, request)
    audio = any(part["type"] == "input_audio" for part in content)
    system_msg = SYSTEM_PROMPT + "\n\nOutput schema:\n" + json.dumps(result_json_schema(analysis_type))
    model = settings.openai_audio_model if audio else settings.openai_model

    def _create(client: OpenAI):
        return client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_msg},
                {"role": "user", "content": content},
            ],
            response_format=_response_format(analysis_type, audio),
        )

    t0 = time.perf_counter()
    try:
        response = _openai_create_with_fallback(_create)
    except CompletionError:
        raise
    except (AuthenticationError, RateLimitError, APIConnectionError, APIError) as e:
        logger.exception("OpenAI API error in complete(%s): %s", analysis_type.value, e)
        _raise_completion_error(e)
    except Exception as e:
        logger.exception("Unexpected error in complete(%s): %s", analysis_type.value, e)
        _raise_completion_error(e)

    raw = response.choices[0].message.content if response.choices else None
    logger.info(
        "completion %s: model=%s latency_ms=%.2f content_len=%s",
        analysis_type.value,
        model,
        (time.perf_counter() - t0) * 1000,
        len(raw or ""),
    )
    if not raw:
        raise CompletionError("Received null output from the AI model.")
    try:
        data = json.loads(raw)
    except ValueError as e:
        logger.warning("AI output for %s is not JSON: %.200s", analysis_type.value, raw)
        raise CompletionError("AI output was not valid JSON.") from e
    return normalize_result(analysis_type, validate_result(analysis_type, data))
