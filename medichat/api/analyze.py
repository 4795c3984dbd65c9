import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic.alias_generators import to_snake
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from medichat.api.deps import get_store
from medichat.core.config import settings
from medichat.core.errors import StoreError
from medichat.core.rate_limit import analyze_limit, limiter
from medichat.models import AnalysisType
from medichat.schemas.analyze import AnalyzeResponse
from medichat.services.analyze import complete
from medichat.services.inflight import inflight
from medichat.services.render import render_result
from medichat.services.requests import (
    build_diet_request,
    build_image_request,
    build_mental_health_request,
    build_symptom_request,
    build_voice_request,
    data_uri_from_upload,
)
from medichat.services.store import RecordStore
from medichat.session import UserSession, require_active_session

log = logging.getLogger(__name__)

router = APIRouter(prefix="/analyze", tags=["analyze"])
_TRUE_VALUES = {"1", "true", "on", "yes"}


def _as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in _TRUE_VALUES


async def _read_upload(upload: UploadFile, expected_prefix: str) -> str | None:
    """Uploaded file -> data URI; an empty file input (nothing chosen) counts as absent."""
    content = await upload.read()
    if not content and not upload.filename:
        return None
    max_bytes = settings.upload_max_mb * 1024 * 1024
    if len(content) > max_bytes:
        raise HTTPException(status_code=413, detail=f"File must be at most {settings.upload_max_mb} MB.")
    return data_uri_from_upload(content, upload.content_type, expected_prefix)


async def _read_input(
    request: Request,
    text_fields: tuple[str, ...],
    media_field: str | None = None,
    media_prefix: str = "",
) -> tuple[dict, bool]:
    """
    Form fields from a JSON body (camelCase keys, media as data URIs) or a multipart form
    (media as a "file" upload). Returns (builder kwargs, save flag).
    """
    content_type = (request.headers.get("content-type") or "").lower()
    if "application/json" in content_type:
        try:
            body = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid JSON body.")
        if not isinstance(body, dict):
            raise HTTPException(status_code=400, detail="JSON body must be an object.")
        names = text_fields + ((media_field,) if media_field else ())
        fields = {name: body.get(name) for name in names}
        save = _as_bool(body.get("save"))
    else:
        form = await request.form()
        fields = {name: form.get(name) for name in text_fields}
        if media_field:
            upload = form.get("file")
            if isinstance(upload, UploadFile):
                fields[media_field] = await _read_upload(upload, media_prefix)
            else:
                fields[media_field] = form.get(media_field)
        save = _as_bool(form.get("save"))
    return {to_snake(name): value for name, value in fields.items()}, save


async def _run_analysis(
    analysis_type: AnalysisType,
    analysis_request,
    save: bool,
    store: RecordStore,
) -> AnalyzeResponse:
    user_id = analysis_request.user_id
    # The form stays busy until the save has finished too.
    with inflight.hold(user_id, analysis_type.value):
        result = await run_in_threadpool(complete, analysis_request)
        response = AnalyzeResponse(
            analysis_type=analysis_type,
            result=result,
            display=render_result(analysis_type, result).model_dump(),
        )
        if save:
            try:
                response.record_id = await run_in_threadpool(store.save, user_id, analysis_type, result)
                response.saved = True
            except StoreError as e:
                # The result is still shown; only the save is reported as failed.
                log.warning("Save after %s failed for user %s: %s", analysis_type.value, user_id, e)
                response.save_error = f"Analysis succeeded but saving failed: {e}"
    return response


@router.post("/image", response_model=AnalyzeResponse)
@limiter.limit(analyze_limit)
async def analyze_image(
    request: Request,
    session: UserSession = Depends(require_active_session),
    store: RecordStore = Depends(get_store),
):
    """Skin image + description. Multipart: description, file (image/*). JSON: description, photoDataUri."""
    fields, save = await _read_input(request, ("description",), "photoDataUri", "image/")
    analysis_request = build_image_request(session.user_id, **fields)
    return await _run_analysis(AnalysisType.IMAGE, analysis_request, save, store)


@router.post("/voice", response_model=AnalyzeResponse)
@limiter.limit(analyze_limit)
async def analyze_voice(
    request: Request,
    session: UserSession = Depends(require_active_session),
    store: RecordStore = Depends(get_store),
):
    """Symptoms as text and/or an audio recording (the recording wins when both are sent)."""
    fields, save = await _read_input(request, ("symptomsDescription",), "audioDataUri", "audio/")
    analysis_request = build_voice_request(session.user_id, **fields)
    return await _run_analysis(AnalysisType.VOICE, analysis_request, save, store)


@router.post("/symptoms", response_model=AnalyzeResponse)
@limiter.limit(analyze_limit)
async def analyze_symptoms(
    request: Request,
    session: UserSession = Depends(require_active_session),
    store: RecordStore = Depends(get_store),
):
    fields, save = await _read_input(request, ("symptoms",))
    analysis_request = build_symptom_request(session.user_id, **fields)
    return await _run_analysis(AnalysisType.SYMPTOM, analysis_request, save, store)


@router.post("/mental-health", response_model=AnalyzeResponse)
@limiter.limit(analyze_limit)
async def analyze_mental_health(
    request: Request,
    session: UserSession = Depends(require_active_session),
    store: RecordStore = Depends(get_store),
):
    fields, save = await _read_input(request, ("description",))
    analysis_request = build_mental_health_request(session.user_id, **fields)
    return await _run_analysis(AnalysisType.MENTAL_HEALTH, analysis_request, save, store)


@router.post("/diet", response_model=AnalyzeResponse)
@limiter.limit(analyze_limit)
async def analyze_diet(
    request: Request,
    session: UserSession = Depends(require_active_session),
    store: RecordStore = Depends(get_store),
):
    """Meal description and/or meal photo."""
    fields, save = await _read_input(request, ("description",), "photoDataUri", "image/")
    analysis_request = build_diet_request(session.user_id, **fields)
    return await _run_analysis(AnalysisType.DIET, analysis_request, save, store)
