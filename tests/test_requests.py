"""Request builders reject bad input before any network call."""
import pytest

from medichat.core.errors import AnalysisValidationError
from medichat.schemas.analyze import check_data_uri
from medichat.services.requests import (
    build_diet_request,
    build_image_request,
    build_mental_health_request,
    build_symptom_request,
    build_voice_request,
    data_uri_from_upload,
)

PNG_URI = "data:image/png;base64,iVBORw0KGgo="
WAV_URI = "data:audio/wav;base64,UklGRiQAAABXQVZF"


@pytest.mark.parametrize("user_id", [None, "", "   "])
def test_every_builder_requires_user_id(user_id):
    builders = [
        lambda: build_image_request(user_id, "red rash", PNG_URI),
        lambda: build_voice_request(user_id, "sore throat"),
        lambda: build_symptom_request(user_id, "headache for three days"),
        lambda: build_mental_health_request(user_id, "I have been feeling low lately"),
        lambda: build_diet_request(user_id, "rice and lentils"),
    ]
    for build in builders:
        with pytest.raises(AnalysisValidationError, match="User ID is required to perform analysis."):
            build()


def test_user_id_checked_before_other_fields():
    with pytest.raises(AnalysisValidationError, match="User ID is required"):
        build_symptom_request("", "")


def test_image_request_needs_both_inputs():
    with pytest.raises(AnalysisValidationError, match="both an image and a description"):
        build_image_request("u1", "", PNG_URI)
    with pytest.raises(AnalysisValidationError, match="both an image and a description"):
        build_image_request("u1", "itchy spot", None)


def test_image_request_rejects_non_image():
    with pytest.raises(AnalysisValidationError, match="Invalid file type"):
        build_image_request("u1", "itchy spot", WAV_URI)


def test_image_request_ok():
    req = build_image_request("u1", "  itchy spot  ", PNG_URI)
    assert req.description == "itchy spot"
    assert req.photo_data_uri == PNG_URI


def test_voice_request_needs_text_or_audio():
    with pytest.raises(AnalysisValidationError, match="text, voice, or by uploading an audio file"):
        build_voice_request("u1", "  ", None)


def test_voice_request_rejects_image_as_audio():
    with pytest.raises(AnalysisValidationError, match="Invalid file type"):
        build_voice_request("u1", None, PNG_URI)


def test_voice_request_audio_only():
    req = build_voice_request("u1", audio_data_uri=WAV_URI)
    assert req.audio_data_uri == WAV_URI
    assert req.symptoms_description is None


@pytest.mark.parametrize("text", ["", "short", "   123456789   "])
def test_symptom_request_min_length(text):
    with pytest.raises(AnalysisValidationError, match="more detailed description"):
        build_symptom_request("u1", text)


def test_symptom_request_trims():
    assert build_symptom_request("u1", "  fever and chills  ").symptoms == "fever and chills"


def test_mental_health_min_length():
    with pytest.raises(AnalysisValidationError, match="more details about how you're feeling"):
        build_mental_health_request("u1", "a bit sad")
    assert build_mental_health_request("u1", "anxious before every exam").description


def test_diet_request_text_or_photo():
    with pytest.raises(AnalysisValidationError, match="describe your diet/meal or upload a photo"):
        build_diet_request("u1", "", "")
    assert build_diet_request("u1", photo_data_uri=PNG_URI).description is None
    assert build_diet_request("u1", "oats with milk").photo_data_uri is None


def test_check_data_uri_rejects_plain_text():
    with pytest.raises(ValueError, match="base64 data URI"):
        check_data_uri("https://example.com/a.png", "image/")


def test_data_uri_from_upload():
    uri = data_uri_from_upload(b"\x89PNG", "image/png", "image/")
    assert uri == "data:image/png;base64,iVBORw=="


def test_data_uri_from_upload_wrong_type():
    with pytest.raises(AnalysisValidationError, match=r"Invalid file type \(text/plain\)"):
        data_uri_from_upload(b"hello", "text/plain", "image/")


def test_data_uri_from_upload_empty():
    with pytest.raises(AnalysisValidationError, match="empty"):
        data_uri_from_upload(b"", "audio/wav", "audio/")
