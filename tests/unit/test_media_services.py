"""Unit tests for the image analysis, voice and manual-image services."""

from __future__ import annotations

import base64
from unittest.mock import AsyncMock, MagicMock

import pytest

from repair_assistant.interfaces.catalog_provider import ICatalogProvider
from repair_assistant.interfaces.speech_provider import ISpeechSynthesisProvider
from repair_assistant.interfaces.transcription_provider import ITranscriptionProvider, TranscriptionResult
from repair_assistant.services.image_analysis_service import ImageAnalysisService
from repair_assistant.services.pdf_image_service import PdfImageService
from repair_assistant.services.voice_service import VoiceService
from repair_assistant.utils.errors import NotFoundError, ProviderUnavailableError, ValidationError
from tests.conftest import make_pdf, png_bytes


@pytest.fixture
def catalog(sample_model, sample_document) -> MagicMock:
    mock = MagicMock(spec=ICatalogProvider)
    mock.get_model = AsyncMock(return_value=sample_model)
    mock.get_document = AsyncMock(return_value=sample_document)
    return mock


# ======================================================================
# Image analysis
# ======================================================================


class TestImageAnalysisService:
    async def test_analysis_mentions_vehicle(self, mock_llm, catalog) -> None:
        service = ImageAnalysisService(mock_llm, catalog)
        encoded = "data:image/png;base64," + base64.b64encode(png_bytes()).decode()

        result = await service.analyze(encoded, model_id="model-1")

        assert result == "Worn brake pad, replace."
        args = mock_llm.vision_extract.call_args
        assert args.args[0] == png_bytes()
        assert "comprehensive technical assessment" in args.args[1]
        assert "electric vehicles, particularly the Voyah Courage." in args.kwargs["system_prompt"]
        assert args.kwargs["max_tokens"] == 2000

    async def test_without_model_uses_generic_prompt(self, mock_llm, catalog) -> None:
        service = ImageAnalysisService(mock_llm, catalog)

        await service.analyze(base64.b64encode(png_bytes()).decode())

        assert "specializing in electric vehicles.\n" in mock_llm.vision_extract.call_args.kwargs["system_prompt"]
        catalog.get_model.assert_not_awaited()

    async def test_large_photo_is_downscaled(self, mock_llm, catalog) -> None:
        service = ImageAnalysisService(mock_llm, catalog, max_dimension=64)

        await service.analyze(base64.b64encode(png_bytes(256, 128)).decode())

        sent = mock_llm.vision_extract.call_args.args[0]
        assert sent[:2] == b"\xff\xd8"

    async def test_missing_image(self, mock_llm, catalog) -> None:
        with pytest.raises(ValidationError, match="No image provided"):
            await ImageAnalysisService(mock_llm, catalog).analyze(None)

    async def test_llm_without_vision(self, mock_llm, catalog) -> None:
        mock_llm.supports_vision.return_value = False
        with pytest.raises(ProviderUnavailableError):
            await ImageAnalysisService(mock_llm, catalog).analyze(base64.b64encode(png_bytes()).decode())
        mock_llm.vision_extract.assert_not_awaited()


# ======================================================================
# Voice
# ======================================================================


class TestVoiceService:
    @pytest.fixture
    def voice(self) -> VoiceService:
        transcriber = MagicMock(spec=ITranscriptionProvider)
        transcriber.transcribe = AsyncMock(
            return_value=TranscriptionResult(text="check the coolant", language="en", duration_seconds=1.2)
        )
        synthesizer = MagicMock(spec=ISpeechSynthesisProvider)
        synthesizer.synthesize = AsyncMock(return_value=b"mp3")
        synthesizer.audio_format.return_value = "audio/mpeg"
        return VoiceService(transcriber, synthesizer)

    async def test_transcribe(self, voice) -> None:
        text = await voice.transcribe(base64.b64encode(b"webm").decode(), language="en")

        assert text == "check the coolant"
        voice._transcriber.transcribe.assert_awaited_once_with(b"webm", filename="recording.webm", language="en")

    async def test_transcribe_requires_audio(self, voice) -> None:
        with pytest.raises(ValidationError, match="No audio data provided"):
            await voice.transcribe("")

    async def test_speak_returns_base64(self, voice) -> None:
        assert await voice.speak("Torque to 35 Nm", language="en") == base64.b64encode(b"mp3").decode()
        assert voice.audio_format == "audio/mpeg"

    async def test_speak_requires_text(self, voice) -> None:
        with pytest.raises(ValidationError, match="Text is required"):
            await voice.speak("  ")


# ======================================================================
# Manual page images
# ======================================================================


class TestPdfImageService:
    @pytest.fixture
    def service(self, catalog, mock_storage) -> PdfImageService:
        mock_storage.download = AsyncMock(
            return_value=make_pdf(
                ["Contents", "Coolant pump exploded view", "Wiring diagram for the coolant pump"],
                image_pages=(2, 3),
            )
        )
        return PdfImageService(catalog, mock_storage)

    async def test_find_by_pages(self, service, mock_storage) -> None:
        images = await service.find_images("doc-1", pages=[3, 2, 3])

        assert [(i.page, i.index) for i in images] == [(2, 0), (3, 0)]
        assert images[0].url == "/api/v1/documents/doc-1/images/2/0"
        mock_storage.download.assert_awaited_once_with("repair-manuals", "model-1/1700000000000-service_manual.pdf")

    async def test_find_by_query(self, service) -> None:
        images = await service.find_images("doc-1", query="wiring diagram")
        assert [i.page for i in images] == [3]

    async def test_limit(self, service) -> None:
        assert len(await service.find_images("doc-1", pages=[2, 3], limit=1)) == 1

    async def test_query_or_pages_required(self, service) -> None:
        with pytest.raises(ValidationError):
            await service.find_images("doc-1")

    async def test_unknown_document(self, service, catalog) -> None:
        catalog.get_document = AsyncMock(return_value=None)
        with pytest.raises(NotFoundError):
            await service.find_images("missing", pages=[1])

    async def test_get_image(self, service) -> None:
        image = await service.get_image("doc-1", 2, 0)
        assert image.page == 2
        assert image.width == 120

        with pytest.raises(NotFoundError):
            await service.get_image("doc-1", 1, 0)
