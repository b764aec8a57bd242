"""Unit tests for PdfManualReader (PyMuPDF text and image extraction)."""

from __future__ import annotations

import pytest

from repair_assistant.services.ingestion.pdf_reader import PdfManualReader
from repair_assistant.utils.errors import ValidationError
from tests.conftest import make_pdf


@pytest.fixture
def reader() -> PdfManualReader:
    return PdfManualReader()


@pytest.fixture
def manual_pdf() -> bytes:
    return make_pdf(
        [
            "Contents and safety notes",
            "Front brake caliper removal procedure",
            "",
            "Brake caliper wiring diagram and brake pad wear sensor",
        ],
        image_pages=(2, 4),
    )


class TestExtractPages:
    def test_pages_with_text_are_numbered_from_one(self, reader, manual_pdf) -> None:
        pages = reader.extract_pages(manual_pdf)
        numbers = [number for number, _ in pages]

        assert numbers == [1, 2, 4]
        assert "caliper removal" in pages[1][1]

    def test_unreadable_pdf_raises(self, reader) -> None:
        with pytest.raises(ValidationError, match="Unreadable PDF"):
            reader.extract_pages(b"definitely not a pdf")


class TestFindPages:
    def test_pages_ranked_by_matching_words(self, reader, manual_pdf) -> None:
        assert reader.find_pages(manual_pdf, "brake caliper wiring") == [4, 2]

    def test_short_words_are_ignored(self, reader, manual_pdf) -> None:
        assert reader.find_pages(manual_pdf, "a of to") == []

    def test_limit(self, reader, manual_pdf) -> None:
        assert reader.find_pages(manual_pdf, "brake", limit=1) == [2]

    def test_no_matches(self, reader, manual_pdf) -> None:
        assert reader.find_pages(manual_pdf, "turbocharger") == []


class TestExtractImages:
    def test_images_of_requested_pages(self, reader, manual_pdf) -> None:
        images = reader.extract_images(manual_pdf, [2, 4])

        assert [(img.page, img.index) for img in images] == [(2, 0), (4, 0)]
        assert images[0].width == 120
        assert images[0].height == 80
        assert images[0].mime_type.startswith("image/")
        assert images[0].data

    def test_pages_without_images_or_out_of_range(self, reader, manual_pdf) -> None:
        assert reader.extract_images(manual_pdf, [1, 0, 99]) == []
