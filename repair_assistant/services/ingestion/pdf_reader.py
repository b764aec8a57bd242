"""PDF manual reading with PyMuPDF (fitz).

Extracts text page by page for the local index and pulls embedded
images (wiring diagrams, exploded views, connector pinouts) out of the
pages a chat answer refers to.
"""

from __future__ import annotations

from dataclasses import dataclass

import fitz  # PyMuPDF
import structlog

from repair_assistant.utils.errors import ValidationError

logger = structlog.get_logger(logger_name=__name__)

# Icons and rule lines are embedded as tiny images; skip them.
_MIN_IMAGE_SIDE = 64

_EXT_TO_MIME = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "jpx": "image/jp2",
    "webp": "image/webp",
    "bmp": "image/bmp",
    "gif": "image/gif",
    "tiff": "image/tiff",
}


@dataclass(frozen=True)
class PageImage:
    """An image embedded in a PDF page."""

    page: int
    index: int
    data: bytes
    mime_type: str
    width: int
    height: int


class PdfManualReader:
    """Reads repair-manual PDFs held in memory."""

    def extract_pages(self, data: bytes) -> list[tuple[int, str]]:
        """Return ``(page_number, text)`` for every page with text (1-based).

        Raises
        ------
        ValidationError
            If *data* is not a readable PDF.
        """
        with self._open(data) as doc:
            pages: list[tuple[int, str]] = []
            for page_index in range(doc.page_count):
                text = doc[page_index].get_text("text").strip()
                if text:
                    pages.append((page_index + 1, text))

        logger.debug("pdf_pages_extracted", pages_with_text=len(pages))
        return pages

    def find_pages(self, data: bytes, query: str, limit: int = 5) -> list[int]:
        """Return pages whose text contains the most words of *query*.

        Words shorter than three characters are ignored.  Pages with no
        matching words are never returned.
        """
        words = {w for w in query.lower().split() if len(w) >= 3}
        if not words:
            return []

        scored: list[tuple[int, int]] = []
        for page_number, text in self.extract_pages(data):
            lowered = text.lower()
            hits = sum(1 for w in words if w in lowered)
            if hits:
                scored.append((hits, page_number))

        scored.sort(key=lambda item: (-item[0], item[1]))
        return [page for _, page in scored[:limit]]

    def extract_images(self, data: bytes, pages: list[int]) -> list[PageImage]:
        """Return the embedded images of the given 1-based *pages*."""
        images: list[PageImage] = []
        with self._open(data) as doc:
            for page_number in pages:
                if page_number < 1 or page_number > doc.page_count:
                    continue
                page = doc[page_number - 1]
                position = 0
                for info in page.get_images(full=True):
                    extracted = doc.extract_image(info[0])
                    if not extracted:
                        continue
                    width = int(extracted.get("width", 0))
                    height = int(extracted.get("height", 0))
                    if min(width, height) < _MIN_IMAGE_SIDE:
                        continue
                    images.append(
                        PageImage(
                            page=page_number,
                            index=position,
                            data=extracted["image"],
                            mime_type=_EXT_TO_MIME.get(extracted.get("ext", ""), "application/octet-stream"),
                            width=width,
                            height=height,
                        )
                    )
                    position += 1
        return images

    @staticmethod
    def _open(data: bytes) -> fitz.Document:
        try:
            return fitz.open(stream=data, filetype="pdf")
        except RuntimeError as exc:
            raise ValidationError(message=f"Unreadable PDF: {exc}") from exc
