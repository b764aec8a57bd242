"""Manual ingestion helpers: PDF reading and text chunking."""

from repair_assistant.services.ingestion.chunker import TextChunker
from repair_assistant.services.ingestion.pdf_reader import PageImage, PdfManualReader

__all__ = ["PageImage", "PdfManualReader", "TextChunker"]
