"""Text chunking with overlapping windows and paragraph boundary preservation.

Splits the text of one manual page into
:class:`~repair_assistant.models.index.DocumentChunk` objects sized for
embedding models (~500 tokens each with 100 tokens of overlap).

1. **Paragraph-preserving** -- chunk boundaries align with blank lines so
   a procedure step is not cut in half.
2. **Overlapping windows** -- consecutive chunks share ~100 tokens so a
   torque value on a boundary still appears next to its bolt.

A paragraph longer than the budget (long tables flattened to text) is
split at sentence boundaries with an abbreviation-aware splitter that
does not break on "approx.", "max.", "Fig." and similar.
"""

from __future__ import annotations

import re
import uuid

import structlog

from repair_assistant.models.index import DocumentChunk

logger = structlog.get_logger(logger_name=__name__)

# Abbreviations common in workshop manuals that must not end a sentence.
_ABBREVIATIONS = frozenset(
    {
        "approx",
        "max",
        "min",
        "Fig",
        "fig",
        "No",
        "no",
        "Nm",
        "ref",
        "Ref",
        "e.g",
        "i.e",
        "etc",
        "vs",
        "incl",
        "qty",
        "Vol",
        "Sect",
        "Sec",
    }
)


class TextChunker:
    """Splits page text into overlapping chunks preserving paragraphs.

    Parameters
    ----------
    chunk_size:
        Target maximum token count per chunk (default 500).
    overlap:
        Number of tokens of overlap between consecutive chunks (default 100).
    """

    def __init__(self, chunk_size: int = 500, overlap: int = 100) -> None:
        if overlap >= chunk_size:
            raise ValueError("overlap must be smaller than chunk_size")
        self._chunk_size = chunk_size
        self._overlap = overlap

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(self, text: str, source_metadata: dict[str, object]) -> list[DocumentChunk]:
        """Split *text* into overlapping :class:`DocumentChunk` objects.

        Parameters
        ----------
        text:
            Text of one page (or any span of a manual).
        source_metadata:
            Copied into every chunk.  Keys: ``document_id``, ``filename``
            and optionally ``page_number``.

        Returns
        -------
        list[DocumentChunk]
            One chunk per window.  Empty input returns an empty list.
        """
        if not text or not text.strip():
            return []

        paragraphs = self._split_paragraphs(text)
        raw_chunks = self._accumulate_chunks(paragraphs)

        page = source_metadata.get("page_number")
        chunks = [
            DocumentChunk(
                chunk_id=str(uuid.uuid4()),
                text=chunk_text,
                token_count=self.count_tokens(chunk_text),
                document_id=str(source_metadata.get("document_id", "")),
                filename=str(source_metadata.get("filename", "")),
                page_number=int(page) if page is not None else None,
            )
            for chunk_text in raw_chunks
        ]

        logger.debug(
            "chunking_complete",
            num_chunks=len(chunks),
            document_id=source_metadata.get("document_id"),
            page_number=page,
        )
        return chunks

    @staticmethod
    def count_tokens(text: str) -> int:
        """Approximate token count (four characters per token)."""
        return max(1, len(text) // 4) if text else 0

    # ------------------------------------------------------------------
    # Paragraph / sentence splitting
    # ------------------------------------------------------------------

    @staticmethod
    def _split_paragraphs(text: str) -> list[str]:
        parts = re.split(r"\n\s*\n", text)
        return [p.strip() for p in parts if p.strip()]

    def _split_sentences(self, text: str) -> list[str]:
        """Split *text* at ``.``, ``!`` or ``?`` followed by whitespace.

        Periods after known abbreviations are masked with ``\\x00`` first;
        the mask has the same length, so indices still line up with *text*.
        """
        masked = text
        for abbr in _ABBREVIATIONS:
            masked = masked.replace(f"{abbr}.", f"{abbr}\x00")

        sentences: list[str] = []
        last = 0
        for match in re.finditer(r"[.!?](?:\s|$)", masked):
            end = match.end()
            sentence = text[last:end].strip()
            if sentence:
                sentences.append(sentence)
            last = end

        remainder = text[last:].strip()
        if remainder:
            sentences.append(remainder)

        return sentences if sentences else [text]

    # ------------------------------------------------------------------
    # Chunk accumulation
    # ------------------------------------------------------------------

    def _accumulate_chunks(self, paragraphs: list[str]) -> list[str]:
        """Greedily pack paragraphs into chunks, carrying overlap forward."""
        chunks: list[str] = []
        current: list[tuple[str, int]] = []
        current_tokens = 0

        for para in paragraphs:
            para_tokens = self.count_tokens(para)

            if para_tokens > self._chunk_size:
                if current:
                    chunks.append("\n\n".join(t for t, _ in current))
                    current, current_tokens = [], 0
                chunks.extend(self._chunk_long_paragraph(para))
                continue

            if current_tokens + para_tokens > self._chunk_size and current:
                chunks.append("\n\n".join(t for t, _ in current))
                current, current_tokens = self._tail_overlap(current)

            current.append((para, para_tokens))
            current_tokens += para_tokens

        if current:
            chunks.append("\n\n".join(t for t, _ in current))

        return chunks

    def _chunk_long_paragraph(self, paragraph: str) -> list[str]:
        chunks: list[str] = []
        current: list[tuple[str, int]] = []
        current_tokens = 0

        for sentence in self._split_sentences(paragraph):
            sent_tokens = self.count_tokens(sentence)
            if current_tokens + sent_tokens > self._chunk_size and current:
                chunks.append(" ".join(t for t, _ in current))
                current, current_tokens = self._tail_overlap(current)
            current.append((sentence, sent_tokens))
            current_tokens += sent_tokens

        if current:
            chunks.append(" ".join(t for t, _ in current))

        return chunks

    def _tail_overlap(self, parts: list[tuple[str, int]]) -> tuple[list[tuple[str, int]], int]:
        """Return trailing *parts* whose combined tokens fit in the overlap."""
        tail: list[tuple[str, int]] = []
        tokens = 0
        for text, tok_count in reversed(parts):
            if tokens + tok_count > self._overlap:
                break
            tail.insert(0, (text, tok_count))
            tokens += tok_count
        return tail, tokens
