"""Shared pytest fixtures for the repair assistant test suite."""

from __future__ import annotations

import hashlib
import io
import math
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import fitz
import pytest
from PIL import Image

from repair_assistant.interfaces.embedding_provider import IEmbeddingProvider
from repair_assistant.interfaces.llm_provider import ILLMProvider
from repair_assistant.interfaces.object_storage_provider import IObjectStorageProvider
from repair_assistant.interfaces.vector_index_provider import IVectorIndexProvider
from repair_assistant.models.catalog import CarBrand, CarModel, PdfDocument
from repair_assistant.models.index import IndexingStatus, IndexPassage
from repair_assistant.models.users import AuthenticatedUser, CurrentUser, UserProfile, UserRole
from repair_assistant.providers.database import (
    SQLiteCatalogProvider,
    SQLiteChatHistoryProvider,
    SQLiteUserProfileProvider,
)
from repair_assistant.providers.storage.local_storage_provider import LocalObjectStorageProvider

# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def png_bytes(width: int = 120, height: int = 80, color: str = "red") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


def make_pdf(pages: list[str], image_pages: tuple[int, ...] = ()) -> bytes:
    """Build a PDF in memory: one page per text, a PNG on each 1-based *image_pages*."""
    doc = fitz.open()
    for number, text in enumerate(pages, start=1):
        page = doc.new_page()
        page.insert_text((72, 72), text)
        if number in image_pages:
            page.insert_image(fitz.Rect(72, 120, 272, 253), stream=png_bytes())
    data = doc.tobytes()
    doc.close()
    return data


def make_user(
    user_id: str = "user-1",
    email: str | None = "tech@example.com",
    role: UserRole = UserRole.USER,
    approved: bool = True,
) -> CurrentUser:
    return CurrentUser(
        identity=AuthenticatedUser(user_id=user_id, email=email),
        profile=UserProfile(id=f"profile-{user_id}", user_id=user_id, username=email, role=role, approved=approved),
    )


# ---------------------------------------------------------------------------
# Domain samples
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_brand() -> CarBrand:
    return CarBrand(id="brand-1", name="voyah", display_name="Voyah")


@pytest.fixture
def sample_model(sample_brand: CarBrand) -> CarModel:
    return CarModel(
        id="model-1",
        brand_id=sample_brand.id,
        name="courage",
        display_name="Courage",
        vector_store_id="vs-1",
        brand=sample_brand,
    )


@pytest.fixture
def sample_document() -> PdfDocument:
    return PdfDocument(
        id="doc-1",
        model_id="model-1",
        filename="model-1/1700000000000-service_manual.pdf",
        original_filename="service manual.pdf",
        storage_path="model-1/1700000000000-service_manual.pdf",
        file_size=1024,
        vector_store_document_id="file-1",
    )


@pytest.fixture
def sample_passage() -> IndexPassage:
    return IndexPassage(
        document_id="file-1",
        filename="service manual.pdf",
        text="Brake pads: remove the two caliper bolts (torque 35 Nm).",
        score=0.82,
        page_number=12,
    )


# ---------------------------------------------------------------------------
# Mock providers
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_llm() -> MagicMock:
    llm = MagicMock(spec=ILLMProvider)
    llm.complete = AsyncMock(return_value="Remove the caliper bolts, see page 12 of the manual.")
    llm.vision_extract = AsyncMock(return_value="Worn brake pad, replace.")
    llm.supports_vision.return_value = True
    llm.is_available.return_value = True
    llm.get_provider_name.return_value = "mock-llm"
    return llm


@pytest.fixture
def mock_index() -> MagicMock:
    index = MagicMock(spec=IVectorIndexProvider)
    index.create_index = AsyncMock(return_value="vs-new")
    index.add_document = AsyncMock(return_value="file-new")
    index.get_document_status = AsyncMock(return_value=IndexingStatus.COMPLETED)
    index.remove_document = AsyncMock(return_value=None)
    index.search = AsyncMock(return_value=[])
    index.is_available.return_value = True
    index.get_provider_name.return_value = "mock-index"
    return index


@pytest.fixture
def mock_storage() -> MagicMock:
    storage = MagicMock(spec=IObjectStorageProvider)
    storage.upload = AsyncMock(side_effect=lambda bucket, path, data, content_type: path)
    storage.download = AsyncMock(return_value=b"%PDF-1.7 fake")
    storage.delete = AsyncMock(return_value=None)
    storage.public_url.side_effect = lambda bucket, path: f"https://cdn.test/{bucket}/{path}"
    storage.get_provider_name.return_value = "mock-storage"
    return storage


# ---------------------------------------------------------------------------
# Real SQLite / filesystem stores
# ---------------------------------------------------------------------------


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "repair_assistant.db"


@pytest.fixture
async def catalog_store(db_path: Path) -> SQLiteCatalogProvider:
    store = SQLiteCatalogProvider(db_path)
    await store.initialize()
    return store


@pytest.fixture
async def history_store(db_path: Path) -> SQLiteChatHistoryProvider:
    store = SQLiteChatHistoryProvider(db_path)
    await store.initialize()
    return store


@pytest.fixture
async def profile_store(db_path: Path) -> SQLiteUserProfileProvider:
    store = SQLiteUserProfileProvider(db_path)
    await store.initialize()
    return store


@pytest.fixture
def local_storage(tmp_path: Path) -> LocalObjectStorageProvider:
    return LocalObjectStorageProvider(tmp_path / "storage", public_base_url="/storage")


# ---------------------------------------------------------------------------
# Deterministic embeddings
# ---------------------------------------------------------------------------

_EMBEDDING_DIM = 32


def _bag_of_words_vector(text: str) -> list[float]:
    """Stable word-hash vector: texts sharing words end up close together."""
    vector = [0.0] * _EMBEDDING_DIM
    for word in text.lower().split():
        digest = hashlib.md5(word.strip(".,:;()").encode("utf-8")).digest()
        vector[digest[0] % _EMBEDDING_DIM] += 1.0
    norm = math.sqrt(sum(v * v for v in vector)) or 1.0
    return [v / norm for v in vector]


class MockEmbeddingProvider(IEmbeddingProvider):
    """In-memory deterministic embedding provider for tests."""

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return [_bag_of_words_vector(t) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        return _bag_of_words_vector(text)

    def get_dimension(self) -> int:
        return _EMBEDDING_DIM

    def get_provider_name(self) -> str:
        return "mock-embedding"

    def is_available(self) -> bool:
        return True
