"""Unit tests for ManualIndexService: lazy index creation and document upload."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from repair_assistant.interfaces.catalog_provider import ICatalogProvider
from repair_assistant.models.index import IndexingStatus
from repair_assistant.services.manual_index_service import ManualIndexService
from repair_assistant.utils.errors import IndexingError, NotFoundError, StorageError


@pytest.fixture
def catalog(sample_model) -> MagicMock:
    mock = MagicMock(spec=ICatalogProvider)
    mock.get_model = AsyncMock(return_value=sample_model.model_copy(update={"vector_store_id": None}))
    mock.set_model_vector_store = AsyncMock()
    mock.set_document_vector_id = AsyncMock()
    return mock


@pytest.fixture
def service(catalog, mock_index, mock_storage) -> ManualIndexService:
    return ManualIndexService(catalog, mock_index, mock_storage, poll_interval=0.0, poll_timeout=1.0)


def _unindexed(document, **update):
    return document.model_copy(update={"vector_store_document_id": None, **update})


class TestEnsureIndexed:
    async def test_first_call_creates_index_and_uploads(
        self, service, catalog, mock_index, mock_storage, sample_model, sample_document
    ) -> None:
        document = _unindexed(sample_document)

        index_id = await service.ensure_indexed(sample_model, [document])

        assert index_id == "vs-new"
        mock_index.create_index.assert_awaited_once_with("Voyah Courage manuals")
        catalog.set_model_vector_store.assert_awaited_once_with("model-1", "vs-new")
        mock_storage.download.assert_awaited_once_with("repair-manuals", document.storage_path)
        mock_index.add_document.assert_awaited_once_with("vs-new", "service manual.pdf", b"%PDF-1.7 fake")
        catalog.set_document_vector_id.assert_awaited_once_with("doc-1", "file-new")

    async def test_existing_index_and_documents_are_reused(
        self, service, catalog, mock_index, sample_model, sample_document
    ) -> None:
        catalog.get_model = AsyncMock(return_value=sample_model)

        assert await service.ensure_indexed(sample_model, [sample_document]) == "vs-1"

        mock_index.create_index.assert_not_awaited()
        mock_index.add_document.assert_not_awaited()

    async def test_polls_until_terminal(self, service, catalog, mock_index, sample_model, sample_document) -> None:
        mock_index.get_document_status = AsyncMock(
            side_effect=[IndexingStatus.IN_PROGRESS, IndexingStatus.IN_PROGRESS, IndexingStatus.COMPLETED]
        )

        await service.ensure_indexed(sample_model, [_unindexed(sample_document)])

        assert mock_index.get_document_status.await_count == 3
        catalog.set_document_vector_id.assert_awaited_once()

    async def test_failed_indexing_is_not_persisted(
        self, service, catalog, mock_index, sample_model, sample_document
    ) -> None:
        mock_index.get_document_status = AsyncMock(return_value=IndexingStatus.FAILED)

        await service.ensure_indexed(sample_model, [_unindexed(sample_document)])

        catalog.set_document_vector_id.assert_not_awaited()

    async def test_poll_timeout_still_persists_id(self, catalog, mock_index, mock_storage, sample_model, sample_document) -> None:
        mock_index.get_document_status = AsyncMock(return_value=IndexingStatus.IN_PROGRESS)
        service = ManualIndexService(catalog, mock_index, mock_storage, poll_interval=0.0, poll_timeout=0.0)

        await service.ensure_indexed(sample_model, [_unindexed(sample_document)])

        catalog.set_document_vector_id.assert_awaited_once_with("doc-1", "file-new")

    async def test_download_failure_skips_document(
        self, service, catalog, mock_index, mock_storage, sample_model, sample_document
    ) -> None:
        mock_storage.download = AsyncMock(side_effect=[StorageError("gone"), b"%PDF"])
        docs = [_unindexed(sample_document), _unindexed(sample_document, id="doc-2")]

        await service.ensure_indexed(sample_model, docs)

        assert mock_index.add_document.await_count == 1
        catalog.set_document_vector_id.assert_awaited_once_with("doc-2", "file-new")

    async def test_index_creation_failure_propagates(self, service, mock_index, sample_model) -> None:
        mock_index.create_index = AsyncMock(side_effect=IndexingError("quota"))
        with pytest.raises(IndexingError):
            await service.ensure_indexed(sample_model, [])

    async def test_deleted_model(self, service, catalog, sample_model) -> None:
        catalog.get_model = AsyncMock(return_value=None)
        with pytest.raises(NotFoundError):
            await service.ensure_indexed(sample_model, [])

    async def test_concurrent_calls_create_one_index(
        self, service, catalog, mock_index, sample_model
    ) -> None:
        stored: dict[str, str | None] = {"vector_store_id": None}

        async def get_model(model_id):
            return sample_model.model_copy(update=stored)

        async def set_model_vector_store(model_id, index_id):
            stored["vector_store_id"] = index_id

        async def slow_create(name):
            await asyncio.sleep(0.01)
            return "vs-new"

        catalog.get_model = AsyncMock(side_effect=get_model)
        catalog.set_model_vector_store = AsyncMock(side_effect=set_model_vector_store)
        mock_index.create_index = AsyncMock(side_effect=slow_create)

        results = await asyncio.gather(
            service.ensure_indexed(sample_model, []),
            service.ensure_indexed(sample_model, []),
        )

        assert results == ["vs-new", "vs-new"]
        mock_index.create_index.assert_awaited_once()


class TestRemoveDocument:
    async def test_removes_indexed_document(self, service, mock_index, sample_document) -> None:
        await service.remove_document("vs-1", sample_document)
        mock_index.remove_document.assert_awaited_once_with("vs-1", "file-1")

    async def test_skips_unindexed_document(self, service, mock_index, sample_document) -> None:
        await service.remove_document("vs-1", _unindexed(sample_document))
        await service.remove_document(None, sample_document)
        mock_index.remove_document.assert_not_awaited()

    async def test_index_errors_are_swallowed(self, service, mock_index, sample_document) -> None:
        mock_index.remove_document = AsyncMock(side_effect=IndexingError("gone"))
        await service.remove_document("vs-1", sample_document)
