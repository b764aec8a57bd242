"""Unit tests for the SQLite catalog, chat history and user profile stores."""

from __future__ import annotations

import asyncio

import pytest

from repair_assistant.models.chat import ClientInfo, MessageRole
from repair_assistant.models.users import UserRole
from repair_assistant.providers.database import SQLiteCatalogProvider, SQLiteUserProfileProvider
from repair_assistant.utils.errors import PersistenceError, ValidationError


# ======================================================================
# Catalog
# ======================================================================


class TestSQLiteCatalogProvider:
    async def test_brand_crud(self, catalog_store) -> None:
        brand = await catalog_store.create_brand("voyah", "Voyah")
        assert brand.name == "voyah"
        assert brand.created_at is not None

        updated = await catalog_store.update_brand(brand.id, display_name="VOYAH")
        assert updated.display_name == "VOYAH"

        assert [b.id for b in await catalog_store.list_brands()] == [brand.id]
        assert await catalog_store.delete_brand(brand.id) is True
        assert await catalog_store.get_brand(brand.id) is None
        assert await catalog_store.delete_brand(brand.id) is False

    async def test_duplicate_brand_rejected(self, catalog_store) -> None:
        await catalog_store.create_brand("voyah", "Voyah")
        with pytest.raises(ValidationError, match="already exists"):
            await catalog_store.create_brand("voyah", "Voyah again")

    async def test_update_rejects_unknown_columns(self, catalog_store) -> None:
        brand = await catalog_store.create_brand("voyah", "Voyah")
        with pytest.raises(ValidationError, match="Cannot update"):
            await catalog_store.update_brand(brand.id, id="hijack")

    async def test_model_is_returned_with_brand(self, catalog_store) -> None:
        brand = await catalog_store.create_brand("voyah", "Voyah")
        model = await catalog_store.create_model(brand.id, "courage", "Courage")
        assert model.brand is not None
        assert model.full_name == "Voyah Courage"
        assert model.vector_store_id is None

        await catalog_store.set_model_vector_store(model.id, "vs-1")
        fetched = await catalog_store.get_model(model.id)
        assert fetched.vector_store_id == "vs-1"

    async def test_model_with_unknown_brand_rejected(self, catalog_store) -> None:
        with pytest.raises(ValidationError):
            await catalog_store.create_model("missing-brand", "courage", "Courage")

    async def test_list_models_filters_by_brand(self, catalog_store) -> None:
        voyah = await catalog_store.create_brand("voyah", "Voyah")
        zeekr = await catalog_store.create_brand("zeekr", "Zeekr")
        await catalog_store.create_model(voyah.id, "courage", "Courage")
        await catalog_store.create_model(zeekr.id, "001", "001")

        assert len(await catalog_store.list_models()) == 2
        only_voyah = await catalog_store.list_models(voyah.id)
        assert [m.name for m in only_voyah] == ["courage"]

    async def test_documents_keep_upload_order(self, catalog_store) -> None:
        brand = await catalog_store.create_brand("voyah", "Voyah")
        model = await catalog_store.create_model(brand.id, "courage", "Courage")
        first = await catalog_store.create_document(model.id, "a.pdf", "A.pdf", "m/a.pdf", 10)
        second = await catalog_store.create_document(model.id, "b.pdf", "B.pdf", "m/b.pdf", 20)

        documents = await catalog_store.list_documents(model.id)
        assert [d.id for d in documents] == [first.id, second.id]
        assert not documents[0].is_indexed

        await catalog_store.set_document_vector_id(first.id, "file-1")
        assert (await catalog_store.get_document(first.id)).is_indexed

    async def test_deleting_brand_cascades_to_models_and_documents(self, catalog_store) -> None:
        brand = await catalog_store.create_brand("voyah", "Voyah")
        model = await catalog_store.create_model(brand.id, "courage", "Courage")
        document = await catalog_store.create_document(model.id, "a.pdf", "A.pdf", "m/a.pdf", 10)

        await catalog_store.delete_brand(brand.id)

        assert await catalog_store.get_model(model.id) is None
        assert await catalog_store.get_document(document.id) is None

    async def test_settings_round_trip_json_values(self, catalog_store) -> None:
        await catalog_store.put_setting("theme", {"primary": "#112233"})
        await catalog_store.put_setting("logo_url", "/storage/assets/logo.png")
        await catalog_store.put_setting("logo_url", "/storage/assets/logo2.png")

        assert (await catalog_store.get_setting("theme")).value == {"primary": "#112233"}
        assert (await catalog_store.get_setting("logo_url")).value == "/storage/assets/logo2.png"
        assert [s.key for s in await catalog_store.list_settings()] == ["logo_url", "theme"]
        assert await catalog_store.get_setting("missing") is None

    async def test_database_failures_raise_persistence_error(self, tmp_path) -> None:
        store = SQLiteCatalogProvider(tmp_path / "never_initialized.db")

        with pytest.raises(PersistenceError, match="no such table"):
            await store.list_documents("model-1")

    async def test_corrupt_database_file(self, tmp_path) -> None:
        db_file = tmp_path / "corrupt.db"
        db_file.write_bytes(b"this is not a sqlite database" * 100)
        profiles = SQLiteUserProfileProvider(db_file)

        with pytest.raises(PersistenceError):
            await profiles.get_profile("user-1")


# ======================================================================
# Chat history
# ======================================================================


class TestSQLiteChatHistoryProvider:
    async def test_messages_come_back_in_insertion_order(self, history_store) -> None:
        session = await history_store.create_session("user-1", "model-1", "Courage Repair Chat")
        await history_store.add_message(session.id, MessageRole.USER, "How do I change pads?")
        await history_store.add_message(
            session.id,
            MessageRole.ASSISTANT,
            "Remove the caliper.",
            sources=[{"filename": "manual.pdf", "page": 12}],
        )

        messages = await history_store.list_messages(session.id)
        assert [m.role for m in messages] == [MessageRole.USER, MessageRole.ASSISTANT]
        assert messages[1].sources == [{"filename": "manual.pdf", "page": 12}]
        assert messages[0].sources is None

    async def test_latest_session_prefers_most_recent_activity(self, history_store) -> None:
        older = await history_store.create_session("user-1", "model-1", "first")
        newer = await history_store.create_session("user-1", "model-1", "second")
        await asyncio.sleep(0.01)
        await history_store.add_message(older.id, MessageRole.USER, "bump")

        latest = await history_store.latest_session("user-1", "model-1")
        assert latest.id == older.id
        sessions = await history_store.list_sessions("user-1")
        assert [s.id for s in sessions] == [older.id, newer.id]
        assert await history_store.latest_session("user-2", "model-1") is None

    async def test_interaction_logs_filter_and_paginate(self, history_store) -> None:
        for n in range(3):
            await history_store.log_interaction(
                "user-1",
                f"question {n}",
                f"answer {n}",
                user_email="tech@example.com",
                model_name="Voyah Courage",
                client=ClientInfo(ip_address="10.0.0.1", user_agent="pytest"),
            )
        await history_store.log_interaction("user-2", "other", None)

        mine = await history_store.list_interactions(user_id="user-1")
        assert [log.message_content for log in mine] == ["question 2", "question 1", "question 0"]
        assert mine[0].ip_address == "10.0.0.1"
        assert mine[0].interaction_type == "chat"

        page = await history_store.list_interactions(limit=2, offset=1)
        assert len(page) == 2
        assert len(await history_store.list_interactions()) == 4


# ======================================================================
# User profiles
# ======================================================================


class TestSQLiteUserProfileProvider:
    async def test_create_profile_is_idempotent(self, profile_store) -> None:
        first = await profile_store.create_profile("user-1", "tech@example.com")
        again = await profile_store.create_profile("user-1", "other@example.com", role=UserRole.ADMIN)

        assert again.id == first.id
        assert again.username == "tech@example.com"
        assert again.role is UserRole.USER
        assert again.approved is False

    async def test_role_approval_and_login(self, profile_store) -> None:
        await profile_store.create_profile("user-1", "tech@example.com")

        promoted = await profile_store.set_role("user-1", UserRole.ADMIN)
        assert promoted.is_admin

        approved = await profile_store.set_approved("user-1", True)
        assert approved.approved is True

        logged = await profile_store.record_login("user-1", "192.168.1.5")
        assert logged.last_ip_address == "192.168.1.5"
        assert logged.last_login is not None

    async def test_missing_profile_updates_return_none(self, profile_store) -> None:
        assert await profile_store.set_role("ghost", UserRole.ADMIN) is None
        assert await profile_store.delete_profile("ghost") is False

    async def test_delete_profile(self, profile_store) -> None:
        await profile_store.create_profile("user-1", None)
        assert await profile_store.delete_profile("user-1") is True
        assert await profile_store.get_profile("user-1") is None
        assert await profile_store.list_profiles() == []
