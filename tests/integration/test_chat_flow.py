"""End-to-end chat flow over real SQLite stores and local storage.

Only the LLM and the vector index are mocked: an admin uploads a manual,
a technician gets approved, opens a session and asks a question; the
manual is indexed lazily, the answer cites it, and both the messages
and the audit row are persisted.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from repair_assistant.interfaces.auth_provider import IAuthProvider
from repair_assistant.models.chat import ClientInfo, MessageRole
from repair_assistant.models.index import IndexPassage
from repair_assistant.models.users import AuthenticatedUser
from repair_assistant.services.catalog_service import CatalogService
from repair_assistant.services.chat_service import LLM_UNAVAILABLE_REPLY, ManualChatService
from repair_assistant.services.manual_index_service import ManualIndexService
from repair_assistant.services.pdf_image_service import PdfImageService
from repair_assistant.services.session_service import ChatSessionService
from repair_assistant.services.user_admin_service import UserAdminService
from repair_assistant.utils.errors import LLMError, StorageError
from tests.conftest import make_pdf

_MANUAL_PAGES = [
    "Courage service manual. Contents.",
    "Brake pads: remove the two caliper bolts and lift the caliper.",
    "Wiring diagram for the charging port.",
]


@pytest.fixture
def stack(catalog_store, history_store, profile_store, local_storage, mock_index, mock_llm):
    mock_index.search = AsyncMock(
        return_value=[
            IndexPassage(
                document_id="file-new",
                filename="brake manual.pdf",
                text=_MANUAL_PAGES[1],
                score=0.91,
                page_number=2,
            )
        ]
    )
    auth = MagicMock(spec=IAuthProvider)
    auth.delete_user = AsyncMock(return_value=True)

    index_service = ManualIndexService(
        catalog_store, mock_index, local_storage, poll_interval=0.01, poll_timeout=1.0
    )
    image_service = PdfImageService(catalog_store, local_storage)
    return {
        "index": mock_index,
        "llm": mock_llm,
        "storage": local_storage,
        "catalog": CatalogService(catalog_store, local_storage, index_service),
        "sessions": ChatSessionService(catalog_store, history_store),
        "users": UserAdminService(
            profile_store, auth, history_store, admin_emails=["boss@example.com"]
        ),
        "chat": ManualChatService(
            catalog_store,
            history_store,
            profile_store,
            index_service,
            mock_llm,
            image_service=image_service,
        ),
    }


async def _seed_manual(stack) -> tuple:
    catalog: CatalogService = stack["catalog"]
    brand = await catalog.create_brand("voyah", "Voyah")
    model = await catalog.create_model(brand.id, "courage", "Courage")
    pdf = make_pdf(_MANUAL_PAGES, image_pages=(2,))
    document = await catalog.upload_document(
        model.id, "brake manual.pdf", pdf, "application/pdf", uploaded_by="admin-1"
    )
    return model, document, pdf


async def _approved_technician(stack):
    users: UserAdminService = stack["users"]
    admin = await users.ensure_profile(AuthenticatedUser(user_id="admin-1", email="boss@example.com"))
    tech_identity = AuthenticatedUser(user_id="tech-1", email="tech@example.com")
    pending = await users.ensure_profile(tech_identity)
    assert pending.profile.can_use_assistant is False
    await users.set_approved("tech-1", True)
    return admin, await users.ensure_profile(tech_identity)


# ===================================================================
# Full flow
# ===================================================================


class TestChatFlow:
    async def test_upload_chat_and_audit(self, stack) -> None:
        model, document, pdf = await _seed_manual(stack)
        admin, tech = await _approved_technician(stack)
        assert admin.profile.is_admin
        assert tech.profile.can_use_assistant

        session = await stack["sessions"].open_session(tech, model.id)
        reply = await stack["chat"].respond(
            "How do I replace the brake pads?",
            model.id,
            session_id=session.id,
            requester=tech,
            client=ClientInfo(ip_address="203.0.113.7", user_agent="pytest"),
            include_images=True,
        )

        # Manual indexed lazily on first chat
        stack["index"].create_index.assert_awaited_once()
        stack["index"].add_document.assert_awaited_once_with("vs-new", "brake manual.pdf", pdf)
        refreshed = await stack["catalog"].get_model(model.id)
        assert refreshed.vector_store_id == "vs-new"
        [indexed] = await stack["catalog"].list_documents(model.id)
        assert indexed.vector_store_document_id == "file-new"

        # Grounded answer citing the uploaded manual
        assert reply.grounded is True
        assert reply.response == "Remove the caliper bolts, see page 12 of the manual."
        [source] = reply.sources
        assert source.document_id == document.id
        assert source.filename == "brake manual.pdf"
        assert source.page == 2
        assert [(i.page, i.index) for i in reply.source_images] == [(2, 0)]

        # Prompt carries the vehicle and the passage
        prompt = stack["llm"].complete.call_args.kwargs["user_prompt"]
        assert "Voyah Courage" in prompt
        assert "brake manual.pdf, page 2" in prompt

        # Messages persisted in order
        messages = await stack["sessions"].list_messages(tech, session.id)
        assert [m.role for m in messages] == [MessageRole.USER, MessageRole.ASSISTANT]
        assert messages[0].content == "How do I replace the brake pads?"
        assert messages[1].sources[0]["document_id"] == document.id

        # Audit row visible to the admin
        [log] = await stack["users"].interaction_logs(admin, user_id="tech-1")
        assert log.user_email == "tech@example.com"
        assert log.session_id == session.id
        assert log.model_name == "Voyah Courage"
        assert log.ip_address == "203.0.113.7"

    async def test_llm_outage_keeps_the_exchange(self, stack) -> None:
        model, _, _ = await _seed_manual(stack)
        _, tech = await _approved_technician(stack)
        stack["llm"].complete = AsyncMock(side_effect=LLMError("connection refused", provider_name="openai"))

        session = await stack["sessions"].open_session(tech, model.id)
        reply = await stack["chat"].respond("Brake pads?", model.id, session_id=session.id, requester=tech)

        assert reply.response == LLM_UNAVAILABLE_REPLY
        messages = await stack["sessions"].list_messages(tech, session.id)
        assert [(m.role, m.content) for m in messages] == [
            (MessageRole.USER, "Brake pads?"),
            (MessageRole.ASSISTANT, LLM_UNAVAILABLE_REPLY),
        ]

    async def test_second_chat_reuses_index(self, stack) -> None:
        model, _, _ = await _seed_manual(stack)
        _, tech = await _approved_technician(stack)

        for question in ("Brake pads?", "Caliper bolts?"):
            await stack["chat"].respond(question, model.id, requester=tech)

        stack["index"].create_index.assert_awaited_once()
        stack["index"].add_document.assert_awaited_once()
        assert stack["index"].search.await_count == 2

    async def test_session_resumed_for_same_model(self, stack) -> None:
        model, _, _ = await _seed_manual(stack)
        _, tech = await _approved_technician(stack)

        first = await stack["sessions"].open_session(tech, model.id)
        second = await stack["sessions"].open_session(tech, model.id)
        assert first.id == second.id

    async def test_deleting_manual_cleans_up(self, stack) -> None:
        model, document, _ = await _seed_manual(stack)
        _, tech = await _approved_technician(stack)
        await stack["chat"].respond("Brake pads?", model.id, requester=tech)

        await stack["catalog"].delete_document(document.id)

        stack["index"].remove_document.assert_awaited_once_with("vs-new", "file-new")
        assert await stack["catalog"].list_documents(model.id) == []
        with pytest.raises(StorageError):
            await stack["storage"].download("repair-manuals", document.storage_path)
