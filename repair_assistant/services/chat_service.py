"""Retrieval-grounded chat over a vehicle model's repair manuals.

One call to :meth:`ManualChatService.respond` handles one user message:

    1. MANUALS   -- look up the model (with brand) and its PDF documents.
                    No documents → fixed "no manuals" reply, no LLM call.
    2. INDEX     -- make sure every manual is in the model's vector index.
    3. RETRIEVE  -- search the index for passages relevant to the message.
    4. ANSWER    -- one LLM completion with the manual-bound system prompt
                    and the retrieved passages appended to the user turn.
    5. PERSIST   -- append the user and assistant messages to the session.
    6. AUDIT     -- write an interaction log row for admins.

Failures never surface as exceptions from steps 2-6: they turn into one
of the fixed apology strings below (steps 2-4) or are only logged
(steps 5-6).  Nothing is retried.
"""

from __future__ import annotations

from typing import Any

import structlog

from repair_assistant.interfaces.catalog_provider import ICatalogProvider
from repair_assistant.interfaces.chat_history_provider import IChatHistoryProvider
from repair_assistant.interfaces.llm_provider import ILLMProvider
from repair_assistant.interfaces.user_profile_provider import IUserProfileProvider
from repair_assistant.models.catalog import CarModel, PdfDocument
from repair_assistant.models.chat import (
    ChatReply,
    ChatSession,
    ChatSource,
    ClientInfo,
    MessageRole,
    SourceImage,
)
from repair_assistant.models.index import IndexPassage
from repair_assistant.models.users import CurrentUser
from repair_assistant.services.manual_index_service import ManualIndexService
from repair_assistant.services.pdf_image_service import PdfImageService
from repair_assistant.utils.errors import (
    LLMError,
    PermissionDeniedError,
    PersistenceError,
    RepairAssistantError,
    ValidationError,
)
from repair_assistant.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

NO_MANUALS_REPLY = (
    "No repair manuals are available for this model yet. "
    "Please contact support to upload the PDFs for this vehicle."
)
LLM_UNAVAILABLE_REPLY = (
    "I'm currently unable to access the repair manual information. Please try again in a moment."
)
EMPTY_REPLY = "I'm having trouble processing your question right now. Please try again."
PROCESSING_FAILED_REPLY = "I'm currently unable to process your question. Please try again in a moment."

_SNIPPET_CHARS = 300

_SYSTEM_PROMPT = """\
You are an expert automotive technician assistant specializing in {vehicle} vehicles.

You have access to the following repair manuals: {manuals}

IMPORTANT INSTRUCTIONS:
1. Only provide answers based on the repair manual content for this specific vehicle model
2. If you don't have specific information about the question in the manuals, clearly state that
3. Always be specific about which manual section or page you're referencing when possible
4. Provide detailed, step-by-step instructions when appropriate
5. Include safety warnings and precautions when relevant
6. Focus on practical repair and maintenance information

If the question is not related to vehicle repair or maintenance, politely redirect the \
conversation back to automotive topics.

Always cite the exact section/page when possible based on the retrieved passages. \
Answer in {language}."""


class ManualChatService:
    """Answers repair questions from the manuals of one vehicle model.

    Parameters
    ----------
    catalog:
        Source of models and their manuals.
    history:
        Session/message store and interaction audit log.
    profiles:
        Used to resolve a session owner's name for the audit log when the
        caller is anonymous.
    index_service:
        Keeps manuals indexed; its index backend answers searches.
    llm:
        Text completion provider.
    image_service:
        Optional; when given, replies can carry references to images on
        the cited manual pages.
    """

    def __init__(
        self,
        catalog: ICatalogProvider,
        history: IChatHistoryProvider,
        profiles: IUserProfileProvider,
        index_service: ManualIndexService,
        llm: ILLMProvider,
        image_service: PdfImageService | None = None,
        top_k: int = 8,
        max_output_tokens: int = 800,
        temperature: float = 0.3,
        source_images_per_reply: int = 4,
    ) -> None:
        self._catalog = catalog
        self._history = history
        self._profiles = profiles
        self._index_service = index_service
        self._llm = llm
        self._image_service = image_service
        self._top_k = top_k
        self._max_output_tokens = max_output_tokens
        self._temperature = temperature
        self._source_images_per_reply = source_images_per_reply

    async def respond(
        self,
        message: str,
        model_id: str | None,
        session_id: str | None = None,
        language: str = "en",
        requester: CurrentUser | None = None,
        client: ClientInfo | None = None,
        include_images: bool = False,
    ) -> ChatReply:
        """Answer *message* about the vehicle *model_id*.

        Raises
        ------
        ValidationError
            If *message* is empty.
        PermissionDeniedError
            If *session_id* belongs to another user and the requester
            is not an admin.
        """
        if not message or not message.strip():
            raise ValidationError(message="Message is required")

        session = await self._resolve_session(session_id, requester)

        model = await self._catalog.get_model(model_id) if model_id else None
        documents = await self._catalog.list_documents(model.id) if model else []
        logger.info(
            "chat_request_received",
            model_id=model_id,
            session_id=session_id,
            language=language,
            manuals=len(documents),
        )

        if model is None or not documents:
            reply = ChatReply(response=NO_MANUALS_REPLY)
        else:
            reply = await self._grounded_reply(message, model, documents, language, include_images)

        if session is not None:
            await self._persist_exchange(session, message, reply)
        await self._log_interaction(message, reply, model, session, requester, client)

        logger.info(
            "chat_reply_generated",
            model_id=model_id,
            session_id=session_id,
            grounded=reply.grounded,
            sources=len(reply.sources),
            source_images=len(reply.source_images),
        )
        return reply

    # ------------------------------------------------------------------
    # Answer generation
    # ------------------------------------------------------------------

    async def _grounded_reply(
        self,
        message: str,
        model: CarModel,
        documents: list[PdfDocument],
        language: str,
        include_images: bool,
    ) -> ChatReply:
        try:
            index_id = await self._index_service.ensure_indexed(model, documents)
            if not all(d.is_indexed for d in documents):
                # Pick up the index-side ids written by ensure_indexed.
                documents = await self._catalog.list_documents(model.id)
            passages = await self._index_service.index.search(index_id, message, top_k=self._top_k)
        except RepairAssistantError as exc:
            logger.error("chat_retrieval_failed", model_id=model.id, error=str(exc))
            return ChatReply(response=PROCESSING_FAILED_REPLY)

        system_prompt = self.build_system_prompt(model, documents, language)
        user_prompt = self.build_user_prompt(model, message, passages)

        try:
            text = await self._llm.complete(
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                temperature=self._temperature,
                max_tokens=self._max_output_tokens,
            )
        except LLMError as exc:
            logger.error("chat_llm_failed", model_id=model.id, provider=exc.provider_name, error=exc.message)
            return ChatReply(response=LLM_UNAVAILABLE_REPLY)

        if not text or not text.strip():
            logger.warning("chat_llm_empty_reply", model_id=model.id)
            return ChatReply(response=EMPTY_REPLY)

        text = text.strip()
        if not passages and "manual" not in text.lower():
            text += (
                "\n\n*This response is based on general automotive knowledge. For specific "
                f"procedures, please refer to the {model.display_name} repair manuals.*"
            )

        sources = self._to_sources(passages, documents)
        images: list[SourceImage] = []
        if include_images and sources:
            images = await self._source_images(message, sources)

        return ChatReply(response=text, sources=sources, source_images=images, grounded=bool(passages))

    @staticmethod
    def build_system_prompt(model: CarModel, documents: list[PdfDocument], language: str) -> str:
        manuals = ", ".join(d.original_filename or "Manual" for d in documents)
        return _SYSTEM_PROMPT.format(vehicle=model.full_name, manuals=manuals, language=language)

    @staticmethod
    def build_user_prompt(model: CarModel, message: str, passages: list[IndexPassage]) -> str:
        prompt = f"Regarding {model.full_name}: {message}"
        if not passages:
            return prompt + "\n\nNo passages matching this question were found in the manuals."

        parts = [prompt, "", "Retrieved manual passages:"]
        for number, passage in enumerate(passages, start=1):
            location = passage.filename
            if passage.page_number:
                location += f", page {passage.page_number}"
            parts.append(f"\n[{number}] ({location})\n{passage.text}")
        return "\n".join(parts)

    @staticmethod
    def _to_sources(passages: list[IndexPassage], documents: list[PdfDocument]) -> list[ChatSource]:
        by_external_id = {d.vector_store_document_id: d for d in documents if d.vector_store_document_id}
        seen: set[tuple[str, int | None]] = set()
        sources: list[ChatSource] = []
        for passage in passages:
            document = by_external_id.get(passage.document_id)
            filename = document.original_filename if document else passage.filename
            key = (filename, passage.page_number)
            if key in seen:
                continue
            seen.add(key)
            sources.append(
                ChatSource(
                    document_id=document.id if document else None,
                    filename=filename,
                    page=passage.page_number,
                    score=passage.score,
                    snippet=passage.text[:_SNIPPET_CHARS],
                )
            )
        return sources

    async def _source_images(self, message: str, sources: list[ChatSource]) -> list[SourceImage]:
        if self._image_service is None:
            return []

        pages_by_document: dict[str, list[int]] = {}
        for source in sources:
            if source.document_id is None:
                continue
            pages = pages_by_document.setdefault(source.document_id, [])
            if source.page is not None:
                pages.append(source.page)

        images: list[SourceImage] = []
        for document_id, pages in pages_by_document.items():
            remaining = self._source_images_per_reply - len(images)
            if remaining <= 0:
                break
            try:
                found = await self._image_service.find_images(
                    document_id,
                    query=None if pages else message,
                    pages=pages or None,
                    limit=remaining,
                )
            except RepairAssistantError as exc:
                logger.warning("chat_source_images_failed", document_id=document_id, error=str(exc))
                continue
            images.extend(found)
        return images

    # ------------------------------------------------------------------
    # Persistence and audit
    # ------------------------------------------------------------------

    async def _resolve_session(
        self, session_id: str | None, requester: CurrentUser | None
    ) -> ChatSession | None:
        if not session_id:
            return None
        session = await self._history.get_session(session_id)
        if session is None:
            logger.warning("chat_session_not_found", session_id=session_id)
            return None
        if requester is not None and session.user_id != requester.user_id and not requester.profile.is_admin:
            raise PermissionDeniedError(message="Session belongs to another user")
        return session

    async def _persist_exchange(self, session: ChatSession, message: str, reply: ChatReply) -> None:
        sources: list[dict[str, Any]] | None = None
        if reply.sources or reply.source_images:
            sources = [s.model_dump() for s in reply.sources]
            sources.extend({"type": "image", **i.model_dump()} for i in reply.source_images)
        try:
            await self._history.add_message(session.id, MessageRole.USER, message)
            await self._history.add_message(session.id, MessageRole.ASSISTANT, reply.response, sources)
        except PersistenceError as exc:
            logger.error("chat_messages_not_saved", session_id=session.id, error=str(exc))

    async def _log_interaction(
        self,
        message: str,
        reply: ChatReply,
        model: CarModel | None,
        session: ChatSession | None,
        requester: CurrentUser | None,
        client: ClientInfo | None,
    ) -> None:
        if requester is None and session is None:
            logger.debug("interaction_log_skipped_anonymous")
            return

        user_id = requester.user_id if requester is not None else session.user_id
        try:
            if requester is not None:
                user_email = requester.email
            else:
                profile = await self._profiles.get_profile(user_id)
                user_email = profile.username if profile else None

            await self._history.log_interaction(
                user_id,
                message,
                reply.response,
                user_email=user_email,
                session_id=session.id if session else None,
                model_name=model.full_name if model else None,
                interaction_type="chat",
                client=client,
            )
        except PersistenceError as exc:
            logger.error("interaction_log_failed", user_id=user_id, error=str(exc))
