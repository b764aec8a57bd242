"""Public interface definitions for all external collaborators.

Every external API, store or service is reached only through the
abstract base classes in this package.  Concrete adapters live in
``repair_assistant/providers/`` and are wired in ``repair_assistant/main.py``.

CONCRETE PROVIDER MAP:
    Interface                  →  Concrete implementations
    ─────────────────────────────────────────────────────────────────────
    ILLMProvider               →  OpenAILLMProvider, AnthropicLLMProvider
    IEmbeddingProvider         →  OpenAIEmbeddingProvider
    IVectorIndexProvider       →  OpenAIVectorStoreProvider, ChromaDBIndexProvider
    ITranscriptionProvider     →  WhisperAPIProvider
    ISpeechSynthesisProvider   →  OpenAITTSProvider
    IObjectStorageProvider     →  LocalObjectStorageProvider, SupabaseStorageProvider
    IAuthProvider              →  SupabaseAuthProvider
    ICatalogProvider           →  SQLiteCatalogProvider
    IChatHistoryProvider       →  SQLiteChatHistoryProvider
    IUserProfileProvider       →  SQLiteUserProfileProvider
"""

from repair_assistant.interfaces.auth_provider import IAuthProvider
from repair_assistant.interfaces.catalog_provider import ICatalogProvider
from repair_assistant.interfaces.chat_history_provider import IChatHistoryProvider
from repair_assistant.interfaces.embedding_provider import IEmbeddingProvider
from repair_assistant.interfaces.llm_provider import ILLMProvider
from repair_assistant.interfaces.object_storage_provider import IObjectStorageProvider
from repair_assistant.interfaces.speech_provider import ISpeechSynthesisProvider
from repair_assistant.interfaces.transcription_provider import (
    ITranscriptionProvider,
    TranscriptionResult,
)
from repair_assistant.interfaces.user_profile_provider import IUserProfileProvider
from repair_assistant.interfaces.vector_index_provider import IVectorIndexProvider

__all__ = [
    "IAuthProvider",
    "ICatalogProvider",
    "IChatHistoryProvider",
    "IEmbeddingProvider",
    "ILLMProvider",
    "IObjectStorageProvider",
    "ISpeechSynthesisProvider",
    "ITranscriptionProvider",
    "IUserProfileProvider",
    "IVectorIndexProvider",
    "TranscriptionResult",
]
