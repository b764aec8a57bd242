"""Embedding provider adapters (used by the ChromaDB manual index)."""

from repair_assistant.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider"]
