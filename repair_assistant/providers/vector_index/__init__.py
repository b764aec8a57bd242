"""Manual index backends.

    - OpenAIVectorStoreProvider — hosted OpenAI vector stores (default)
    - ChromaDBIndexProvider     — local ChromaDB collections + OpenAI embeddings

Selected by INDEX_BACKEND in main.py.  Both are imported lazily there so
the hosted backend never pays the ChromaDB import cost.
"""
