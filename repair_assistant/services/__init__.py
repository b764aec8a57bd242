"""Application services: the chat flow, manual indexing, catalog and user
administration, and the image/voice/page-image media features."""
