"""Concrete adapters for the interfaces in ``repair_assistant.interfaces``."""
