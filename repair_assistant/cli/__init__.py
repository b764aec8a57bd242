"""Command-line tools for the repair assistant.

- ``python -m repair_assistant.cli index`` — pre-index manuals for one
  vehicle model or all of them.
- ``python -m repair_assistant.cli status`` — per-model manual / index state.

CLI commands build their own components rather than importing the web
application, so they start without the FastAPI stack.
"""
