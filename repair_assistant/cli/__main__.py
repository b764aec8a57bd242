"""Allow ``python -m repair_assistant.cli`` execution."""

from repair_assistant.cli.index import main

main()
