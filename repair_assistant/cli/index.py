# =============================================================================
# repair_assistant/cli/index.py — Manual Index CLI
# =============================================================================
#
# Manuals are normally indexed lazily, on the first chat request for their
# vehicle model.  A model with several large PDFs can keep that first
# request waiting for minutes, so operators pre-index after a bulk upload.
#
# Supported subcommands:
#
#   index   — create the model's vector index if needed and upload every
#             manual that has no index-side id yet (one model or --all)
#   status  — print per-model manual counts and index state
#
# Usage examples:
#   python -m repair_assistant.cli index --model-id 3f2c...
#   python -m repair_assistant.cli index --all
#   python -m repair_assistant.cli status
# =============================================================================

"""Standalone CLI for pre-indexing repair manuals.

Usage::

    python -m repair_assistant.cli index --model-id <id>
    python -m repair_assistant.cli index --all
    python -m repair_assistant.cli status
"""

from __future__ import annotations

import argparse
import asyncio
import sys

import httpx

from repair_assistant.config.settings import Settings
from repair_assistant.utils.errors import RepairAssistantError


def _build_index_provider(app_settings: Settings):  # noqa: ANN202
    """Same backend selection as ``main.py``: hosted OpenAI or local ChromaDB."""
    if app_settings.index_backend == "chromadb":
        from repair_assistant.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )
        from repair_assistant.providers.vector_index.chromadb_provider import ChromaDBIndexProvider

        return ChromaDBIndexProvider(
            embedding_provider=OpenAIEmbeddingProvider(settings=app_settings),
            persist_directory=app_settings.chromadb_persist_dir,
        )

    from repair_assistant.providers.vector_index.openai_vector_store_provider import (
        OpenAIVectorStoreProvider,
    )

    return OpenAIVectorStoreProvider(settings=app_settings)


def _build_storage_provider(app_settings: Settings, http_client: httpx.AsyncClient):  # noqa: ANN202
    if app_settings.storage_backend == "supabase":
        from repair_assistant.providers.storage.supabase_storage_provider import (
            SupabaseStorageProvider,
        )

        return SupabaseStorageProvider(
            http_client=http_client,
            base_url=app_settings.supabase_url,
            service_key=app_settings.supabase_service_key,
        )

    from repair_assistant.providers.storage.local_storage_provider import LocalObjectStorageProvider

    return LocalObjectStorageProvider(
        root_dir=app_settings.local_storage_dir,
        public_base_url=app_settings.local_storage_public_url,
    )


async def _open_catalog(app_settings: Settings):  # noqa: ANN202
    from repair_assistant.providers.database.sqlite_catalog_provider import SQLiteCatalogProvider

    catalog = SQLiteCatalogProvider(app_settings.database_path)
    await catalog.initialize()
    return catalog


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_index(args: argparse.Namespace, app_settings: Settings) -> int:
    """Index one model (``--model-id``) or every model (``--all``)."""
    from repair_assistant.services.manual_index_service import ManualIndexService

    catalog = await _open_catalog(app_settings)
    async with httpx.AsyncClient(timeout=60.0) as http_client:
        service = ManualIndexService(
            catalog=catalog,
            index=_build_index_provider(app_settings),
            storage=_build_storage_provider(app_settings, http_client),
            manuals_bucket=app_settings.manuals_bucket,
            poll_interval=app_settings.index_poll_interval_seconds,
            poll_timeout=app_settings.index_poll_timeout_seconds,
        )

        if args.all:
            models = await catalog.list_models()
        else:
            model = await catalog.get_model(args.model_id)
            if model is None:
                print(f"Error: model {args.model_id} not found", file=sys.stderr)
                return 1
            models = [model]

        failures = 0
        for model in models:
            documents = await catalog.list_documents(model.id)
            if not documents:
                print(f"  {model.full_name:<40} no manuals, skipped")
                continue
            try:
                index_id = await service.ensure_indexed(model, documents)
            except RepairAssistantError as exc:
                print(f"  {model.full_name:<40} FAILED: {exc}", file=sys.stderr)
                failures += 1
                continue

            indexed = sum(1 for d in await catalog.list_documents(model.id) if d.is_indexed)
            print(f"  {model.full_name:<40} {indexed}/{len(documents)} manuals indexed ({index_id})")
            if indexed < len(documents):
                failures += 1

    return 1 if failures else 0


async def _handle_status(app_settings: Settings) -> int:
    """Print manual and index state for every model."""
    catalog = await _open_catalog(app_settings)
    models = await catalog.list_models()

    print("Manual Index Status")
    print("=" * 72)
    print(f"  Backend: {app_settings.index_backend}")
    if not models:
        print("  No vehicle models in the catalog.")
        return 0

    for model in models:
        documents = await catalog.list_documents(model.id)
        indexed = sum(1 for d in documents if d.is_indexed)
        index_id = model.vector_store_id or "-"
        print(f"  {model.full_name:<40} {indexed:>3}/{len(documents):<3} indexed  {index_id}")
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the index CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m repair_assistant.cli",
        description="Pre-index repair manuals into each vehicle model's vector index.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Index commands")

    # -- index --
    index_parser = subparsers.add_parser("index", help="Upload unindexed manuals")
    target = index_parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--model-id", help="Vehicle model id")
    target.add_argument("--all", action="store_true", help="Every model in the catalog")

    # -- status --
    subparsers.add_parser("status", help="Show per-model index state")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: parse the subcommand and dispatch to its handler."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()

    if args.command == "status":
        exit_code = asyncio.run(_handle_status(app_settings))
    elif args.command == "index":
        exit_code = asyncio.run(_handle_index(args, app_settings))
    else:
        parser.print_help()
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
