#!/usr/bin/env python3
"""Seed the curriculum catalog from the manifest and source documents.

Reads data/curriculum.yaml, segments each text's source document and writes
phases, texts, passages and study guides. By default only texts not already
stored are added, continuing the passage id sequence; --reset rebuilds the
catalog from passage-001 (and drops recorded progress and journal entries).

Run with: python3 -m scripts.seed_curriculum [--reset] [--strict]
"""
# Suppress SQL logging BEFORE any imports
import os
os.environ["LOG_SQL"] = "false"

import argparse
import asyncio
import sys
from pathlib import Path

from core.config import settings
from core.database import Base, engine, get_db_session
from core.errors import Err, Ok
from core.logging import configure_logging
from ingest.catalog import Catalog, catalog_from_manifest
from ingest.exceptions import CatalogBuildError, SourceMissingError
from ingest.pipeline import CatalogWriter, load_state
from ingest.sources import load_manifest

BACKEND_DIR = Path(__file__).parent.parent

# ANSI color codes
C_RESET = "\033[0m"
C_BOLD = "\033[1m"
C_DIM = "\033[2m"
C_GREEN = "\033[32m"
C_YELLOW = "\033[33m"
C_CYAN = "\033[36m"
C_RED = "\033[31m"


def resolve(path: str) -> Path:
    """Settings paths are relative to the backend directory."""
    p = Path(path)
    return p if p.is_absolute() else (BACKEND_DIR / p).resolve()


def print_catalog(catalog: Catalog) -> None:
    print(f"\n{C_BOLD}{C_CYAN}▶ Catalog{C_RESET}")
    print(f"{C_DIM}{'─' * 50}{C_RESET}")
    for text in catalog.texts:
        marker = f"{C_GREEN}✓{C_RESET}" if text.total_passages else f"{C_YELLOW}○{C_RESET}"
        first = text.passages[0].id if text.passages else "-"
        last = text.passages[-1].id if text.passages else "-"
        print(f"  {marker} {text.spec.title:<28} {text.total_passages:>5} passages  {C_DIM}{first} … {last}{C_RESET}")
    for issue in catalog.issues:
        print(f"  {C_YELLOW}⚠ {issue.text_id}: [{issue.code}] {issue.message}{C_RESET}")


async def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the Stoa curriculum catalog")
    parser.add_argument("--manifest", default=settings.CURRICULUM_MANIFEST, help="Curriculum manifest (YAML)")
    parser.add_argument("--sources", default=settings.SOURCES_DIR, help="Root directory of source documents")
    parser.add_argument("--reset", action="store_true", help="Clear the catalog and rebuild from passage-001")
    parser.add_argument("--strict", action="store_true", help="Fail if any text cannot be segmented")
    args = parser.parse_args()

    configure_logging(level=settings.LOG_LEVEL, json_logs=settings.LOG_JSON, log_sql=False)

    try:
        manifest = load_manifest(resolve(args.manifest))
    except SourceMissingError as e:
        print(f"{C_RED}✗ {e}{C_RESET}")
        return 1

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    writer = CatalogWriter()
    async with get_db_session() as session:
        if args.reset:
            match await writer.clear(session):
                case Err(e):
                    print(f"{C_RED}✗ Could not clear catalog: {e.message}{C_RESET}")
                    return 1
            print(f"{C_DIM}Cleared existing catalog{C_RESET}")

        state = await load_state(session)
        try:
            catalog = catalog_from_manifest(
                manifest,
                resolve(args.sources),
                skip_text_ids=state.text_ids,
                start_sequence=state.next_sequence,
                strict=args.strict,
            )
        except CatalogBuildError as e:
            print(f"{C_RED}✗ {e}{C_RESET}")
            return 1

        print_catalog(catalog)

        match await writer.write(session, catalog):
            case Err(e):
                print(f"\n{C_RED}✗ Write failed: [{e.code.name}] {e.message}{C_RESET}")
                return 1
            case Ok(stats):
                print(f"\n{C_BOLD}  Results:{C_RESET}")
                print(f"    {C_GREEN}✓ Phases:{C_RESET}      {stats.phases_created:>6}")
                print(f"    {C_GREEN}✓ Texts:{C_RESET}       {stats.texts_created:>6}")
                if stats.texts_filled:
                    print(f"    {C_GREEN}✓ Refilled:{C_RESET}    {stats.texts_filled:>6}")
                print(f"    {C_GREEN}✓ Passages:{C_RESET}    {stats.passages_created:>6}")
                print(f"    {C_GREEN}✓ Guides:{C_RESET}      {stats.study_guides_created:>6}")
                if stats.passages_renumbered:
                    print(f"    {C_YELLOW}↻ Reordered:{C_RESET}   {stats.passages_renumbered:>6}")
                print(f"    {C_DIM}Next id:{C_RESET}      passage-{stats.next_sequence:03d}")

    await engine.dispose()
    print(f"\n{C_BOLD}{C_GREEN}✓ Curriculum seeding complete{C_RESET}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
