#!/usr/bin/env python3
"""Replace a seeded text's passage content with another translation.

Run with: python3 -m scripts.update_translation path/to/translation.json [--text text-001]
"""
import os
os.environ["LOG_SQL"] = "false"

import argparse
import asyncio
import sys

from core.config import settings
from core.database import engine, get_db_session
from core.errors import Err, Ok
from core.logging import configure_logging
from ingest.exceptions import SourceMissingError
from ingest.translations import apply_translation, load_translation

C_RESET = "\033[0m"
C_BOLD = "\033[1m"
C_GREEN = "\033[32m"
C_RED = "\033[31m"


async def main() -> int:
    parser = argparse.ArgumentParser(description="Apply a replacement translation to a text")
    parser.add_argument("path", help="Translation JSON file")
    parser.add_argument("--text", default="text-001", help="Text id (default: text-001)")
    args = parser.parse_args()

    configure_logging(level=settings.LOG_LEVEL, json_logs=settings.LOG_JSON, log_sql=False)

    try:
        data = load_translation(args.path)
    except SourceMissingError as e:
        print(f"{C_RED}✗ {e}{C_RESET}")
        return 1

    print(f"{C_BOLD}Translation:{C_RESET} {data.translation} ({len(data.chapters)} chapters)")

    async with get_db_session() as session:
        result = await apply_translation(session, args.text, data)
    await engine.dispose()

    match result:
        case Err(e):
            print(f"{C_RED}✗ [{e.code.name}] {e.message}{C_RESET}")
            return 1
        case Ok(stats):
            print(f"  {C_GREEN}Updated:{C_RESET} {stats.updated}")
            for error in stats.errors:
                print(f"  {C_RED}✗ {error}{C_RESET}")
            return 1 if stats.errors else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
