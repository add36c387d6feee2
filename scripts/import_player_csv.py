#!/usr/bin/env python3
"""
Import players and season stats from a stats export CSV.

Usage:
    python scripts/import_player_csv.py <csv_file> [--encoding utf-8-sig]

Example:
    python scripts/import_player_csv.py data/AZ_Western.csv
"""

import argparse
import asyncio
import json
import os
import sys

# Add apps/ to path so the recruiting package resolves without installing
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.join(project_root, "apps"))

from recruiting.database.db import AsyncSessionLocal  # noqa: E402
from recruiting.services.csv_import_service import import_players_from_csv  # noqa: E402


async def run_import(csv_path: str, encoding: str) -> dict:
    with open(csv_path, encoding=encoding, newline="") as f:
        text = f.read()
    async with AsyncSessionLocal() as session:
        return await import_players_from_csv(session, text)


async def main():
    parser = argparse.ArgumentParser(description="Import players and stats from a CSV export")
    parser.add_argument("csv_file", help="Path to the CSV file")
    parser.add_argument("--encoding", default="utf-8-sig", help="File encoding (default: utf-8-sig)")
    args = parser.parse_args()

    if not os.path.exists(args.csv_file):
        print(f"CSV file not found: {args.csv_file}")
        sys.exit(1)

    try:
        results = await run_import(args.csv_file, args.encoding)
    except ValueError as e:
        print(f"Import failed: {e}")
        sys.exit(1)

    print(
        f"Imported {results['total']} rows: {results['created']} created, "
        f"{results['updated']} updated, {results['teams_created']} teams created, "
        f"{results['skipped']} skipped"
    )
    if results["errors"]:
        print("Errors:")
        print(json.dumps(results["errors"], indent=2))


if __name__ == "__main__":
    asyncio.run(main())
