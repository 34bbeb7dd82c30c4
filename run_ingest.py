#!/usr/bin/env python3
"""
Command-line script to ingest one or more URLs.

Each URL is fetched and parsed in turn with one shared HTTP client; the
results are printed as JSON (or written to --output).

Usage:
    python run_ingest.py https://example.com/post
    python run_ingest.py https://a.example/1 https://b.example/2 -o entries.json
    python run_ingest.py https://example.com/post --verbose
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Load .env file automatically
from dotenv import load_dotenv
load_dotenv()

from sift.client import create_client
from sift.config import get_settings
from sift.exceptions import ContentError
from sift.logger import setup_logger
from sift.main import Sift


async def ingest_all(urls: list[str]) -> list[dict]:
    settings = get_settings()
    results = []

    async with create_client(settings) as client:
        sift = Sift(client=client)
        for url in urls:
            print(f"Ingesting: {url}", file=sys.stderr)
            try:
                entry = await sift.ingest(url)
                results.append({
                    "url": url,
                    "status": "success",
                    "entry": entry.model_dump(mode="json")
                })
                print(f"  ✓ {entry.title or '(untitled)'} ({len(entry.content)} chars)", file=sys.stderr)

            except ContentError as e:
                results.append({
                    "url": url,
                    "status": "error",
                    "error": type(e).__name__,
                    "message": e.message
                })
                print(f"  ✗ {type(e).__name__}: {e.message}", file=sys.stderr)

    return results


def main():
    parser = argparse.ArgumentParser(description="Fetch URLs and extract entries")
    parser.add_argument("urls", nargs="+", help="Absolute URLs to ingest")
    parser.add_argument("--output", "-o", help="Output JSON file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    args = parser.parse_args()

    setup_logger(level=logging.DEBUG if args.verbose else get_settings().log_level)

    results = asyncio.run(ingest_all(args.urls))

    # ensure_ascii=False preserves unicode characters in the JSON
    output = json.dumps(results, indent=2, ensure_ascii=False)

    if args.output:
        Path(args.output).write_text(output)
        print(f"\nSaved to: {args.output}", file=sys.stderr)
    else:
        print(output)

    # Non-zero exit when any URL failed, so shell scripts can tell
    if any(result["status"] == "error" for result in results):
        sys.exit(1)


if __name__ == "__main__":
    main()
