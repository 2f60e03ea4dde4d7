# example.py
# A small example demonstrating how to use the padwatch library to run a
# single crawl over a set of pads and print what it found.

import asyncio
import logging
import sys

from padwatch import crawl_once

# --- Configuration ---
# You can enable logging to see the crawler's progress and decisions.
# This is helpful for debugging.
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

# Copy config.example.toml to config.toml and point it at your pad server.
CONFIG_PATH = sys.argv[1] if len(sys.argv) > 1 else "config.toml"


async def main():
    print(f"[*] Crawling pads configured in: {CONFIG_PATH}\n")

    # One cycle: fetch every known pad, follow links to new pads on the
    # watched servers, and log (instead of sending) any notifications.
    report = await crawl_once(CONFIG_PATH, dry_run=True)

    print("\n--- CRAWL COMPLETE ---")
    print(f"Visited {len(report.visited)} pads.")

    if report.discovered:
        print("\n--- Newly Discovered Pads ---")
        for link in report.discovered:
            print(f"- {link}")

    if report.errors:
        print("\n--- Errors Encountered ---")
        for error in report.errors:
            print(f"- {error}")


if __name__ == "__main__":
    asyncio.run(main())
