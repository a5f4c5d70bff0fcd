"""Run a single fetch cycle and print its summary as JSON."""
import asyncio
import json
import logging
import sys

from radiko_watch.config import setup_logging
from radiko_watch.database import close_db, init_db
from radiko_watch.services.schedule_fetch_service import fetch_and_process


logger = logging.getLogger("radiko_watch")


async def run_once() -> dict:
    await init_db()
    try:
        return await fetch_and_process()
    finally:
        await close_db()


def main() -> int:
    setup_logging()
    result = asyncio.run(run_once())
    print(json.dumps(result, ensure_ascii=False, indent=2))
    if "error" in result:
        logger.error("Fetch cycle failed: %s", result["error"])
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
