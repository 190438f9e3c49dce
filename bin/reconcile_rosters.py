# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Rebuild every course roster from the student enrollment records.

``Student.enrolled_courses`` is authoritative; ``Course.students`` is a
cache that can go stale if a process dies between the two writes of an
enrollment change.  Safe to run at any time, e.g. from cron:

    python bin/reconcile_rosters.py
"""

import asyncio
import os
import sys

_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from core.logger import logger             # noqa: E402
from database import SessionLocal, engine  # noqa: E402
from services import rosters               # noqa: E402


async def reconcile() -> int:
    async with SessionLocal() as db:
        changed = await rosters.rebuild_all(db)
    logger.info("roster reconciliation finished, %d course(s) corrected", changed)
    return changed


async def main():
    try:
        changed = await reconcile()
    finally:
        await engine.dispose()
    print(f"[reconcile_rosters] {changed} course roster(s) corrected.")


if __name__ == "__main__":
    asyncio.run(main())
