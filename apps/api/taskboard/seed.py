from __future__ import annotations

import asyncio
import os

from taskboard.config import settings
from taskboard.db import SessionLocal
from taskboard.gateway import BoardGateway


async def seed() -> None:
  async with SessionLocal() as db:
    gw = BoardGateway(db)
    columns, created = await gw.seed_defaults(settings.default_column_names())
    if created:
      print("Default columns created: " + ", ".join(c.name for c in columns))
    else:
      print(f"Board already has {len(columns)} column(s); nothing to do")

    if created and os.getenv("SEED_DEMO_TASKS", "").strip().lower() in ("1", "true", "yes", "y"):
      first = columns[0]
      samples = [
        ("Welcome to the board", "Drag cards between columns to change their state."),
        ("Try reordering", "Drop a card on another card to take its place."),
      ]
      for title, desc in samples:
        await gw.create_task(title, description=desc, column_id=first.id)
      print(f"Added {len(samples)} demo task(s) to {first.name}")


def main() -> None:
  asyncio.run(seed())


if __name__ == "__main__":
  main()
