#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import json
import sys

from taskboard.client import BoardApiClient
from taskboard.errors import BoardError
from taskboard.ordering.board import BoardView
from taskboard.ordering.positions import is_compacted
from taskboard.ordering.reconcile import MoveCommand


def _violations(board: BoardView) -> dict:
  columns = []
  for c in board.columns:
    positions = [t.position for t in c.tasks]
    if not is_compacted(positions):
      columns.append({"columnId": c.id, "name": c.name, "positions": positions})
  column_positions = [c.position for c in board.columns]
  return {
    "columns": columns,
    "columnPositions": column_positions if not is_compacted(column_positions) else [],
  }


def _repairs(board: BoardView) -> list[MoveCommand]:
  out: list[MoveCommand] = []
  for c in board.columns:
    for idx, t in enumerate(c.tasks):
      if t.position != idx:
        out.append(MoveCommand(task_id=t.id, position=idx, column_id=c.id))
  return out


async def _run(base_url: str, fix: bool) -> int:
  async with BoardApiClient(base_url) as client:
    board = await client.fetch_board()
    found = _violations(board)
    print(json.dumps(found, indent=2))
    if not found["columns"] and not found["columnPositions"]:
      return 0
    if not fix:
      return 1
    commands = _repairs(board)
    await client.apply_commands(commands)
    # Column order is not covered by move commands; patch it directly.
    for idx, c in enumerate(board.columns):
      if c.position != idx:
        await client.update_column(c.id, position=idx)
    print(f"applied {len(commands)} task renumbering command(s)")
    return 0


def main() -> int:
  parser = argparse.ArgumentParser(description="Report (and optionally repair) non-compacted positions on a running board API")
  parser.add_argument("--base-url", default=None, help="API base URL (defaults to API_BASE_URL)")
  parser.add_argument("--fix", action="store_true", help="renumber offending columns through /board/commands")
  args = parser.parse_args()
  try:
    return asyncio.run(_run(args.base_url, args.fix))
  except BoardError as exc:
    print(f"board check failed: {exc.message}", file=sys.stderr)
    return 2


if __name__ == "__main__":
  raise SystemExit(main())
