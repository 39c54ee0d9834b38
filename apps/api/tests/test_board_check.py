from __future__ import annotations

import importlib.util
from dataclasses import replace
from pathlib import Path

from taskboard.ordering.reconcile import MoveCommand, settle

from test_move_reconciler import DOING, DONE, TODO, make_board

SCRIPT = Path(__file__).resolve().parents[3] / "scripts" / "board-check.py"


def _load_script():
  spec = importlib.util.spec_from_file_location("board_check", SCRIPT)
  module = importlib.util.module_from_spec(spec)
  spec.loader.exec_module(module)
  return module


board_check = _load_script()


def test_compacted_board_has_no_violations() -> None:
  board = make_board({TODO: [1, 2], DOING: [], DONE: [3]})
  assert board_check._violations(board) == {"columns": [], "columnPositions": []}
  assert board_check._repairs(board) == []


def test_gaps_and_duplicates_are_reported_and_repaired() -> None:
  board = make_board({TODO: [1, 2, 3], DOING: [4, 5]})
  # gap in TODO (0, 2, 3) and a duplicate in DOING (0, 0)
  board = settle(board, [MoveCommand(1, 0, TODO), MoveCommand(2, 2, TODO), MoveCommand(3, 3, TODO), MoveCommand(5, 0, DOING)])

  found = board_check._violations(board)
  assert found["columns"] == [
    {"columnId": TODO, "name": f"C{TODO}", "positions": [0, 2, 3]},
    {"columnId": DOING, "name": f"C{DOING}", "positions": [0, 0]},
  ]
  assert found["columnPositions"] == []
  assert board_check._repairs(board) == [
    MoveCommand(2, 1, TODO),
    MoveCommand(3, 2, TODO),
    MoveCommand(5, 1, DOING),
  ]


def test_column_position_gap_is_reported() -> None:
  board = make_board({TODO: [], DOING: [], DONE: []})
  board = board.with_columns({2: replace(board.columns[2], position=5)})
  assert board_check._violations(board)["columnPositions"] == [0, 1, 5]
