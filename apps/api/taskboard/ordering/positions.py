"""Position values for ordered siblings (tasks in a column, columns on a board).

Positions are zero-based ranks. At rest a column's task positions are compacted:
they form ``0..count-1`` with no gaps or duplicates.
"""

from __future__ import annotations

from typing import Iterable, Sequence, TypeVar

T = TypeVar("T")


def next_position(existing: Iterable[int]) -> int:
  """Slot for an appended sibling.

  Uses ``max + 1`` rather than ``count`` so a column left with gaps or
  duplicates by a partial commit still yields a free slot. On a compacted
  column both are equal.
  """
  top = max(existing, default=None)
  return 0 if top is None else top + 1


def is_compacted(positions: Iterable[int]) -> bool:
  values = sorted(positions)
  return values == list(range(len(values)))


def compact(items: Sequence[T]) -> list[tuple[T, int]]:
  return [(item, idx) for idx, item in enumerate(items)]


def clamp_index(index: int, size: int) -> int:
  return max(0, min(index, size))
