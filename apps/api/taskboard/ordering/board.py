"""In-memory board value.

A ``BoardView`` is immutable. Operations that change the arrangement return a
new value and only copy the columns they touch; callers own the current value
and replace it wholesale.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Iterable


@dataclass(frozen=True)
class TaskView:
  id: int
  title: str
  column_id: int
  position: int
  description: str | None = None
  notes: str | None = None
  created_at: datetime | None = None
  updated_at: datetime | None = None
  # Column the task is stored in while a provisional move has it elsewhere.
  stored_column_id: int | None = None


@dataclass(frozen=True)
class ColumnView:
  id: int
  name: str
  position: int
  tasks: tuple[TaskView, ...] = ()
  created_at: datetime | None = None


@dataclass(frozen=True)
class BoardView:
  columns: tuple[ColumnView, ...] = ()

  @property
  def total_tasks(self) -> int:
    return sum(len(c.tasks) for c in self.columns)

  def column_index(self, column_id: int) -> int | None:
    for idx, c in enumerate(self.columns):
      if c.id == column_id:
        return idx
    return None

  def column(self, column_id: int) -> ColumnView | None:
    idx = self.column_index(column_id)
    return self.columns[idx] if idx is not None else None

  def with_columns(self, changed: dict[int, ColumnView]) -> BoardView:
    """Copy of the board with the columns at the given indices swapped out."""
    return replace(self, columns=tuple(changed.get(idx, c) for idx, c in enumerate(self.columns)))


@dataclass(frozen=True)
class DropTarget:
  """Where a dragged task is released or hovered.

  Exactly one of ``column_id`` (the column container itself) or ``task_id``
  (a task card inside some column) is set.
  """

  column_id: int | None = None
  task_id: int | None = None

  @classmethod
  def on_column(cls, column_id: int) -> DropTarget:
    return cls(column_id=column_id)

  @classmethod
  def on_task(cls, task_id: int) -> DropTarget:
    return cls(task_id=task_id)


def task_view(row: Any) -> TaskView:
  return TaskView(
    id=row.id,
    title=row.title,
    column_id=row.column_id,
    position=row.position,
    description=getattr(row, "description", None),
    notes=getattr(row, "notes", None),
    created_at=getattr(row, "created_at", None),
    updated_at=getattr(row, "updated_at", None),
  )


def load(columns: Iterable[Any], tasks: Iterable[Any]) -> BoardView:
  """Group tasks under their owning column, both ordered by position.

  Accepts ORM rows or any objects with the same attribute names. Tasks whose
  column is not in ``columns`` are left out.
  """
  by_column: dict[int, list[TaskView]] = {}
  for t in sorted((task_view(t) for t in tasks), key=lambda t: (t.position, t.id)):
    by_column.setdefault(t.column_id, []).append(t)

  out: list[ColumnView] = []
  for c in sorted(columns, key=lambda c: (c.position, c.id)):
    out.append(
      ColumnView(
        id=c.id,
        name=c.name,
        position=c.position,
        tasks=tuple(by_column.get(c.id, ())),
        created_at=getattr(c, "created_at", None),
      )
    )
  return BoardView(columns=tuple(out))


def locate_task(board: BoardView, task_id: int) -> tuple[int, int] | None:
  for ci, c in enumerate(board.columns):
    for ti, t in enumerate(c.tasks):
      if t.id == task_id:
        return ci, ti
  return None


def locate_drop_target(board: BoardView, target: DropTarget) -> tuple[int, int] | None:
  """Resolve a drop target to ``(column_index, insertion_index)``.

  A column container inserts at the end; a task card inserts before that task.
  """
  if target.column_id is not None:
    ci = board.column_index(target.column_id)
    if ci is None:
      return None
    return ci, len(board.columns[ci].tasks)
  if target.task_id is not None:
    return locate_task(board, target.task_id)
  return None
