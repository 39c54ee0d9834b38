"""Move reconciliation for drag-and-drop.

A gesture runs in two phases. While dragging, cross-column hovers are applied
provisionally to the in-memory board (array order only). On release the final
arrangement is turned into update commands, one per task whose stored column or
position no longer matches its place in the board.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Protocol, Sequence

from taskboard.errors import GestureStateError, NotFound
from taskboard.ordering.board import BoardView, ColumnView, DropTarget, locate_drop_target, locate_task
from taskboard.ordering.positions import clamp_index

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MoveCommand:
  task_id: int
  position: int
  column_id: int


@dataclass(frozen=True)
class GestureOrigin:
  column_id: int
  index: int


def apply_provisional_move(board: BoardView, task_id: int, target_column_id: int, target_index: int) -> BoardView:
  """Move a task into another column in memory only.

  Same-column targets are ignored; reordering inside a column happens on drop.
  Sibling position fields are left as stored, and the moved task remembers the
  column it is stored in until the move is settled.
  """
  loc = locate_task(board, task_id)
  if loc is None:
    return board
  src_idx, task_idx = loc
  dst_idx = board.column_index(target_column_id)
  if dst_idx is None or dst_idx == src_idx:
    return board

  source = board.columns[src_idx]
  dest = board.columns[dst_idx]
  task = source.tasks[task_idx]
  stored = task.stored_column_id if task.stored_column_id is not None else task.column_id
  moved = replace(task, column_id=dest.id, stored_column_id=stored)
  at = clamp_index(target_index, len(dest.tasks))
  return board.with_columns(
    {
      src_idx: replace(source, tasks=source.tasks[:task_idx] + source.tasks[task_idx + 1 :]),
      dst_idx: replace(dest, tasks=dest.tasks[:at] + (moved,) + dest.tasks[at:]),
    }
  )


def reorder_within_column(board: BoardView, task_id: int, to_index: int) -> BoardView:
  loc = locate_task(board, task_id)
  if loc is None:
    return board
  ci, ti = loc
  column = board.columns[ci]
  tasks = list(column.tasks)
  task = tasks.pop(ti)
  at = clamp_index(to_index, len(tasks))
  if at == ti:
    return board
  tasks.insert(at, task)
  return board.with_columns({ci: replace(column, tasks=tuple(tasks))})


def _renumber(column: ColumnView, *, skip: int | None = None) -> list[MoveCommand]:
  out: list[MoveCommand] = []
  for idx, t in enumerate(column.tasks):
    if t.id == skip:
      continue
    if t.position != idx or t.column_id != column.id:
      out.append(MoveCommand(task_id=t.id, position=idx, column_id=column.id))
  return out


def commit_move(board: BoardView, task_id: int, origin: GestureOrigin | None = None) -> list[MoveCommand]:
  """Update commands for the final arrangement of a finished gesture.

  ``origin`` is where the task sat when the gesture started. Without it the
  task's stored column and position are used; provisional moves keep both.

  Cross-column commands are ordered: the moved task first, then the rest of
  the destination column, then the source column.
  """
  loc = locate_task(board, task_id)
  if loc is None:
    return []
  ci, ti = loc
  column = board.columns[ci]
  task = column.tasks[ti]
  if origin is None:
    stored = task.stored_column_id if task.stored_column_id is not None else task.column_id
    origin = GestureOrigin(column_id=stored, index=task.position)

  if origin.column_id == column.id:
    if ti == origin.index:
      return []
    return _renumber(column)

  commands = [MoveCommand(task_id=task.id, position=ti, column_id=column.id)]
  commands.extend(_renumber(column, skip=task.id))
  source = board.column(origin.column_id)
  if source is not None:
    commands.extend(_renumber(source))
  return commands


def settle(board: BoardView, commands: Sequence[MoveCommand]) -> BoardView:
  """Write applied commands back into the board's stored position fields."""
  if not commands:
    return board
  by_task = {c.task_id: c for c in commands}
  changed: dict[int, ColumnView] = {}
  for ci, column in enumerate(board.columns):
    if not any(t.id in by_task for t in column.tasks):
      continue
    tasks = tuple(
      replace(t, position=by_task[t.id].position, column_id=by_task[t.id].column_id, stored_column_id=None)
      if t.id in by_task
      else t
      for t in column.tasks
    )
    changed[ci] = replace(column, tasks=tasks)
  return board.with_columns(changed)


def plan_move(board: BoardView, task_id: int, column_id: int, to_index: int) -> tuple[BoardView, list[MoveCommand]]:
  """Single-shot move used by the server: place the task, then reconcile."""
  loc = locate_task(board, task_id)
  if loc is None:
    raise NotFound("Task not found")
  if board.column(column_id) is None:
    raise NotFound("Column not found")
  ci, ti = loc
  origin = GestureOrigin(column_id=board.columns[ci].id, index=ti)
  if origin.column_id == column_id:
    after = reorder_within_column(board, task_id, to_index)
  else:
    after = apply_provisional_move(board, task_id, column_id, to_index)
  commands = commit_move(after, task_id, origin)
  return settle(after, commands), commands


class DragPhase(str, Enum):
  IDLE = "idle"
  DRAGGING = "dragging"
  COMMITTING = "committing"


class MoveGateway(Protocol):
  async def fetch_board(self) -> BoardView: ...

  async def apply_commands(self, commands: Sequence[MoveCommand]) -> Any: ...


class DragSession:
  """One client's drag gestures over a board, processed one at a time."""

  def __init__(self, gateway: MoveGateway, board: BoardView) -> None:
    self.gateway = gateway
    self.board = board
    self.phase = DragPhase.IDLE
    self._task_id: int | None = None
    self._origin: GestureOrigin | None = None
    self._snapshot: BoardView | None = None

  @property
  def active_task_id(self) -> int | None:
    return self._task_id

  async def refresh(self) -> BoardView:
    self.board = await self.gateway.fetch_board()
    return self.board

  def pick_up(self, task_id: int) -> None:
    if self.phase is not DragPhase.IDLE:
      raise GestureStateError(f"Cannot pick up while {self.phase.value}")
    loc = locate_task(self.board, task_id)
    if loc is None:
      raise NotFound("Task not found")
    ci, ti = loc
    self._task_id = task_id
    self._origin = GestureOrigin(column_id=self.board.columns[ci].id, index=ti)
    self._snapshot = self.board
    self.phase = DragPhase.DRAGGING

  def hover(self, target: DropTarget) -> BoardView:
    self._require_dragging()
    dest = locate_drop_target(self.board, target)
    loc = locate_task(self.board, self._task_id)
    if dest is None or loc is None or dest[0] == loc[0]:
      return self.board
    self.board = apply_provisional_move(self.board, self._task_id, self.board.columns[dest[0]].id, dest[1])
    return self.board

  async def cancel(self, *, reload: bool = False) -> BoardView:
    self._require_dragging()
    if self._snapshot is not None:
      self.board = self._snapshot
    self._reset()
    if reload:
      await self.refresh()
    return self.board

  async def drop(self, target: DropTarget | None) -> list[MoveCommand]:
    self._require_dragging()
    dest = locate_drop_target(self.board, target) if target is not None else None
    if dest is None:
      await self.cancel()
      return []

    task_id = self._task_id
    ci, at = dest
    loc = locate_task(self.board, task_id)
    if loc is not None and ci != loc[0]:
      self.board = apply_provisional_move(self.board, task_id, self.board.columns[ci].id, at)
    elif target.task_id is not None and target.task_id != task_id:
      self.board = reorder_within_column(self.board, task_id, at)

    self.phase = DragPhase.COMMITTING
    commands = commit_move(self.board, task_id, self._origin)
    try:
      if commands:
        await self.gateway.apply_commands(commands)
    except Exception as exc:
      logger.warning("commit of task %s failed (%s); re-fetching board", task_id, exc)
      self._reset()
      await self.refresh()
      raise
    self.board = settle(self.board, commands)
    logger.debug("committed task %s with %d update(s)", task_id, len(commands))
    self._reset()
    return commands

  def _require_dragging(self) -> None:
    if self.phase is not DragPhase.DRAGGING:
      raise GestureStateError(f"No drag in progress ({self.phase.value})")

  def _reset(self) -> None:
    self.phase = DragPhase.IDLE
    self._task_id = None
    self._origin = None
    self._snapshot = None
