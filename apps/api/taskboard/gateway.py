"""Store-backed implementation of the board operation contract.

Every method runs on the caller's ``AsyncSession``. Writes commit before
returning; a failed statement rolls the session back and surfaces as
``StoreUnavailable``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.errors import NotFound, StoreUnavailable, ValidationError
from taskboard.models import BoardColumn, Task, utcnow
from taskboard.ordering.board import BoardView, load
from taskboard.ordering.positions import compact, next_position
from taskboard.ordering.reconcile import MoveCommand, plan_move

logger = logging.getLogger(__name__)

TASK_FIELDS = ("title", "description", "column_id", "position", "notes")
COLUMN_FIELDS = ("name", "position")
DEFAULT_COLUMNS = ("To Do", "In Progress", "Done")


def _require_text(value: str | None, label: str) -> str:
  if value is None or not str(value).strip():
    raise ValidationError(f"{label} is required")
  return value


def _check_position(value: int | None) -> None:
  if value is not None and value < 0:
    raise ValidationError("Position must be non-negative")


def _check_fields(fields: dict[str, Any], allowed: Sequence[str]) -> None:
  unknown = sorted(set(fields) - set(allowed))
  if unknown:
    raise ValidationError(f"Unknown field(s): {', '.join(unknown)}")


class BoardGateway:
  def __init__(self, db: AsyncSession) -> None:
    self.db = db

  @asynccontextmanager
  async def _guard(self, action: str) -> AsyncIterator[None]:
    try:
      yield
    except SQLAlchemyError as exc:
      logger.exception("store failure while trying to %s", action)
      await self.db.rollback()
      raise StoreUnavailable(f"Failed to {action}") from exc

  # -- board --------------------------------------------------------------

  async def fetch_board(self) -> BoardView:
    async with self._guard("fetch board"):
      cres = await self.db.execute(select(BoardColumn).order_by(BoardColumn.position.asc(), BoardColumn.id.asc()))
      tres = await self.db.execute(select(Task).order_by(Task.position.asc(), Task.id.asc()))
      return load(cres.scalars().all(), tres.scalars().all())

  async def apply_commands(self, commands: Sequence[MoveCommand]) -> list[Task]:
    """Apply update commands in order, all in one transaction."""
    if not commands:
      return []
    for c in commands:
      _check_position(c.position)
    async with self._guard("apply move commands"):
      ids = {c.task_id for c in commands}
      res = await self.db.execute(select(Task).where(Task.id.in_(sorted(ids))))
      tasks = {t.id: t for t in res.scalars().all()}
      missing = ids - set(tasks)
      if missing:
        raise NotFound(f"Task not found: {min(missing)}")
      column_ids = {c.column_id for c in commands}
      cres = await self.db.execute(select(BoardColumn.id).where(BoardColumn.id.in_(sorted(column_ids))))
      if column_ids - set(cres.scalars().all()):
        raise NotFound("Column not found")

      now = utcnow()
      out: list[Task] = []
      for c in commands:
        t = tasks[c.task_id]
        t.column_id = c.column_id
        t.position = c.position
        t.updated_at = now
        out.append(t)
      await self.db.commit()
      return out

  async def move_task(self, task_id: int, column_id: int, to_index: int) -> tuple[BoardView, list[MoveCommand]]:
    board = await self.fetch_board()
    after, commands = plan_move(board, task_id, column_id, to_index)
    await self.apply_commands(commands)
    logger.info("moved task %s to column %s index %s (%d update(s))", task_id, column_id, to_index, len(commands))
    return after, commands

  async def _compact_column(self, column_id: int) -> None:
    res = await self.db.execute(select(Task).where(Task.column_id == column_id).order_by(Task.position.asc(), Task.id.asc()))
    for t, idx in compact(res.scalars().all()):
      if t.position != idx:
        t.position = idx

  async def _compact_columns(self) -> None:
    res = await self.db.execute(select(BoardColumn).order_by(BoardColumn.position.asc(), BoardColumn.id.asc()))
    for c, idx in compact(res.scalars().all()):
      if c.position != idx:
        c.position = idx

  # -- tasks --------------------------------------------------------------

  async def list_tasks(self, column_id: int | None = None) -> list[Task]:
    async with self._guard("list tasks"):
      if column_id is not None:
        q = select(Task).where(Task.column_id == column_id).order_by(Task.position.asc(), Task.id.asc())
      else:
        q = select(Task).order_by(Task.created_at.desc(), Task.id.desc())
      res = await self.db.execute(q)
      return list(res.scalars().all())

  async def get_task(self, task_id: int) -> Task:
    async with self._guard("fetch task"):
      res = await self.db.execute(select(Task).where(Task.id == task_id))
      t = res.scalar_one_or_none()
    if not t:
      raise NotFound("Task not found")
    return t

  async def _target_column(self, column_id: int | None) -> BoardColumn:
    if column_id is not None:
      res = await self.db.execute(select(BoardColumn).where(BoardColumn.id == column_id))
      c = res.scalar_one_or_none()
      if not c:
        raise NotFound("Column not found")
      return c
    res = await self.db.execute(select(BoardColumn).order_by(BoardColumn.position.asc(), BoardColumn.id.asc()).limit(1))
    c = res.scalar_one_or_none()
    if not c:
      raise ValidationError("Board has no columns")
    return c

  async def create_task(
    self,
    title: str | None,
    *,
    description: str | None = None,
    notes: str | None = None,
    column_id: int | None = None,
    position: int | None = None,
  ) -> Task:
    _require_text(title, "Title")
    _check_position(position)
    async with self._guard("create task"):
      column = await self._target_column(column_id)
      if position is None:
        res = await self.db.execute(select(Task.position).where(Task.column_id == column.id))
        position = next_position(res.scalars().all())
      t = Task(title=title, description=description, notes=notes, column_id=column.id, position=position)
      self.db.add(t)
      await self.db.commit()
      return t

  async def update_task(self, task_id: int, fields: dict[str, Any]) -> Task:
    _check_fields(fields, TASK_FIELDS)
    if "title" in fields:
      _require_text(fields["title"], "Title")
    if "column_id" in fields and fields["column_id"] is None:
      raise ValidationError("Column is required")
    if "position" in fields and fields["position"] is None:
      raise ValidationError("Position is required")
    _check_position(fields.get("position"))

    t = await self.get_task(task_id)
    async with self._guard("update task"):
      if "column_id" in fields and fields["column_id"] != t.column_id:
        await self._target_column(fields["column_id"])
      for name, value in fields.items():
        setattr(t, name, value)
      t.updated_at = utcnow()
      await self.db.commit()
      return t

  async def delete_task(self, task_id: int) -> Task:
    t = await self.get_task(task_id)
    column_id = t.column_id
    async with self._guard("delete task"):
      await self.db.delete(t)
      await self.db.flush()
      await self._compact_column(column_id)
      await self.db.commit()
    return t

  # -- columns ------------------------------------------------------------

  async def list_columns(self) -> list[BoardColumn]:
    async with self._guard("list columns"):
      res = await self.db.execute(select(BoardColumn).order_by(BoardColumn.position.asc(), BoardColumn.id.asc()))
      return list(res.scalars().all())

  async def get_column(self, column_id: int) -> BoardColumn:
    async with self._guard("fetch column"):
      res = await self.db.execute(select(BoardColumn).where(BoardColumn.id == column_id))
      c = res.scalar_one_or_none()
    if not c:
      raise NotFound("Column not found")
    return c

  async def create_column(self, name: str | None, *, position: int | None = None) -> BoardColumn:
    _require_text(name, "Name")
    _check_position(position)
    async with self._guard("create column"):
      if position is None:
        res = await self.db.execute(select(BoardColumn.position))
        position = next_position(res.scalars().all())
      c = BoardColumn(name=name, position=position)
      self.db.add(c)
      await self.db.commit()
      return c

  async def update_column(self, column_id: int, fields: dict[str, Any]) -> BoardColumn:
    _check_fields(fields, COLUMN_FIELDS)
    if "name" in fields:
      _require_text(fields["name"], "Name")
    if "position" in fields and fields["position"] is None:
      raise ValidationError("Position is required")
    _check_position(fields.get("position"))

    c = await self.get_column(column_id)
    async with self._guard("update column"):
      for name, value in fields.items():
        setattr(c, name, value)
      await self.db.commit()
      return c

  async def delete_column(self, column_id: int) -> tuple[BoardColumn, int]:
    """Delete a column and every task in it. Returns the column and the task count."""
    c = await self.get_column(column_id)
    async with self._guard("delete column"):
      tres = await self.db.execute(select(func.count()).select_from(Task).where(Task.column_id == column_id))
      deleted = int(tres.scalar_one() or 0)
      await self.db.execute(delete(Task).where(Task.column_id == column_id))
      await self.db.execute(delete(BoardColumn).where(BoardColumn.id == column_id))
      await self._compact_columns()
      await self.db.commit()
    logger.info("deleted column %s (%s) with %d task(s)", column_id, c.name, deleted)
    return c, deleted

  async def seed_defaults(self, names: Sequence[str] | None = None) -> tuple[list[BoardColumn], bool]:
    """Create the default columns on an empty board. Returns ``(columns, created)``."""
    existing = await self.list_columns()
    if existing:
      return existing, False
    async with self._guard("seed default columns"):
      columns = [BoardColumn(name=name, position=idx) for idx, name in enumerate(names or DEFAULT_COLUMNS)]
      self.db.add_all(columns)
      await self.db.commit()
    logger.info("seeded %d default column(s)", len(columns))
    return columns, True
