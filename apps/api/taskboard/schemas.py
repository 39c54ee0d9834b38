from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator

from taskboard.ordering.board import BoardView, ColumnView
from taskboard.ordering.reconcile import MoveCommand


def _as_utc(value: object) -> object:
  if isinstance(value, datetime) and value.tzinfo is None:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    return value.replace(tzinfo=timezone.utc)
  return value


class ColumnCreateIn(BaseModel):
  name: str | None = None
  position: int | None = None


class ColumnUpdateIn(BaseModel):
  name: str | None = None
  position: int | None = None


class ColumnOut(BaseModel):
  id: int
  name: str
  position: int
  createdAt: datetime | None = None

  @field_validator("createdAt", mode="before")
  @classmethod
  def _created_utc(cls, v: object) -> object:
    return _as_utc(v)


class TaskCreateIn(BaseModel):
  title: str | None = None
  description: str | None = None
  notes: str | None = None
  columnId: int | None = None
  position: int | None = None


class TaskUpdateIn(BaseModel):
  title: str | None = None
  description: str | None = None
  notes: str | None = None
  columnId: int | None = None
  position: int | None = None


class TaskOut(BaseModel):
  id: int
  title: str
  description: str | None = None
  notes: str | None = None
  columnId: int
  position: int
  createdAt: datetime | None = None
  updatedAt: datetime | None = None

  @field_validator("createdAt", "updatedAt", mode="before")
  @classmethod
  def _stamps_utc(cls, v: object) -> object:
    return _as_utc(v)


class BoardColumnOut(ColumnOut):
  tasks: list[TaskOut] = []


class BoardOut(BaseModel):
  columns: list[BoardColumnOut]
  totalTasks: int


class TaskMoveIn(BaseModel):
  columnId: int
  toIndex: int = 0


class BoardMoveIn(TaskMoveIn):
  taskId: int


class MoveCommandIn(BaseModel):
  taskId: int
  position: int = Field(ge=0)
  columnId: int


class MoveCommandOut(BaseModel):
  taskId: int
  position: int
  columnId: int


class CommandsIn(BaseModel):
  commands: list[MoveCommandIn]


class MoveOut(BaseModel):
  commands: list[MoveCommandOut]
  board: BoardOut


class CommandsOut(BaseModel):
  tasks: list[TaskOut]


class SeedOut(BaseModel):
  message: str
  columns: list[ColumnOut]


class TaskDeletedOut(BaseModel):
  message: str
  task: TaskOut


class ColumnDeletedOut(BaseModel):
  message: str
  column: ColumnOut
  deletedTasks: int


def task_out(t: Any) -> TaskOut:
  return TaskOut(
    id=t.id,
    title=t.title,
    description=t.description,
    notes=t.notes,
    columnId=t.column_id,
    position=t.position,
    createdAt=t.created_at,
    updatedAt=t.updated_at,
  )


def column_out(c: Any) -> ColumnOut:
  return ColumnOut(id=c.id, name=c.name, position=c.position, createdAt=c.created_at)


def board_out(board: BoardView) -> BoardOut:
  def _col(c: ColumnView) -> BoardColumnOut:
    return BoardColumnOut(
      id=c.id,
      name=c.name,
      position=c.position,
      createdAt=c.created_at,
      tasks=[task_out(t) for t in c.tasks],
    )

  return BoardOut(columns=[_col(c) for c in board.columns], totalTasks=board.total_tasks)


def command_out(c: MoveCommand) -> MoveCommandOut:
  return MoveCommandOut(taskId=c.task_id, position=c.position, columnId=c.column_id)
