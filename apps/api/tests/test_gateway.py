from __future__ import annotations

import pytest
from sqlalchemy import select, update
from sqlalchemy.exc import OperationalError

from taskboard.errors import NotFound, StoreUnavailable, ValidationError
from taskboard.gateway import BoardGateway
from taskboard.models import Task
from taskboard.ordering.reconcile import MoveCommand


@pytest.mark.anyio
async def test_create_task_after_partial_failure_does_not_collide(gateway: BoardGateway) -> None:
  cols, _ = await gateway.seed_defaults()
  todo = cols[0].id
  a = await gateway.create_task("A", column_id=todo)
  await gateway.create_task("B", column_id=todo)
  # simulate a half-applied commit that left a gap: positions 0, 2
  await gateway.db.execute(update(Task).where(Task.id == a.id).values(position=2))
  await gateway.db.commit()

  c = await gateway.create_task("C", column_id=todo)
  assert c.position == 3


@pytest.mark.anyio
async def test_delete_column_removes_every_owned_task(gateway: BoardGateway) -> None:
  cols, created = await gateway.seed_defaults(["Backlog", "Doing"])
  assert created
  doing = cols[1].id
  for title in ("x", "y", "z"):
    await gateway.create_task(title, column_id=doing)
  await gateway.create_task("keep", column_id=cols[0].id)

  column, deleted = await gateway.delete_column(doing)
  assert (column.id, deleted) == (doing, 3)
  res = await gateway.db.execute(select(Task).where(Task.column_id == doing))
  assert res.scalars().all() == []
  assert [t.title for t in await gateway.list_tasks()] == ["keep"]

  with pytest.raises(NotFound):
    await gateway.delete_column(doing)


@pytest.mark.anyio
async def test_move_task_returns_settled_board(gateway: BoardGateway) -> None:
  cols, _ = await gateway.seed_defaults()
  todo, doing = cols[0].id, cols[1].id
  a = await gateway.create_task("A", column_id=todo)
  b = await gateway.create_task("B", column_id=todo)

  board, commands = await gateway.move_task(b.id, doing, 0)
  assert commands == [MoveCommand(b.id, 0, doing)]
  assert [t.id for t in board.column(doing).tasks] == [b.id]

  fresh = await gateway.fetch_board()
  assert [(t.id, t.position) for t in fresh.column(todo).tasks] == [(a.id, 0)]
  assert [(t.id, t.position) for t in fresh.column(doing).tasks] == [(b.id, 0)]


@pytest.mark.anyio
async def test_validation_happens_before_store_access() -> None:
  # no session at all: validation must reject before touching it
  gw = BoardGateway(db=None)
  with pytest.raises(ValidationError):
    await gw.create_task(None)
  with pytest.raises(ValidationError):
    await gw.create_column("  ")
  with pytest.raises(ValidationError):
    await gw.create_task("t", position=-1)
  with pytest.raises(ValidationError):
    await gw.update_task(1, {"title": ""})
  with pytest.raises(ValidationError):
    await gw.update_task(1, {"owner": "me"})
  with pytest.raises(ValidationError):
    await gw.update_column(1, {"position": None})


class _BrokenSession:
  def __init__(self) -> None:
    self.rolled_back = False

  async def execute(self, *args, **kwargs):
    raise OperationalError("SELECT 1", {}, Exception("server closed the connection"))

  async def rollback(self) -> None:
    self.rolled_back = True


@pytest.mark.anyio
async def test_store_errors_surface_as_store_unavailable() -> None:
  session = _BrokenSession()
  gw = BoardGateway(db=session)
  with pytest.raises(StoreUnavailable) as exc:
    await gw.fetch_board()
  assert exc.value.message == "Failed to fetch board"
  assert session.rolled_back

  with pytest.raises(StoreUnavailable):
    await gw.apply_commands([MoveCommand(1, 0, 1)])
