from __future__ import annotations

import httpx
import pytest
from httpx import ASGITransport

from taskboard.client import BoardApiClient
from taskboard.errors import NotFound, StoreUnavailable, ValidationError
from taskboard.main import app
from taskboard.ordering.board import DropTarget
from taskboard.ordering.reconcile import DragPhase, DragSession


def _client() -> BoardApiClient:
  return BoardApiClient("http://localhost", transport=ASGITransport(app=app))


@pytest.mark.anyio
async def test_client_crud_round(clean_db) -> None:
  async with _client() as api:
    cols = await api.seed_defaults()
    assert [c.name for c in cols] == ["To Do", "In Progress", "Done"]

    t = await api.create_task("Write docs", notes="short", column_id=cols[0].id)
    assert (t.columnId, t.position) == (cols[0].id, 0)
    t = await api.update_task(t.id, title="Write better docs", column_id=cols[2].id, position=0)
    assert (t.title, t.columnId) == ("Write better docs", cols[2].id)
    assert [x.id for x in await api.list_tasks(cols[2].id)] == [t.id]

    col = await api.create_column("Later")
    assert col.position == 3
    col = await api.update_column(col.id, name="Someday")
    assert col.name == "Someday"
    deleted, count = await api.delete_column(cols[2].id)
    assert (deleted.id, count) == (cols[2].id, 1)
    assert [c.name for c in await api.list_columns()] == ["To Do", "In Progress", "Someday"]

    with pytest.raises(NotFound):
      await api.get_task(t.id)
    with pytest.raises(ValidationError):
      await api.create_task("", column_id=cols[0].id)


@pytest.mark.anyio
async def test_drag_session_commits_through_api(clean_db) -> None:
  async with _client() as api:
    cols = await api.seed_defaults()
    todo, doing = cols[0].id, cols[1].id
    a = await api.create_task("A", column_id=todo)
    b = await api.create_task("B", column_id=todo)
    x = await api.create_task("X", column_id=doing)

    session = DragSession(api, await api.fetch_board())
    session.pick_up(a.id)
    session.hover(DropTarget.on_column(doing))
    commands = await session.drop(DropTarget.on_column(doing))
    assert session.phase is DragPhase.IDLE
    assert [(c.task_id, c.position, c.column_id) for c in commands] == [(a.id, 1, doing), (b.id, 0, todo)]

    stored = await api.fetch_board()
    assert [[(t.id, t.position) for t in c.tasks] for c in stored.columns] == [
      [(t.id, t.position) for t in c.tasks] for c in session.board.columns
    ]
    assert [(t.id, t.position) for t in stored.column(todo).tasks] == [(b.id, 0)]
    assert [(t.id, t.position) for t in stored.column(doing).tasks] == [(x.id, 0), (a.id, 1)]


@pytest.mark.anyio
async def test_drag_session_resyncs_when_task_vanished(clean_db) -> None:
  async with _client() as api:
    cols = await api.seed_defaults()
    todo, doing = cols[0].id, cols[1].id
    a = await api.create_task("A", column_id=todo)
    await api.create_task("B", column_id=todo)

    session = DragSession(api, await api.fetch_board())
    # someone else deletes the card mid-gesture
    await api.delete_task(a.id)
    session.pick_up(a.id)
    session.hover(DropTarget.on_column(doing))
    with pytest.raises(NotFound):
      await session.drop(DropTarget.on_column(doing))

    assert session.phase is DragPhase.IDLE
    assert [t.title for t in session.board.column(todo).tasks] == ["B"]
    assert session.board.column(doing).tasks == ()


@pytest.mark.anyio
async def test_client_maps_transport_failures_to_store_unavailable() -> None:
  def _boom(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)

  async with BoardApiClient("http://localhost", transport=httpx.MockTransport(_boom)) as api:
    with pytest.raises(StoreUnavailable):
      await api.fetch_board()

  async with BoardApiClient(
    "http://localhost", transport=httpx.MockTransport(lambda r: httpx.Response(503, json={"detail": "Store unavailable"}))
  ) as api:
    with pytest.raises(StoreUnavailable) as exc:
      await api.list_columns()
    assert exc.value.message == "Store unavailable"
