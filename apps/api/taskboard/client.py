"""HTTP client for the board API.

``BoardApiClient`` offers the same operations as ``BoardGateway`` so a
``DragSession`` can commit through the network instead of a local session.
"""

from __future__ import annotations

from typing import Any, Sequence

import httpx

from taskboard.config import settings
from taskboard.errors import BoardError, NotFound, StoreUnavailable, ValidationError
from taskboard.ordering.board import BoardView, ColumnView, TaskView
from taskboard.ordering.reconcile import MoveCommand
from taskboard.schemas import BoardOut, ColumnOut, MoveOut, TaskOut


def _detail(r: httpx.Response) -> str:
  try:
    payload = r.json()
  except ValueError:
    return (r.text or "")[:500] or f"HTTP {r.status_code}"
  if isinstance(payload, dict):
    detail = payload.get("detail")
    if isinstance(detail, str) and detail:
      return detail
    if detail:
      return str(detail)[:500]
  return f"HTTP {r.status_code}"


def _task_view(t: TaskOut) -> TaskView:
  return TaskView(
    id=t.id,
    title=t.title,
    column_id=t.columnId,
    position=t.position,
    description=t.description,
    notes=t.notes,
    created_at=t.createdAt,
    updated_at=t.updatedAt,
  )


def board_view(data: BoardOut) -> BoardView:
  return BoardView(
    columns=tuple(
      ColumnView(
        id=c.id,
        name=c.name,
        position=c.position,
        created_at=c.createdAt,
        tasks=tuple(_task_view(t) for t in c.tasks),
      )
      for c in data.columns
    )
  )


class BoardApiClient:
  def __init__(
    self,
    base_url: str | None = None,
    *,
    timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
  ) -> None:
    self._client = httpx.AsyncClient(
      base_url=(base_url or settings.api_base_url).rstrip("/"),
      headers={"Accept": "application/json"},
      timeout=timeout if timeout is not None else settings.client_timeout_seconds,
      transport=transport,
    )

  async def __aenter__(self) -> BoardApiClient:
    return self

  async def __aexit__(self, *exc: object) -> None:
    await self.aclose()

  async def aclose(self) -> None:
    await self._client.aclose()

  async def _request_json(self, method: str, path: str, **kwargs: Any) -> Any:
    try:
      r = await self._client.request(method, path, **kwargs)
    except httpx.HTTPError as exc:
      raise StoreUnavailable(f"{method} {path} failed: {exc.__class__.__name__}") from exc
    if r.status_code == 404:
      raise NotFound(_detail(r))
    if r.status_code in (400, 422):
      raise ValidationError(_detail(r))
    if r.status_code >= 500:
      raise StoreUnavailable(_detail(r))
    if r.status_code >= 400:
      raise BoardError(_detail(r))
    return r.json()

  # -- board --------------------------------------------------------------

  async def fetch_board(self) -> BoardView:
    return board_view(BoardOut.model_validate(await self._request_json("GET", "/board")))

  async def apply_commands(self, commands: Sequence[MoveCommand]) -> list[TaskOut]:
    if not commands:
      return []
    body = {"commands": [{"taskId": c.task_id, "position": c.position, "columnId": c.column_id} for c in commands]}
    data = await self._request_json("POST", "/board/commands", json=body)
    return [TaskOut.model_validate(t) for t in data["tasks"]]

  async def move_task(self, task_id: int, column_id: int, to_index: int) -> tuple[BoardView, list[MoveCommand]]:
    data = MoveOut.model_validate(
      await self._request_json("POST", f"/tasks/{task_id}/move", json={"columnId": column_id, "toIndex": to_index})
    )
    commands = [MoveCommand(task_id=c.taskId, position=c.position, column_id=c.columnId) for c in data.commands]
    return board_view(data.board), commands

  async def seed_defaults(self) -> list[ColumnOut]:
    data = await self._request_json("POST", "/seed")
    return [ColumnOut.model_validate(c) for c in data["columns"]]

  # -- tasks --------------------------------------------------------------

  async def list_tasks(self, column_id: int | None = None) -> list[TaskOut]:
    params = {"columnId": column_id} if column_id is not None else None
    return [TaskOut.model_validate(t) for t in await self._request_json("GET", "/tasks", params=params)]

  async def get_task(self, task_id: int) -> TaskOut:
    return TaskOut.model_validate(await self._request_json("GET", f"/tasks/{task_id}"))

  async def create_task(
    self,
    title: str,
    *,
    description: str | None = None,
    notes: str | None = None,
    column_id: int | None = None,
    position: int | None = None,
  ) -> TaskOut:
    body: dict[str, Any] = {"title": title, "description": description, "notes": notes, "columnId": column_id}
    if position is not None:
      body["position"] = position
    return TaskOut.model_validate(await self._request_json("POST", "/tasks", json=body))

  async def update_task(self, task_id: int, **fields: Any) -> TaskOut:
    names = {"column_id": "columnId"}
    body = {names.get(k, k): v for k, v in fields.items()}
    return TaskOut.model_validate(await self._request_json("PATCH", f"/tasks/{task_id}", json=body))

  async def delete_task(self, task_id: int) -> TaskOut:
    data = await self._request_json("DELETE", f"/tasks/{task_id}")
    return TaskOut.model_validate(data["task"])

  # -- columns ------------------------------------------------------------

  async def list_columns(self) -> list[ColumnOut]:
    return [ColumnOut.model_validate(c) for c in await self._request_json("GET", "/columns")]

  async def create_column(self, name: str, *, position: int | None = None) -> ColumnOut:
    body: dict[str, Any] = {"name": name}
    if position is not None:
      body["position"] = position
    return ColumnOut.model_validate(await self._request_json("POST", "/columns", json=body))

  async def update_column(self, column_id: int, **fields: Any) -> ColumnOut:
    return ColumnOut.model_validate(await self._request_json("PATCH", f"/columns/{column_id}", json=fields))

  async def delete_column(self, column_id: int) -> tuple[ColumnOut, int]:
    data = await self._request_json("DELETE", f"/columns/{column_id}")
    return ColumnOut.model_validate(data["column"]), int(data["deletedTasks"])
