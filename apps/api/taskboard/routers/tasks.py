from __future__ import annotations

from fastapi import APIRouter, Depends, status

from taskboard.deps import get_gateway
from taskboard.gateway import BoardGateway
from taskboard.schemas import (
  MoveOut,
  TaskCreateIn,
  TaskDeletedOut,
  TaskMoveIn,
  TaskOut,
  TaskUpdateIn,
  board_out,
  command_out,
  task_out,
)

router = APIRouter(tags=["tasks"])

_FIELD_MAP = {
  "title": "title",
  "description": "description",
  "notes": "notes",
  "columnId": "column_id",
  "position": "position",
}


@router.get("/tasks", response_model=list[TaskOut])
async def list_tasks(columnId: int | None = None, gw: BoardGateway = Depends(get_gateway)) -> list[TaskOut]:
  return [task_out(t) for t in await gw.list_tasks(columnId)]


@router.post("/tasks", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
async def create_task(payload: TaskCreateIn, gw: BoardGateway = Depends(get_gateway)) -> TaskOut:
  t = await gw.create_task(
    payload.title,
    description=payload.description,
    notes=payload.notes,
    column_id=payload.columnId,
    position=payload.position,
  )
  return task_out(t)


@router.get("/tasks/{task_id}", response_model=TaskOut)
async def get_task(task_id: int, gw: BoardGateway = Depends(get_gateway)) -> TaskOut:
  return task_out(await gw.get_task(task_id))


@router.patch("/tasks/{task_id}", response_model=TaskOut)
async def update_task(task_id: int, payload: TaskUpdateIn, gw: BoardGateway = Depends(get_gateway)) -> TaskOut:
  fields = {_FIELD_MAP[name]: getattr(payload, name) for name in payload.model_fields_set}
  return task_out(await gw.update_task(task_id, fields))


@router.delete("/tasks/{task_id}", response_model=TaskDeletedOut)
async def delete_task(task_id: int, gw: BoardGateway = Depends(get_gateway)) -> TaskDeletedOut:
  t = await gw.delete_task(task_id)
  return TaskDeletedOut(message="Task deleted", task=task_out(t))


@router.post("/tasks/{task_id}/move", response_model=MoveOut)
async def move_task(task_id: int, payload: TaskMoveIn, gw: BoardGateway = Depends(get_gateway)) -> MoveOut:
  board, commands = await gw.move_task(task_id, payload.columnId, payload.toIndex)
  return MoveOut(commands=[command_out(c) for c in commands], board=board_out(board))
