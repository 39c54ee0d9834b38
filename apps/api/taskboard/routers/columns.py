from __future__ import annotations

from fastapi import APIRouter, Depends, status

from taskboard.deps import get_gateway
from taskboard.gateway import BoardGateway
from taskboard.schemas import ColumnCreateIn, ColumnDeletedOut, ColumnOut, ColumnUpdateIn, column_out

router = APIRouter(tags=["columns"])


@router.get("/columns", response_model=list[ColumnOut])
async def list_columns(gw: BoardGateway = Depends(get_gateway)) -> list[ColumnOut]:
  return [column_out(c) for c in await gw.list_columns()]


@router.post("/columns", response_model=ColumnOut, status_code=status.HTTP_201_CREATED)
async def create_column(payload: ColumnCreateIn, gw: BoardGateway = Depends(get_gateway)) -> ColumnOut:
  return column_out(await gw.create_column(payload.name, position=payload.position))


@router.get("/columns/{column_id}", response_model=ColumnOut)
async def get_column(column_id: int, gw: BoardGateway = Depends(get_gateway)) -> ColumnOut:
  return column_out(await gw.get_column(column_id))


@router.patch("/columns/{column_id}", response_model=ColumnOut)
async def update_column(column_id: int, payload: ColumnUpdateIn, gw: BoardGateway = Depends(get_gateway)) -> ColumnOut:
  fields = {name: getattr(payload, name) for name in payload.model_fields_set}
  return column_out(await gw.update_column(column_id, fields))


@router.delete("/columns/{column_id}", response_model=ColumnDeletedOut)
async def delete_column(column_id: int, gw: BoardGateway = Depends(get_gateway)) -> ColumnDeletedOut:
  c, deleted = await gw.delete_column(column_id)
  return ColumnDeletedOut(message="Column deleted", column=column_out(c), deletedTasks=deleted)
