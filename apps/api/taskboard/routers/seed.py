from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from taskboard.config import settings
from taskboard.deps import get_gateway
from taskboard.gateway import BoardGateway
from taskboard.schemas import SeedOut, column_out

router = APIRouter(tags=["seed"])


@router.post("/seed", response_model=SeedOut)
async def seed_columns(response: Response, gw: BoardGateway = Depends(get_gateway)) -> SeedOut:
  columns, created = await gw.seed_defaults(settings.default_column_names())
  if not created:
    return SeedOut(message="Columns already exist", columns=[column_out(c) for c in columns])
  response.status_code = status.HTTP_201_CREATED
  return SeedOut(message="Default columns created", columns=[column_out(c) for c in columns])
