from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import delete

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
  sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{ROOT / 'taskboard_test.db'}")

from taskboard.config import settings
from taskboard.db import SessionLocal, create_schema, engine
from taskboard.gateway import BoardGateway
from taskboard.main import app
from taskboard.models import BoardColumn, Task


@pytest.fixture(scope="session")
def anyio_backend() -> str:
  return "asyncio"


async def _reset_db() -> None:
  await create_schema()
  async with SessionLocal() as db:
    await db.execute(delete(Task))
    await db.execute(delete(BoardColumn))
    await db.commit()
  await engine.dispose()


@pytest.fixture
async def clean_db() -> None:
  db_name = settings.database_url.rsplit("/", 1)[-1]
  if "test" not in db_name:
    raise RuntimeError(
      "Refusing to run destructive tests against non-test DB. "
      "Set DATABASE_URL to a *_test database (e.g. taskboard_test)."
    )
  await _reset_db()
  yield
  await _reset_db()


@pytest.fixture
async def client(clean_db) -> AsyncClient:
  transport = ASGITransport(app=app)
  async with AsyncClient(transport=transport, base_url="http://localhost") as c:
    yield c


@pytest.fixture
async def gateway(clean_db) -> BoardGateway:
  async with SessionLocal() as db:
    yield BoardGateway(db)


async def seed_board(client: AsyncClient, layout: dict[str, list[str]]) -> dict[str, dict]:
  """Create columns and tasks in order; returns everything created keyed by name/title."""
  created: dict[str, dict] = {}
  for name, titles in layout.items():
    res = await client.post("/columns", json={"name": name})
    assert res.status_code == 201, res.text
    col = res.json()
    created[name] = col
    for title in titles:
      tres = await client.post("/tasks", json={"title": title, "columnId": col["id"]})
      assert tres.status_code == 201, tres.text
      created[title] = tres.json()
  return created


def column_titles(board: dict) -> dict[str, list[str]]:
  return {c["name"]: [t["title"] for t in c["tasks"]] for c in board["columns"]}


def column_positions(board: dict) -> dict[str, list[int]]:
  return {c["name"]: [t["position"] for t in c["tasks"]] for c in board["columns"]}
