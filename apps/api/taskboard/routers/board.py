from __future__ import annotations

from fastapi import APIRouter, Depends

from taskboard.deps import get_gateway
from taskboard.gateway import BoardGateway
from taskboard.ordering.reconcile import MoveCommand
from taskboard.schemas import BoardMoveIn, BoardOut, CommandsIn, CommandsOut, MoveOut, board_out, command_out, task_out

router = APIRouter(tags=["board"])


@router.get("/board", response_model=BoardOut)
async def get_board(gw: BoardGateway = Depends(get_gateway)) -> BoardOut:
  return board_out(await gw.fetch_board())


@router.post("/board/moves", response_model=MoveOut)
async def move_on_board(payload: BoardMoveIn, gw: BoardGateway = Depends(get_gateway)) -> MoveOut:
  board, commands = await gw.move_task(payload.taskId, payload.columnId, payload.toIndex)
  return MoveOut(commands=[command_out(c) for c in commands], board=board_out(board))


@router.post("/board/commands", response_model=CommandsOut)
async def apply_commands(payload: CommandsIn, gw: BoardGateway = Depends(get_gateway)) -> CommandsOut:
  commands = [MoveCommand(task_id=c.taskId, position=c.position, column_id=c.columnId) for c in payload.commands]
  tasks = await gw.apply_commands(commands)
  return CommandsOut(tasks=[task_out(t) for t in tasks])
