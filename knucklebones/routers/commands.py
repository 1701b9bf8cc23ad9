"""Explicit command routes: roll, ping, and code.

Every command takes a ``hidden`` flag that defaults to true, asking the
chat platform to show the reply only to the user who issued it.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from knucklebones.config import settings
from knucklebones.dependencies import get_source
from knucklebones.pipeline import process_command
from knucklebones.randomness import RandomSource
from knucklebones.schemas import CommandOut, RollCommandIn

router = APIRouter(prefix="/commands")


@router.post("/roll", response_model=CommandOut)
async def roll_command(
    body: RollCommandIn,
    source: RandomSource = Depends(get_source),
) -> CommandOut:
    reply = await process_command(body.expression, hidden=body.hidden, source=source)
    return CommandOut(content=reply.content, hidden=reply.hidden)


@router.get("/ping", response_model=CommandOut)
async def ping_command(hidden: bool = True) -> CommandOut:
    return CommandOut(content="Pong.", hidden=hidden)


@router.get("/code", response_model=CommandOut)
async def code_command(hidden: bool = True) -> CommandOut:
    return CommandOut(
        content=f"My source code can be found here: {settings.source_code_url}",
        hidden=hidden,
    )
