"""Free-text message route: rolls every [dice] expression found in a message."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from knucklebones.dependencies import get_source
from knucklebones.pipeline import process_message
from knucklebones.randomness import RandomSource
from knucklebones.schemas import MessageIn, MessageOut, ReplyLineOut

router = APIRouter()


@router.post("/messages", response_model=MessageOut)
async def roll_message(
    body: MessageIn,
    source: RandomSource = Depends(get_source),
) -> MessageOut:
    lines = await process_message(body.content, source=source)
    return MessageOut(
        replies=[ReplyLineOut(position=line.position, text=line.text) for line in lines]
    )
