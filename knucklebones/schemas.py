"""Pydantic request and response models for the HTTP surface."""

from __future__ import annotations

from pydantic import BaseModel, Field


class MessageIn(BaseModel):
    content: str = Field(description="Chat message body, possibly containing [dice] expressions.")


class ReplyLineOut(BaseModel):
    position: int = Field(description="Offset of the bracketed expression in the message.")
    text: str


class MessageOut(BaseModel):
    replies: list[ReplyLineOut] = Field(
        description="One line per dice expression, in order. Empty when nothing matched."
    )


class RollCommandIn(BaseModel):
    expression: str = Field(
        min_length=1,
        max_length=200,
        description="A single dice expression, with or without surrounding brackets.",
    )
    hidden: bool = Field(
        default=True, description="Show the reply only to the user who issued the command."
    )


class CommandOut(BaseModel):
    content: str
    hidden: bool
