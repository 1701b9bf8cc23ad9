"""Message and command handling: text in, reply lines out.

Each call is independent. Specs, rolls and sources live only for the
duration of a single message.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from knucklebones.config import settings
from knucklebones.dice import (
    Accepted,
    MalformedExpression,
    Rejected,
    parse,
    resolve_all,
    validate,
)
from knucklebones.evaluator import EvaluatedRoll, evaluate
from knucklebones.randomness import RandomSource, get_random_source
from knucklebones.rendering import ReplyLine, render, render_lines

logger = logging.getLogger(__name__)

MALFORMED_REPLY = "Malformed dice expression."
TOO_LONG_REPLY = "The result is too long to be displayed in a single message."


@dataclass(frozen=True)
class CommandReply:
    """Reply to an explicit roll command.

    ``hidden`` asks the chat platform to show the reply only to the sender.
    """

    content: str
    hidden: bool


async def _outcome(
    result: Accepted | Rejected, source: RandomSource
) -> EvaluatedRoll | Rejected:
    if isinstance(result, Rejected):
        return result
    return await evaluate(result.spec, source)


async def process_message(text: str, *, source: RandomSource | None = None) -> list[ReplyLine]:
    """Roll every dice expression embedded in a chat message.

    Args:
        text: The message body.
        source: Primary random source. Defaults to the configured one.

    Returns:
        One ReplyLine per well-formed expression, in order of appearance.
        An empty list when the message holds no dice expressions.
    """
    found = list(resolve_all(text))
    if not found:
        return []
    source = source or get_random_source()
    outcomes = await asyncio.gather(*(_outcome(result, source) for _, result in found))
    lines = render_lines((match.start, outcome) for (match, _), outcome in zip(found, outcomes))
    logger.debug("Rolled %d expression(s) from message", len(lines))
    return lines


async def process_command(
    expression: str, *, hidden: bool = True, source: RandomSource | None = None
) -> CommandReply:
    """Roll a single dice expression given to the explicit roll command.

    Surrounding brackets are optional. Malformed expressions are reported
    instead of ignored, since the user asked for a roll directly.
    """
    expression = expression.strip()
    if expression.startswith("[") and expression.endswith("]"):
        expression = expression[1:-1]

    try:
        spec = parse(expression)
    except MalformedExpression:
        return CommandReply(content=MALFORMED_REPLY, hidden=hidden)

    content = render(await _outcome(validate(spec), source or get_random_source()))
    if len(content) > settings.max_reply_length:
        content = TOO_LONG_REPLY
    return CommandReply(content=content, hidden=hidden)
