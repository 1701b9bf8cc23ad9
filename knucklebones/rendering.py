"""Plain-text rendering of roll results, one line per bracketed expression."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from knucklebones.dice import Rejected
from knucklebones.evaluator import DieOutcome, EvaluatedRoll

PSEUDO_RANDOM_MARKER = "[pseudo-random]"


@dataclass(frozen=True)
class ReplyLine:
    """A rendered reply line and the offset of the expression it answers."""

    position: int
    text: str


def _render_die(die: DieOutcome) -> str:
    if die.rerolled:
        return f"{die.first}->{die.kept}"
    return str(die.kept)


def render_roll(roll: EvaluatedRoll) -> str:
    """Render an evaluated roll, e.g. ``2d8+2: 5, 3 + 2 = 10``."""
    spec = roll.spec
    if roll.dice:
        text = ", ".join(_render_die(die) for die in roll.dice)
    else:
        text = "0"

    if spec.bonus:
        sign = "+" if spec.bonus > 0 else "-"
        text += f" {sign} {abs(spec.bonus)} = {roll.total}"
    elif len(roll.dice) > 1:
        text += f" = {roll.total}"

    line = f"{spec.notation}: {text}"
    if roll.used_fallback:
        line += f" {PSEUDO_RANDOM_MARKER}"
    return line


def render_rejection(rejected: Rejected) -> str:
    """Render a rejected spec, naming the violated limit."""
    return f"{rejected.spec.notation}: {rejected.reason} (max {rejected.limit})"


def render(outcome: EvaluatedRoll | Rejected) -> str:
    if isinstance(outcome, Rejected):
        return render_rejection(outcome)
    return render_roll(outcome)


def render_lines(entries: Iterable[tuple[int, EvaluatedRoll | Rejected]]) -> list[ReplyLine]:
    """Render (position, outcome) pairs, keeping their order of appearance."""
    return [
        ReplyLine(position=position, text=render(outcome))
        for position, outcome in sorted(entries, key=lambda entry: entry[0])
    ]
