"""Dice notation: scanning, shorthand resolution, and limit checks.

Supports MapTool-style notation inside square brackets: [XdYrZ+B].
Examples: [d20], [2d8+2], [1d20r], [4d6r2-1], [d].

Every part but the ``d`` is optional:
  count omitted   → 1
  sides omitted   → 20
  no ``r``        → reroll threshold 1 (nothing is ever rerolled)
  ``r`` alone     → reroll threshold ceil(sides / 2)
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass

from knucklebones.config import settings

logger = logging.getLogger(__name__)

# Non-overlapping bracket pairs with no nested brackets inside.
_CANDIDATE_RE = re.compile(r"\[([^\[\]]*)\]")
_PLAUSIBLE_RE = re.compile(r"[0-9dD]")

_NOTATION_RE = re.compile(
    r"^(?P<count>\d+)?d(?P<sides>\d+)?"
    r"(?P<reroll>r(?P<threshold>\d+)?)?"
    r"(?:(?P<op>[+-])(?P<sign>[+-])?(?P<bonus>\d+))?$",
    re.IGNORECASE,
)
_WHITESPACE_RE = re.compile(r"\s+")

DEFAULT_COUNT = 1
DEFAULT_SIDES = 20
DEFAULT_REROLL_THRESHOLD = 1

TOO_MANY_DICE = "too many dice"
DICE_TOO_LARGE = "dice too large"
BONUS_OUT_OF_RANGE = "bonus out of range"


class DiceError(ValueError):
    """Base class for dice notation and rolling errors."""


class MalformedExpression(DiceError):
    """Raised when bracket content does not match the dice grammar."""


class LimitExceeded(DiceError):
    """Raised when a roll specification exceeds a configured limit.

    Attributes:
        reason: One of TOO_MANY_DICE, DICE_TOO_LARGE, BONUS_OUT_OF_RANGE.
        limit: The maximum that was exceeded.
    """

    def __init__(self, reason: str, limit: int) -> None:
        super().__init__(f"{reason} (max {limit})")
        self.reason = reason
        self.limit = limit


@dataclass(frozen=True)
class RawMatch:
    """Bracketed substring found in free text.

    ``text`` excludes the brackets; ``start`` and ``end`` span them.
    """

    text: str
    start: int
    end: int


@dataclass(frozen=True)
class RollSpec:
    """A fully resolved roll."""

    count: int
    sides: int
    reroll_threshold: int = DEFAULT_REROLL_THRESHOLD
    bonus: int = 0

    def __post_init__(self) -> None:
        if self.count < 0 or self.sides < 0:
            raise ValueError("count and sides must be non-negative")
        if self.reroll_threshold < 1:
            raise ValueError("reroll_threshold must be at least 1")

    @property
    def notation(self) -> str:
        """Canonical notation, e.g. ``2d8+2`` or ``1d20r10-1``."""
        text = f"{self.count}d{self.sides}"
        if self.reroll_threshold != DEFAULT_REROLL_THRESHOLD:
            text += f"r{self.reroll_threshold}"
        if self.bonus > 0:
            text += f"+{self.bonus}"
        elif self.bonus < 0:
            text += str(self.bonus)
        return text

    @property
    def max_bonus(self) -> int:
        return self.count * self.sides * settings.max_bonus_factor


@dataclass(frozen=True)
class Accepted:
    spec: RollSpec


@dataclass(frozen=True)
class Rejected:
    """A spec that failed validation.

    Attributes:
        spec: The offending specification.
        reason: One of TOO_MANY_DICE, DICE_TOO_LARGE, BONUS_OUT_OF_RANGE.
        limit: The maximum that was exceeded.
    """

    spec: RollSpec
    reason: str
    limit: int


ValidationOutcome = Accepted | Rejected


def scan(text: str) -> Iterator[RawMatch]:
    """Yield every bracketed candidate dice expression in text.

    Candidates only need to contain a digit or a ``d``; grammar is checked
    later by parse(). Calling again on the same text yields the same matches.
    """
    for m in _CANDIDATE_RE.finditer(text):
        content = m.group(1)
        if _PLAUSIBLE_RE.search(content):
            yield RawMatch(text=content, start=m.start(), end=m.end())


def _number(digits: str | None, default: int, expression: str) -> int:
    if digits is None:
        return default
    try:
        return int(digits)
    except ValueError as exc:
        # int() refuses digit strings past the interpreter's conversion limit.
        raise MalformedExpression(f"Number too large in {expression[:40]!r}") from exc


def parse(expression: str) -> RollSpec:
    """Parse dice notation into a RollSpec, filling in shorthand defaults.

    Args:
        expression: Bracket content, e.g. "2d8+2", "d", "1d20r". Whitespace is
            ignored and letters are case-insensitive.

    Returns:
        The resolved RollSpec.

    Raises:
        MalformedExpression: If the expression does not match the grammar.
    """
    m = _NOTATION_RE.match(_WHITESPACE_RE.sub("", expression))
    if not m:
        raise MalformedExpression(f"Invalid dice notation: {expression!r}")

    count = _number(m.group("count"), DEFAULT_COUNT, expression)
    sides = _number(m.group("sides"), DEFAULT_SIDES, expression)

    if m.group("reroll") is None:
        threshold = DEFAULT_REROLL_THRESHOLD
    elif m.group("threshold") is None:
        threshold = max(1, (sides + 1) // 2)
    else:
        threshold = _number(m.group("threshold"), DEFAULT_REROLL_THRESHOLD, expression)
        if threshold < 1:
            raise MalformedExpression(f"Reroll threshold must be positive: {expression!r}")

    bonus = 0
    if m.group("op") is not None:
        op, sign = m.group("op"), m.group("sign")
        # "-B" takes a bare literal; only "+" may be followed by a sign.
        if op == "-" and sign is not None:
            raise MalformedExpression(f"Invalid penalty: {expression!r}")
        bonus = _number(m.group("bonus"), 0, expression)
        if op == "-" or sign == "-":
            bonus = -bonus

    return RollSpec(count=count, sides=sides, reroll_threshold=threshold, bonus=bonus)


def validate(spec: RollSpec) -> ValidationOutcome:
    """Check a RollSpec against the dice, sides, and bonus limits.

    Degenerate rolls (no dice, zero or one side) are accepted.
    """
    if spec.count > settings.max_dice:
        return Rejected(spec, TOO_MANY_DICE, settings.max_dice)
    if spec.sides > settings.max_sides:
        return Rejected(spec, DICE_TOO_LARGE, settings.max_sides)
    if abs(spec.bonus) > spec.max_bonus:
        return Rejected(spec, BONUS_OUT_OF_RANGE, spec.max_bonus)
    return Accepted(spec)


def ensure_within_limits(spec: RollSpec) -> RollSpec:
    """Return spec unchanged, or raise LimitExceeded naming the violated limit."""
    outcome = validate(spec)
    if isinstance(outcome, Rejected):
        raise LimitExceeded(outcome.reason, outcome.limit)
    return spec


def resolve_all(text: str) -> Iterator[tuple[RawMatch, ValidationOutcome]]:
    """Scan text and yield each well-formed match with its validation outcome.

    Malformed matches are skipped; brackets in ordinary chat text are common.
    """
    for match in scan(text):
        try:
            spec = parse(match.text)
        except MalformedExpression:
            logger.debug("Ignoring non-dice brackets at %d: %r", match.start, match.text)
            continue
        yield match, validate(spec)
