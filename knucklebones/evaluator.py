"""Roll evaluation: draws dice, applies the reroll rule, and owns the fallback policy.

Reroll is a single substitution. A die whose first draw is below the reroll
threshold is drawn exactly once more and the new value is kept, even if it
is also below the threshold.

If the primary source fails at any point during a roll, the whole roll is
redone on the fallback source. One roll never mixes values from both.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from knucklebones.dice import RollSpec
from knucklebones.randomness import (
    RandomSource,
    SourceUnavailable,
    get_fallback_source,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DieOutcome:
    """A single die: its first draw and the value that was kept."""

    first: int
    kept: int
    rerolled: bool = False


@dataclass(frozen=True)
class EvaluatedRoll:
    spec: RollSpec
    dice: tuple[DieOutcome, ...]
    total: int
    used_fallback: bool = False


async def _roll_dice(spec: RollSpec, source: RandomSource) -> tuple[DieOutcome, ...]:
    if spec.count == 0:
        return ()
    if spec.sides <= 1:
        # d0 and d1 faces are constant; nothing is drawn, so nothing is rerolled.
        return (DieOutcome(first=spec.sides, kept=spec.sides),) * spec.count

    first = await source.integers(spec.count, 1, spec.sides)
    low = [i for i, value in enumerate(first) if value < spec.reroll_threshold]
    if not low:
        return tuple(DieOutcome(first=value, kept=value) for value in first)

    replacements = iter(await source.integers(len(low), 1, spec.sides))
    to_reroll = set(low)
    outcomes = []
    for i, value in enumerate(first):
        if i in to_reroll:
            outcomes.append(DieOutcome(first=value, kept=next(replacements), rerolled=True))
        else:
            outcomes.append(DieOutcome(first=value, kept=value))
    return tuple(outcomes)


async def evaluate(
    spec: RollSpec,
    source: RandomSource,
    *,
    fallback: RandomSource | None = None,
) -> EvaluatedRoll:
    """Roll the dice described by an accepted RollSpec.

    Args:
        spec: A specification that has already passed validation.
        source: Primary random source, usually a TrueRandomSource.
        fallback: Source used when the primary raises SourceUnavailable.
            Defaults to a fresh PseudoRandomSource.

    Returns:
        EvaluatedRoll with the per-die trace, the total including bonus, and
        whether the fallback source produced the values.
    """
    used_fallback = False
    try:
        dice = await _roll_dice(spec, source)
    except SourceUnavailable as exc:
        logger.warning("Random source unavailable for %s, using fallback: %s", spec.notation, exc)
        dice = await _roll_dice(spec, fallback or get_fallback_source())
        used_fallback = True

    total = sum(die.kept for die in dice) + spec.bonus
    return EvaluatedRoll(spec=spec, dice=dice, total=total, used_fallback=used_fallback)
