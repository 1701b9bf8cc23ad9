"""FastAPI dependencies for Knucklebones."""

from __future__ import annotations

from knucklebones.randomness import RandomSource, get_random_source


def get_source() -> RandomSource:
    """Return the primary random source for a request.

    Tests override this dependency to inject a deterministic source.
    """
    return get_random_source()
