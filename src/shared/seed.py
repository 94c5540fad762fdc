"""Deterministic seed initialisation for reproducible simulations."""

from __future__ import annotations

import logging
import random

log = logging.getLogger(__name__)


def init_seed(seed: int | None) -> random.Random:
    """Return a dedicated Random instance.

    With a concrete *seed* the global ``random`` module is seeded as well, so
    every generator in the emulator replays the same sequence. ``None`` gives
    an unseeded (system entropy) instance.
    """
    if seed is None:
        log.info("Random seed not set, using system entropy")
        return random.Random()
    random.seed(seed)
    log.info("Random seed initialised: %d", seed)
    return random.Random(seed)
