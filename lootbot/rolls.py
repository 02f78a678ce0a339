"""Weighted reward rolls for chest pools."""

from __future__ import annotations

import logging
import math
import random
from typing import List, Optional, Sequence

from .errors import EmptyRewardPoolError
from .models import PoolEntry, Reward

logger = logging.getLogger("lootbot.rolls")


def _raw_weight(entry: PoolEntry) -> float:
    try:
        weight = float(entry.weight)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(weight):
        return 0.0
    return weight


def normalize_weight(weight: object) -> float:
    """Turn a configured weight into a drop probability in [0, 1].

    Weights above 1 are read as percentages, so ``25`` and ``0.25`` mean the
    same thing. A weight of exactly 1 is a guaranteed drop.
    """
    try:
        value = float(weight)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    if value > 1:
        value /= 100.0
    return min(max(value, 0.0), 1.0)


def roll_amount(entry: PoolEntry, rng=random) -> int:
    low = max(entry.min_amt if entry.min_amt is not None else 1, 1)
    high = entry.max_amt if entry.max_amt is not None else low
    if high <= low:
        return low
    return rng.randint(low, high)


def _fallback_entry(pool: Sequence[PoolEntry], rng) -> PoolEntry:
    weights = [_raw_weight(entry) for entry in pool]
    total = sum(weights)
    if total <= 0:
        total = 1.0
    pick = rng.uniform(0, total)
    cumulative = 0.0
    for entry, weight in zip(pool, weights):
        cumulative += weight
        if pick <= cumulative:
            logger.debug("Fallback pick %.3f of %.3f selected %s.", pick, total, entry.item_id)
            return entry
    logger.debug("Fallback pick %.3f of %.3f matched nothing; using first entry.", pick, total)
    return pool[0]


def roll_chest(pool: Sequence[PoolEntry], rng: Optional[random.Random] = None) -> List[Reward]:
    """Roll a chest pool into a non-empty list of rewards.

    Every entry gets an independent trial against its normalized weight, and
    each hit yields a reward. When nothing hits, one entry is drawn with the
    raw weights as a roulette wheel so a chest never opens empty.
    """
    if not pool:
        raise EmptyRewardPoolError()
    source = rng if rng is not None else random

    rewards: List[Reward] = []
    for entry in pool:
        chance = normalize_weight(entry.weight)
        draw = source.random()
        if draw < chance:
            rewards.append(Reward(entry.item_id, roll_amount(entry, source)))
        logger.debug("Trial %s: draw %.4f vs chance %.4f", entry.item_id, draw, chance)

    if not rewards:
        entry = _fallback_entry(pool, source)
        rewards.append(Reward(entry.item_id, roll_amount(entry, source)))

    logger.debug("Rolled %s", ", ".join(f"{r.item_id}x{r.quantity}" for r in rewards))
    return rewards


__all__ = ["normalize_weight", "roll_amount", "roll_chest"]
