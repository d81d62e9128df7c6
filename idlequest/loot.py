"""Loot engine — drop chance, rarity roll, item templates."""

from __future__ import annotations

import logging
import random
import uuid
from typing import Any

from idlequest import constants as C
from idlequest.state import Item

log = logging.getLogger(__name__)


def roll_rarity(roll: float, is_boss: bool) -> str:
    epic, rare = C.BOSS_RARITY_THRESHOLDS if is_boss else C.RARITY_THRESHOLDS
    if roll < epic:
        return "epic"
    if roll < rare:
        return "rare"
    return "common"


def base_value(item: Item) -> float:
    """Template value × rarity multiplier, before stage scaling."""
    _name, _stat, base = C.ITEM_TEMPLATES[item.item_type]
    return base * C.RARITY_MULTIPLIER[item.rarity]


def make_item(item_type: str, rarity: str, stage: int = 1) -> Item:
    name, stat_target, base = C.ITEM_TEMPLATES[item_type]
    value = base * C.RARITY_MULTIPLIER[rarity] * (1 + (stage - 1) * C.LOOT_STAGE_SCALING)
    return Item(
        id=uuid.uuid4().hex,
        name=f"{rarity.capitalize()} {name}",
        item_type=item_type,
        rarity=rarity,
        stat_target=stat_target,
        value=value,
    )


def generate_loot(stage: int, is_boss: bool, rng: Any = random) -> Item | None:
    """Roll for an item drop after a kill. Returns None when nothing drops."""
    drop_chance = C.BOSS_DROP_CHANCE if is_boss else C.DROP_CHANCE
    if rng.random() >= drop_chance:
        return None

    rarity = roll_rarity(rng.random(), is_boss)
    item_type = rng.choice(list(C.ITEM_TEMPLATES))
    item = make_item(item_type, rarity, stage)
    log.debug("Loot dropped: %s (stage %d, boss=%s)", item.name, stage, is_boss)
    return item
