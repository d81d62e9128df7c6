"""Stat model — effective hero damage / max HP / crit chance from all modifiers."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from idlequest.state import GameState, Hero, LeveledUpgrade, Pet


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 going up (``round`` goes to even)."""
    return math.floor(value + 0.5)


class Stats(NamedTuple):
    damage: float
    max_hp: float
    crit_chance: float


def _bonus(records: dict[str, LeveledUpgrade], key: str) -> float:
    record = records.get(key)
    return record.bonus if record else 0.0


def _pet_bonus(pet: Pet | None, stat: str) -> float:
    if pet is None or pet.bonus_type != stat:
        return 0.0
    return pet.bonus


def compute_stats(
    hero: Hero,
    prestige_upgrades: dict[str, LeveledUpgrade],
    passive_skills: dict[str, LeveledUpgrade],
    active_pet: Pet | None,
) -> Stats:
    """Compute effective combat stats.

    Multiplicative bonuses (prestige, passive, pet) apply to the base stats
    first; equipped item values are then added flat to their target stat.
    """
    damage = (
        hero.damage
        * (1 + _bonus(prestige_upgrades, "damage"))
        * (1 + _bonus(passive_skills, "damage"))
        * (1 + _pet_bonus(active_pet, "damage"))
    )
    max_hp = hero.max_hp * (1 + _bonus(passive_skills, "health"))
    crit_chance = hero.crit_chance + _pet_bonus(active_pet, "critChance")

    for item in hero.equipment.values():
        if item is None:
            continue
        if item.stat_target == "damage":
            damage += item.value
        elif item.stat_target == "maxHp":
            max_hp += item.value
        elif item.stat_target == "critChance":
            crit_chance += item.value

    return Stats(damage=damage, max_hp=max_hp, crit_chance=crit_chance)


def effective_stats(state: GameState) -> Stats:
    return compute_stats(
        state.hero,
        state.prestige_upgrades,
        state.passive_skills,
        state.pets.get(state.active_pet),
    )


def gold_bonus(state: GameState) -> float:
    """Combined prestige + pet gold bonus (0.25 means +25%)."""
    return _bonus(state.prestige_upgrades, "gold") + _pet_bonus(
        state.pets.get(state.active_pet), "gold"
    )


def cooldown_bonus(state: GameState) -> float:
    return _bonus(state.prestige_upgrades, "fasterCooldowns")


def clamp_hp(state: GameState) -> None:
    """Keep hero HP within [0, effective max HP]."""
    max_hp = effective_stats(state).max_hp
    state.hero.hp = max(0, min(state.hero.hp, max_hp))
