"""Progression — kill rewards, experience/level-up, stages, upgrades, prestige, pets."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from idlequest import constants as C
from idlequest.loot import generate_loot
from idlequest.state import (
    Effects, Hero, Monster, add_log, default_upgrades, pet_cost,
)
from idlequest.stats import clamp_hp, effective_stats, gold_bonus, round_half_up

if TYPE_CHECKING:
    from idlequest.state import GameState, Item, LeveledUpgrade

log = logging.getLogger(__name__)


@dataclass(slots=True)
class KillResult:
    gold: int
    xp: int
    levels_gained: int
    was_boss: bool
    item: Item | None = None


# ── Experience ───────────────────────────────────────────────────

def apply_xp(hero: Hero, xp: int) -> int:
    """Add experience and resolve every level-up it pays for.

    Returns the number of levels gained.
    """
    hero.xp += xp
    gained = 0
    while hero.xp >= hero.xp_needed:
        hero.level += 1
        hero.xp -= hero.xp_needed
        hero.xp_needed = round_half_up(hero.xp_needed * C.XP_GROWTH)
        hero.max_hp += C.LEVEL_HP_GAIN
        hero.damage += C.LEVEL_DAMAGE_GAIN
        hero.skill_points += C.SKILL_POINTS_PER_LEVEL
        gained += 1
    return gained


# ── Defeat pipeline ──────────────────────────────────────────────

def defeat_monster(state: GameState, rng: Any = random) -> KillResult:
    """Apply all rewards for the monster that just died."""
    hero = state.hero
    monster = state.monster
    was_boss = state.is_boss_fight
    add_log(state, f"{monster.name} has been defeated!", "red")

    gold = round_half_up(monster.gold_reward * (1 + gold_bonus(state)))
    if state.effects.gold_rush_active:
        gold *= C.GOLD_RUSH_MULTIPLIER
        state.effects.gold_rush_active = False
        add_log(state, "Gold Rush! Reward doubled.", "yellow")
    hero.gold += gold
    xp = monster.xp_reward
    add_log(state, f"+{gold} gold, +{xp} XP", "yellow")

    if was_boss:
        state.stage += 1
        state.monsters_killed_in_stage = 0
        state.is_boss_fight = False
        state.boss_timer = C.BOSS_TIME_LIMIT
        add_log(state, f"Boss defeated! You advanced to stage {state.stage}!", "purple")
        log.info("Stage advanced to %d", state.stage)
    else:
        state.monsters_killed_in_stage += 1
        if state.monsters_killed_in_stage >= state.monsters_per_stage:
            add_log(state, "A boss approaches!", "purple")

    item = generate_loot(state.stage, was_boss, rng)
    if item is not None:
        state.inventory.append(item)
        add_log(state, f"Loot: {item.name}!", "cyan")

    levels = apply_xp(hero, xp)
    if levels:
        add_log(state, f"LEVEL UP! You are now level {hero.level}.", "blue")
        log.info("Hero reached level %d", hero.level)

    hero.hp = effective_stats(state).max_hp
    return KillResult(gold=gold, xp=xp, levels_gained=levels, was_boss=was_boss, item=item)


# ── Gold upgrade tracks ──────────────────────────────────────────

def buy_upgrade(state: GameState, track_id: str) -> bool:
    track = state.upgrades.get(track_id)
    if track is None or track_id not in C.UPGRADE_TRACKS:
        return False
    hero = state.hero
    if hero.gold < track.cost:
        log.debug("buy_upgrade: %s costs %d, have %d", track_id, track.cost, hero.gold)
        return False

    hero.gold -= track.cost
    if track_id == "damage":
        hero.damage += track.increase
    elif track_id == "health":
        hero.max_hp += track.increase
        hero.hp += track.increase
        clamp_hp(state)
    elif track_id == "critChance":
        hero.crit_chance += track.increase

    _cost, _increase, growth = C.UPGRADE_TRACKS[track_id]
    track.level += 1
    track.cost = round_half_up(track.cost * growth)
    return True


# ── Prestige ─────────────────────────────────────────────────────

def can_prestige(state: GameState) -> bool:
    return state.hero.level >= state.prestige.next_level_req


def relics_for(state: GameState) -> int:
    return state.stage // C.RELIC_STAGE_DIVISOR + state.hero.level


def prestige(state: GameState) -> int | None:
    """Reset the run for relics. Returns relics gained, or None if not allowed.

    Skill points and materials survive; level, gold, equipment, inventory,
    gold upgrade tracks and stage progress do not.
    """
    if not can_prestige(state):
        log.debug("prestige: level %d < %d", state.hero.level, state.prestige.next_level_req)
        return None

    gained = relics_for(state)
    old = state.hero
    state.hero = Hero(skill_points=old.skill_points, materials=dict(old.materials))
    state.inventory = []
    state.upgrades = default_upgrades()
    state.stage = 1
    state.monsters_killed_in_stage = 0
    state.is_boss_fight = False
    state.boss_timer = C.BOSS_TIME_LIMIT
    state.effects = Effects()
    for skill in state.skills.values():
        skill.remaining = 0
    state.monster = Monster()

    state.prestige.level += 1
    state.prestige.relics += gained
    state.prestige.next_level_req += C.PRESTIGE_LEVEL_REQ_STEP
    state.hero.hp = effective_stats(state).max_hp

    add_log(state, f"PRESTIGE! +{gained} relics.", "purple")
    log.info("Prestige %d: +%d relics", state.prestige.level, gained)
    return gained


# ── Leveled records (prestige upgrades, passive skills, pets) ────

def _advance(record: LeveledUpgrade) -> None:
    step = record.level + 1
    if record.level >= C.LEVELED_COST_STEP_LEVEL:
        step *= 2
    record.cost += step
    record.level += 1


def buy_prestige_upgrade(state: GameState, upgrade_id: str) -> bool:
    record = state.prestige_upgrades.get(upgrade_id)
    if record is None or state.prestige.relics < record.cost:
        return False
    state.prestige.relics -= record.cost
    _advance(record)
    return True


def buy_passive_skill(state: GameState, skill_id: str) -> bool:
    record = state.passive_skills.get(skill_id)
    if record is None or state.hero.skill_points < record.cost:
        return False
    state.hero.skill_points -= record.cost
    _advance(record)
    return True


def level_up_pet(state: GameState, pet_id: str) -> bool:
    pet = state.pets.get(pet_id)
    if pet is None or state.hero.gold < pet.cost:
        return False
    state.hero.gold -= pet.cost
    pet.level += 1
    pet.cost = pet_cost(pet.level)
    add_log(state, f"{pet.name} reached level {pet.level}!", "green")
    return True


def set_active_pet(state: GameState, pet_id: str) -> bool:
    if pet_id not in state.pets:
        return False
    state.active_pet = pet_id
    return True
