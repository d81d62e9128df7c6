"""Combat resolver — monster spawning, hero/monster attack ticks, boss timer."""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING, Any

from idlequest import constants as C
from idlequest.progression import KillResult, defeat_monster
from idlequest.state import Monster, Poison, add_log
from idlequest.stats import effective_stats, round_half_up

if TYPE_CHECKING:
    from idlequest.state import GameState

log = logging.getLogger(__name__)


def stage_multiplier(stage: int) -> float:
    return 1 + (stage - 1) * C.STAGE_SCALING


def boss_due(state: GameState) -> bool:
    return state.monsters_killed_in_stage >= state.monsters_per_stage


# ── Spawning ─────────────────────────────────────────────────────

def spawn_monster(state: GameState, rng: Any = random) -> Monster:
    """Replace the current monster with a fresh one for the current stage.

    After ``monsters_per_stage`` kills the spawn is a timed boss.
    """
    stage = state.stage
    mult = stage_multiplier(stage)
    is_boss = boss_due(state)

    variance = 1 + rng.random() * C.MONSTER_HP_VARIANCE
    max_hp = round_half_up(C.MONSTER_BASE_HP * mult * variance)
    gold = round_half_up(C.MONSTER_BASE_GOLD * mult)
    xp = round_half_up(C.MONSTER_BASE_XP * mult)
    if is_boss:
        max_hp *= C.BOSS_HP_MULTIPLIER
        gold *= C.BOSS_REWARD_MULTIPLIER
        xp *= C.BOSS_REWARD_MULTIPLIER
        name = f"{rng.choice(C.BOSS_NAMES)} (Boss, Stage {stage})"
    else:
        name = f"{rng.choice(C.MONSTER_NAMES)} (Stage {stage})"
    art = rng.choice(C.MONSTER_ART)

    abilities: set[str] = set()
    if stage >= C.ABILITY_MIN_STAGE:
        chance = C.BOSS_ABILITY_CHANCE if is_boss else C.ABILITY_CHANCE
        for ability in C.ABILITIES:
            if rng.random() < chance:
                abilities.add(ability)

    monster = Monster(
        name=name, hp=max_hp, max_hp=max_hp, gold_reward=gold, xp_reward=xp,
        art=art, abilities=abilities, used_heal_this_encounter=False,
    )
    state.monster = monster
    if is_boss:
        state.is_boss_fight = True
        state.boss_timer = C.BOSS_TIME_LIMIT
        add_log(state, f"BOSS: {name} appears! Defeat it within {C.BOSS_TIME_LIMIT}s!", "red")
        log.info("Boss spawned at stage %d: %s (%d HP)", stage, name, max_hp)
    else:
        add_log(state, f"A wild {name} appeared!", "gray")
    return monster


# ── Hero → monster ───────────────────────────────────────────────

def hero_attack(state: GameState, rng: Any = random) -> KillResult | None:
    """Resolve one hero attack. Returns the kill result if the monster died."""
    monster = state.monster
    if monster.is_dead:
        return None  # awaiting respawn
    if state.is_boss_fight and state.boss_timer <= 0:
        return None

    stats = effective_stats(state)
    damage = stats.damage

    # Dodge short-circuits powerful strike and crit.
    if "dodge" in monster.abilities and rng.random() < C.DODGE_CHANCE:
        damage = 0
        add_log(state, f"{monster.name} dodged the attack!", "gray")
    elif state.effects.powerful_strike_active:
        damage *= C.POWERFUL_STRIKE_MULTIPLIER
        state.effects.powerful_strike_active = False
        add_log(state, f"POWERFUL STRIKE! Hero attacks for {damage:.0f} damage.", "orange")
    elif rng.random() < stats.crit_chance:
        damage = round_half_up(damage * state.hero.crit_multiplier)
        add_log(state, f"CRITICAL HIT! Hero attacks for {damage} damage.", "yellow")
    else:
        add_log(state, f"Hero attacks for {damage:.0f} damage.", "green")

    monster.hp -= damage

    if (
        "heal" in monster.abilities
        and not monster.used_heal_this_encounter
        and monster.hp < monster.max_hp / 2
    ):
        # Runs before the death check, so it can save the monster from a lethal hit.
        heal = round_half_up(monster.max_hp * C.MONSTER_HEAL_FRACTION)
        monster.hp = min(monster.max_hp, monster.hp + heal)
        monster.used_heal_this_encounter = True
        add_log(state, f"{monster.name} heals for {heal} HP!", "teal")

    if monster.hp <= 0:
        return defeat_monster(state, rng)
    return None


# ── Monster → hero ───────────────────────────────────────────────

def monster_attack(state: GameState, rng: Any = random) -> None:
    """Apply poison infliction and poison damage; revive the hero in place at 0 HP.

    Only a living monster can inflict poison. An active poison keeps ticking
    while the next monster respawns.
    """
    hero = state.hero
    monster = state.monster
    max_hp = effective_stats(state).max_hp

    if (
        "poison" in monster.abilities
        and hero.poison is None
        and not monster.is_dead
        and rng.random() < C.POISON_CHANCE
    ):
        hero.poison = Poison(
            remaining_ticks=C.POISON_TICKS,
            damage_per_tick=max_hp * C.POISON_DAMAGE_FRACTION,
        )
        add_log(state, f"{monster.name} poisons you!", "green")

    if hero.poison is not None:
        hero.hp -= hero.poison.damage_per_tick
        hero.poison.remaining_ticks -= 1
        if hero.poison.remaining_ticks <= 0:
            hero.poison = None

    if hero.hp <= 0:
        hero.hp = max_hp
        hero.poison = None
        add_log(state, "You were defeated... but rise again at full health.", "red")
        log.debug("Hero revived in place at stage %d", state.stage)


def combat_tick(state: GameState, rng: Any = random) -> KillResult | None:
    """One combat second: hero attack, then monster attack."""
    result = hero_attack(state, rng)
    monster_attack(state, rng)
    return result


# ── Boss timer ───────────────────────────────────────────────────

def boss_timer_tick(state: GameState) -> bool:
    """Count the boss timer down; at zero the boss recovers and the timer restarts."""
    if not state.is_boss_fight:
        return False
    state.boss_timer -= 1
    if state.boss_timer <= 0:
        state.monster.hp = state.monster.max_hp
        state.boss_timer = C.BOSS_TIME_LIMIT
        add_log(state, "Time's up! The boss has recovered.", "red")
        log.info("Boss timer expired at stage %d", state.stage)
    return True
