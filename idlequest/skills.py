"""Skill scheduler — active skills, one-shot effects, cooldown ticking."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from idlequest import constants as C
from idlequest.state import add_log
from idlequest.stats import cooldown_bonus, effective_stats, round_half_up

if TYPE_CHECKING:
    from idlequest.state import GameState, Skill

log = logging.getLogger(__name__)


def is_ready(skill: Skill) -> bool:
    return skill.remaining <= 0


def effective_cooldown(state: GameState, skill: Skill) -> float:
    return max(C.MIN_COOLDOWN, skill.cooldown * (1 - cooldown_bonus(state)))


def use_skill(state: GameState, skill_id: str) -> bool:
    """Activate a skill. Rejected while on cooldown or for unknown skills."""
    skill = state.skills.get(skill_id)
    if skill is None:
        log.debug("use_skill: unknown skill %s", skill_id)
        return False
    if not is_ready(skill):
        log.debug("use_skill: %s on cooldown (%ss)", skill_id, skill.remaining)
        return False

    if skill_id == "powerfulStrike":
        state.effects.powerful_strike_active = True
        add_log(state, "Preparing a Powerful Strike!", "orange")
    elif skill_id == "quickHeal":
        max_hp = effective_stats(state).max_hp
        heal = round_half_up(max_hp * C.QUICK_HEAL_FRACTION)
        state.hero.hp = min(max_hp, state.hero.hp + heal)
        add_log(state, f"You heal for {heal} HP!", "teal")
    elif skill_id == "goldRush":
        state.effects.gold_rush_active = True
        add_log(state, "The next monster will drop double gold!", "yellow")
    else:
        return False

    skill.remaining = effective_cooldown(state, skill)
    return True


def cooldown_tick(state: GameState) -> bool:
    """Advance every cooldown by one second. Returns True if any changed."""
    changed = False
    for skill in state.skills.values():
        if skill.remaining > 0:
            skill.remaining = max(0, skill.remaining - 1)
            changed = True
    return changed
