"""Persistence reconciler — snapshot codec, deep-merge over defaults, daily reward, offline catch-up.

Save format: ``gameState`` holds the full JSON snapshot, ``lastSaveTimestamp``
holds integer epoch milliseconds as ASCII digits.  Loading merges the stored
snapshot over a freshly built default state so fields added in later
versions are backfilled.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Any

from idlequest import constants as C
from idlequest.progression import apply_xp
from idlequest.state import GameState, add_log
from idlequest.stats import effective_stats, round_half_up

if TYPE_CHECKING:
    from idlequest.db import Storage

log = logging.getLogger(__name__)

STATE_KEY = "gameState"
TIMESTAMP_KEY = "lastSaveTimestamp"


class SnapshotError(ValueError):
    """Stored snapshot could not be decoded into a GameState."""


# ── Snapshot codec ───────────────────────────────────────────────

def default_state() -> GameState:
    return GameState()


def deep_merge(defaults: dict[str, Any], loaded: dict[str, Any]) -> dict[str, Any]:
    """Merge ``loaded`` over ``defaults`` key by key.

    Nested mappings merge recursively; lists and scalars from ``loaded``
    replace the default. Neither input is modified.
    """
    merged = dict(defaults)
    for key, value in loaded.items():
        base = merged.get(key)
        if isinstance(base, dict) and isinstance(value, dict):
            merged[key] = deep_merge(base, value)
        else:
            merged[key] = value
    return merged


def encode_state(state: GameState) -> bytes:
    return json.dumps(state.to_dict(), ensure_ascii=False).encode("utf-8")


def decode_state(raw: bytes | str) -> GameState:
    try:
        loaded = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise SnapshotError(f"unparseable snapshot: {exc}") from exc
    if not isinstance(loaded, dict):
        raise SnapshotError(f"snapshot is {type(loaded).__name__}, expected object")

    merged = deep_merge(default_state().to_dict(), loaded)
    try:
        return GameState.from_dict(merged)
    except (KeyError, TypeError, AttributeError, ValueError) as exc:
        raise SnapshotError(f"malformed snapshot: {exc!r}") from exc


# ── Daily reward ─────────────────────────────────────────────────

def daily_reward_available(state: GameState, today: date) -> bool:
    return state.last_daily_reward_date != today.isoformat()


def claim_daily_reward(state: GameState, today: date) -> bool:
    if not daily_reward_available(state, today):
        return False
    hero = state.hero
    hero.gold += C.DAILY_REWARD_GOLD
    hero.materials["scrap"] = hero.materials.get("scrap", 0) + C.DAILY_REWARD_SCRAP
    hero.materials["essence"] = hero.materials.get("essence", 0) + C.DAILY_REWARD_ESSENCE
    state.last_daily_reward_date = today.isoformat()
    add_log(
        state,
        f"Daily reward: +{C.DAILY_REWARD_GOLD} gold, +{C.DAILY_REWARD_SCRAP} scrap, "
        f"+{C.DAILY_REWARD_ESSENCE} essence!",
        "yellow",
    )
    return True


# ── Offline catch-up ─────────────────────────────────────────────

@dataclass(slots=True)
class OfflineReport:
    gold: int
    xp: int
    elapsed_seconds: int
    levels_gained: int


def average_rewards(stage: int) -> tuple[int, int]:
    """(gold, xp) of a regular monster at ``stage``."""
    mult = 1 + (stage - 1) * C.STAGE_SCALING
    return round_half_up(C.MONSTER_BASE_GOLD * mult), round_half_up(C.MONSTER_BASE_XP * mult)


def offline_progress(state: GameState, elapsed_seconds: int) -> OfflineReport | None:
    """Grant approximate rewards for time spent away. None below the threshold."""
    if elapsed_seconds <= C.OFFLINE_MIN_SECONDS:
        return None

    avg_gold, avg_xp = average_rewards(state.stage)
    rate = C.OFFLINE_KILLS_PER_SECOND * C.OFFLINE_EFFICIENCY
    gold = math.floor(elapsed_seconds * avg_gold * rate)
    xp = math.floor(elapsed_seconds * avg_xp * rate)

    state.hero.gold += gold
    levels = apply_xp(state.hero, xp)
    state.hero.hp = effective_stats(state).max_hp
    add_log(state, f"While you were away: +{gold} gold, +{xp} XP.", "yellow")
    log.info(
        "Offline for %ds: +%d gold, +%d xp, +%d levels",
        elapsed_seconds, gold, xp, levels,
    )
    return OfflineReport(gold=gold, xp=xp, elapsed_seconds=elapsed_seconds, levels_gained=levels)


# ── Storage round trip ───────────────────────────────────────────

async def load_game(storage: Storage, now_ms: int) -> tuple[GameState, OfflineReport | None]:
    """Load and reconcile the saved game, or start fresh.

    Corrupt snapshots are logged and replaced by a default state.
    """
    raw = await storage.load(STATE_KEY)
    if raw is None:
        log.info("No saved game, starting fresh")
        return default_state(), None

    try:
        state = decode_state(raw)
    except SnapshotError as exc:
        log.warning("Discarding corrupt save: %s", exc)
        return default_state(), None

    report = None
    stamp = await storage.load(TIMESTAMP_KEY)
    if stamp is not None:
        try:
            last_ms = int(stamp)
        except ValueError:
            log.warning("Ignoring unreadable save timestamp: %r", stamp)
        else:
            elapsed = max(0, (now_ms - last_ms) // 1000)
            report = offline_progress(state, elapsed)
    return state, report


async def save_game(storage: Storage, payload: bytes, now_ms: int) -> None:
    """Write the timestamp, then the pre-encoded snapshot.

    A failed snapshot write can under-credit offline time on the next load,
    never credit the same time twice.
    """
    await storage.save(TIMESTAMP_KEY, str(now_ms).encode("ascii"))
    await storage.save(STATE_KEY, payload)
