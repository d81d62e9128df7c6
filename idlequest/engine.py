"""IdleQuest Engine — game controller, tick scheduler, autosave, entry point."""

from __future__ import annotations

import asyncio
import logging
import os
import random
import signal
import time
from datetime import date
from pathlib import Path
from typing import Any, Callable

import yaml

from idlequest import combat, inventory, progression, skills
from idlequest.db import Storage, create_storage
from idlequest.persistence import (
    OfflineReport, claim_daily_reward, daily_reward_available, default_state,
    encode_state, load_game, save_game,
)
from idlequest.stats import Stats, effective_stats

log = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent

SETTINGS = ("music", "sfx")


class Engine:
    """Owns the GameState; every mutation goes through this object.

    Gameplay requests are synchronous and return False (or None) when the
    request was rejected, in which case nothing changed.  The tick loop
    runs all timers from a single task, so no locking is needed.
    """

    def __init__(
        self,
        config: dict[str, Any] | str | Path,
        *,
        storage: Storage | None = None,
        rng: Any = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if isinstance(config, dict):
            self.config: dict[str, Any] = config
        else:
            with open(config, encoding="utf-8") as f:
                self.config = yaml.safe_load(f) or {}

        engine_cfg = self.config.get("engine", {})
        self.tick_rate: int = engine_cfg.get("tick_rate", 10)
        self.save_interval: float = engine_cfg.get("save_interval", 5)
        self.respawn_delay: float = engine_cfg.get("respawn_delay", 0.5)

        self.storage = storage or create_storage(self.config.get("storage", {}))
        self.rng = rng or random.Random()
        self._clock = clock

        self.state = default_state()
        self.offline_report: OfflineReport | None = None

        self._running = False
        self._tick = 0
        self._respawn_at: int | None = None
        self._last_save = 0.0
        self._save_task: asyncio.Task | None = None

    @property
    def tick(self) -> int:
        return self._tick

    @property
    def respawn_pending(self) -> bool:
        return self._respawn_at is not None

    def now_ms(self) -> int:
        return int(self._clock() * 1000)

    # ── Boot / shutdown ──────────────────────────────────────────

    async def boot(self) -> None:
        log.info("=== IdleQuest booting: %s ===", self.config.get("name", "IdleQuest"))
        await self.storage.connect()

        self.state, self.offline_report = await load_game(self.storage, self.now_ms())
        if self.state.monster.is_dead:
            self._schedule_respawn()

        self._running = True
        self._last_save = time.monotonic()
        log.info(
            "=== Boot complete: stage %d, hero level %d ===",
            self.state.stage, self.state.hero.level,
        )

    async def shutdown(self) -> None:
        log.info("Shutting down...")
        self._running = False
        if self._save_task is not None:
            await self._save_task
            self._save_task = None
        await self._write_snapshot(encode_state(self.state), self.now_ms())
        await self.storage.close()
        log.info("Shutdown complete")

    def stop(self) -> None:
        self._running = False

    # ── Scheduler ────────────────────────────────────────────────

    def step(self) -> None:
        """Run one scheduler tick.

        Respawns fire at tick boundaries; combat, cooldown and boss timers
        run once per second of game time, in that order.
        """
        self._tick += 1
        state = self.state

        if self._respawn_at is not None and self._tick >= self._respawn_at:
            self._respawn_at = None
            combat.spawn_monster(state, self.rng)

        if self._tick % self.tick_rate == 0:
            combat.combat_tick(state, self.rng)
            skills.cooldown_tick(state)
            combat.boss_timer_tick(state)

        if state.monster.is_dead and self._respawn_at is None:
            self._schedule_respawn()

    def _schedule_respawn(self) -> None:
        delay_ticks = max(1, round(self.respawn_delay * self.tick_rate))
        self._respawn_at = self._tick + delay_ticks

    async def run_loop(self) -> None:
        """Main game loop — ``tick_rate`` Hz."""
        tick_interval = 1.0 / self.tick_rate

        while self._running:
            tick_start = time.monotonic()
            self.step()

            # Auto-save
            now = time.monotonic()
            if now - self._last_save >= self.save_interval:
                self.autosave()
                self._last_save = now

            # Sleep until next tick
            elapsed = time.monotonic() - tick_start
            sleep_time = tick_interval - elapsed
            if sleep_time > 0:
                await asyncio.sleep(sleep_time)

    # ── Autosave ─────────────────────────────────────────────────

    def autosave(self) -> asyncio.Task | None:
        """Snapshot now and write it in the background.

        The snapshot is encoded before returning, so the write always sees
        a consistent state. Skipped while a previous write is in flight.
        """
        if self._save_task is not None and not self._save_task.done():
            log.debug("Autosave skipped: previous write still pending")
            return None
        payload = encode_state(self.state)
        self._save_task = asyncio.create_task(self._write_snapshot(payload, self.now_ms()))
        return self._save_task

    async def _write_snapshot(self, payload: bytes, now_ms: int) -> None:
        try:
            await save_game(self.storage, payload, now_ms)
        except Exception:
            log.exception("Failed to save game")
        else:
            log.info("Auto-saved game (%d bytes)", len(payload))

    # ── Requests ─────────────────────────────────────────────────

    def stats(self) -> Stats:
        return effective_stats(self.state)

    def use_skill(self, skill_id: str) -> bool:
        return skills.use_skill(self.state, skill_id)

    def buy_upgrade(self, track_id: str) -> bool:
        return progression.buy_upgrade(self.state, track_id)

    def equip(self, item_id: str) -> bool:
        return inventory.equip(self.state, item_id)

    def unequip(self, slot: str) -> bool:
        return inventory.unequip(self.state, slot)

    def dismantle(self, item_id: str) -> bool:
        return inventory.dismantle(self.state, item_id)

    def sell(self, item_id: str) -> bool:
        return inventory.sell(self.state, item_id)

    def upgrade_item(self, slot: str) -> bool:
        return inventory.upgrade_item(self.state, slot)

    def prestige(self) -> int | None:
        gained = progression.prestige(self.state)
        if gained is not None:
            self._respawn_at = None
        return gained

    def buy_prestige_upgrade(self, upgrade_id: str) -> bool:
        return progression.buy_prestige_upgrade(self.state, upgrade_id)

    def buy_passive_skill(self, skill_id: str) -> bool:
        return progression.buy_passive_skill(self.state, skill_id)

    def level_up_pet(self, pet_id: str) -> bool:
        return progression.level_up_pet(self.state, pet_id)

    def set_active_pet(self, pet_id: str) -> bool:
        return progression.set_active_pet(self.state, pet_id)

    def daily_reward_available(self, today: date | None = None) -> bool:
        return daily_reward_available(self.state, today or date.today())

    def claim_daily_reward(self, today: date | None = None) -> bool:
        return claim_daily_reward(self.state, today or date.today())

    def toggle_setting(self, name: str) -> bool:
        if name not in SETTINGS:
            return False
        settings = self.state.settings
        setattr(settings, name, not getattr(settings, name))
        return True

    # ── Entry point ──────────────────────────────────────────────

    async def run(self) -> None:
        """Boot and run the engine."""
        await self.boot()
        try:
            await self.run_loop()
        except asyncio.CancelledError:
            pass
        finally:
            await self.shutdown()


# ── Main ─────────────────────────────────────────────────────────

def main() -> None:
    config_path = os.environ.get("IDLEQUEST_CONFIG", str(BASE_DIR / "config" / "idlequest.yaml"))
    engine = Engine(config_path)

    level = engine.config.get("logging", {}).get("level", "INFO")
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, engine.stop)

    try:
        loop.run_until_complete(engine.run())
    finally:
        loop.close()


if __name__ == "__main__":
    main()
