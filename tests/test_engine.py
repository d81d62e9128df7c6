"""Tests for engine — scheduler ticks, respawn, autosave, boot/shutdown, requests."""

import asyncio
import logging
import random
from datetime import date
from unittest.mock import AsyncMock, patch

import pytest
from conftest import ScriptedRandom

from idlequest.db import MemoryStorage
from idlequest.engine import Engine
from idlequest.persistence import (
    STATE_KEY, TIMESTAMP_KEY, decode_state, default_state, encode_state,
)

NOW = 1_000_000.0


def _make_engine(storage=None, rng=None, **engine_cfg):
    cfg = {"engine": {"tick_rate": 10, "save_interval": 5, "respawn_delay": 0.5, **engine_cfg}}
    return Engine(
        cfg,
        storage=storage or MemoryStorage(),
        rng=rng or ScriptedRandom(),
        clock=lambda: NOW,
    )


def _check_invariants(state):
    hero = state.hero
    max_hp = hero.max_hp
    assert 0 <= hero.hp <= max_hp
    assert hero.gold >= 0
    assert 0 <= state.monsters_killed_in_stage <= state.monsters_per_stage
    assert len(state.combat_log) <= 11
    assert all(s.remaining >= 0 for s in state.skills.values())
    if state.is_boss_fight:
        assert 1 <= state.boss_timer <= 30


class TestConfig:
    def test_dict_config(self):
        e = _make_engine(tick_rate=20)
        assert e.tick_rate == 20
        assert e.save_interval == 5

    def test_yaml_config(self, tmp_path):
        path = tmp_path / "idlequest.yaml"
        path.write_text(
            "name: Test\nengine:\n  tick_rate: 5\nstorage:\n  backend: memory\n",
            encoding="utf-8",
        )
        e = Engine(path)
        assert e.tick_rate == 5
        assert e.respawn_delay == 0.5
        assert isinstance(e.storage, MemoryStorage)


class TestScheduler:
    def test_combat_once_per_second(self):
        e = _make_engine()
        for _ in range(9):
            e.step()
        assert e.state.monster.hp == 50
        e.step()
        assert e.tick == 10
        assert e.state.monster.hp == 40

    def test_cooldowns_tick_with_combat(self):
        e = _make_engine()
        assert e.use_skill("quickHeal")
        for _ in range(10):
            e.step()
        assert e.state.skills["quickHeal"].remaining == 29

    def test_respawn_after_delay(self):
        e = _make_engine()
        e.state.monster.hp = 10
        for _ in range(10):
            e.step()
        assert e.state.monster.is_dead
        assert e.respawn_pending
        for _ in range(4):
            e.step()
        assert e.state.monster.is_dead
        e.step()
        assert not e.state.monster.is_dead
        assert not e.respawn_pending
        assert e.state.monster.name.endswith("(Stage 1)")

    def test_boss_after_ten_kills(self):
        e = _make_engine()
        seen_boss = False
        for _ in range(20_000):
            e.step()
            seen_boss = seen_boss or e.state.is_boss_fight
            if e.state.stage == 2:
                break
        assert seen_boss
        assert e.state.stage == 2
        assert e.state.monsters_killed_in_stage == 0
        assert not e.state.is_boss_fight

    def test_invariants_hold_over_long_run(self):
        e = _make_engine(rng=random.Random(1234))
        for _ in range(3000):
            e.step()
            _check_invariants(e.state)
        assert e.state.hero.gold > 0


class TestAutosave:
    async def test_writes_snapshot_and_timestamp(self):
        store = MemoryStorage()
        e = _make_engine(storage=store)
        e.state.hero.gold = 77
        await e.autosave()
        assert decode_state(store.data[STATE_KEY]).hero.gold == 77
        assert store.data[TIMESTAMP_KEY] == b"1000000000"

    async def test_snapshot_taken_at_call_time(self):
        store = MemoryStorage()
        e = _make_engine(storage=store)
        task = e.autosave()
        e.state.hero.gold = 999
        await task
        assert decode_state(store.data[STATE_KEY]).hero.gold == 0

    async def test_single_flight(self):
        e = _make_engine()
        task = e.autosave()
        assert e.autosave() is None
        await task
        assert e.autosave() is not None

    async def test_save_failure_is_logged(self, caplog):
        store = MemoryStorage()
        e = _make_engine(storage=store)
        with patch.object(store, "save", AsyncMock(side_effect=OSError("disk full"))):
            with caplog.at_level(logging.ERROR, logger="idlequest.engine"):
                await e.autosave()
        assert "Failed to save game" in caplog.text


class TestBootShutdown:
    async def test_boot_fresh(self):
        e = _make_engine()
        await e.boot()
        assert e.state.to_dict() == default_state().to_dict()
        assert e.offline_report is None

    async def test_boot_applies_offline_progress(self):
        saved = default_state()
        saved.stage = 3
        store = MemoryStorage({
            STATE_KEY: encode_state(saved),
            TIMESTAMP_KEY: str(int((NOW - 400) * 1000)).encode("ascii"),
        })
        e = _make_engine(storage=store)
        await e.boot()
        assert e.state.stage == 3
        assert e.offline_report.elapsed_seconds == 400
        assert e.offline_report.gold == 175
        assert e.state.hero.gold == 175

    async def test_boot_with_dead_monster_schedules_respawn(self):
        saved = default_state()
        saved.monster.hp = 0
        e = _make_engine(storage=MemoryStorage({STATE_KEY: encode_state(saved)}))
        await e.boot()
        assert e.respawn_pending

    async def test_shutdown_saves(self):
        store = MemoryStorage()
        e = _make_engine(storage=store)
        await e.boot()
        e.state.hero.gold = 55
        await e.shutdown()
        assert decode_state(store.data[STATE_KEY]).hero.gold == 55

    async def test_run_until_stopped(self):
        store = MemoryStorage()
        e = _make_engine(storage=store, tick_rate=100)
        task = asyncio.create_task(e.run())
        await asyncio.sleep(0.05)
        e.stop()
        await asyncio.wait_for(task, timeout=2)
        assert e.tick > 0
        assert STATE_KEY in store.data


class TestRequests:
    def test_stats(self):
        assert _make_engine().stats().damage == 10

    def test_prestige_clears_pending_respawn(self):
        e = _make_engine()
        e.state.hero.level = 20
        e.state.monster.hp = 0
        e.step()
        assert e.respawn_pending
        assert e.prestige() == 20
        assert not e.respawn_pending
        assert not e.state.monster.is_dead

    def test_prestige_rejected(self):
        e = _make_engine()
        assert e.prestige() is None

    def test_daily_reward(self):
        e = _make_engine()
        today = date(2024, 3, 3)
        assert e.daily_reward_available(today)
        assert e.claim_daily_reward(today)
        assert not e.claim_daily_reward(today)
        assert e.state.hero.gold == 500

    def test_toggle_setting(self):
        e = _make_engine()
        assert e.toggle_setting("music")
        assert not e.state.settings.music
        assert e.toggle_setting("music")
        assert e.state.settings.music
        assert not e.toggle_setting("volume")

    def test_shop_and_gear_requests(self):
        e = _make_engine()
        e.state.hero.gold = 10
        assert e.buy_upgrade("damage")
        assert not e.buy_upgrade("damage")
        assert not e.equip("missing")
        assert not e.unequip("weapon")
        assert not e.sell("missing")
        assert not e.dismantle("missing")
        assert not e.upgrade_item("weapon")

    @pytest.mark.parametrize("method,arg", [
        ("buy_prestige_upgrade", "damage"),
        ("buy_passive_skill", "damage"),
        ("level_up_pet", "wolf"),
    ])
    def test_unaffordable_requests(self, method, arg):
        e = _make_engine()
        before = e.state.to_dict()
        assert not getattr(e, method)(arg)
        assert e.state.to_dict() == before

    def test_set_active_pet(self):
        e = _make_engine()
        assert e.set_active_pet("goldenBeetle")
        assert e.state.active_pet == "goldenBeetle"
