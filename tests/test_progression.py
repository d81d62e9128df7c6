"""Tests for progression — rewards, level-up, upgrades, prestige, pets."""

import pytest
from conftest import ScriptedRandom, make_state

from idlequest.loot import make_item
from idlequest.progression import (
    apply_xp, buy_passive_skill, buy_prestige_upgrade, buy_upgrade,
    can_prestige, defeat_monster, level_up_pet, prestige, relics_for,
    set_active_pet,
)
from idlequest.state import Hero


class TestApplyXp:
    def test_single_level(self):
        hero = Hero()
        assert apply_xp(hero, 115) == 1
        assert hero.level == 2
        assert hero.xp == 15
        assert hero.xp_needed == 150
        assert hero.max_hp == 120
        assert hero.damage == 15
        assert hero.skill_points == 1

    def test_multiple_levels(self):
        hero = Hero()
        assert apply_xp(hero, 250) == 2
        assert hero.level == 3
        assert hero.xp == 0
        assert hero.xp_needed == 225

    def test_xp_curve_rounds_half_up(self):
        hero = Hero()
        curve = []
        for _ in range(5):
            apply_xp(hero, hero.xp_needed - hero.xp)
            curve.append(hero.xp_needed)
        assert curve == [150, 225, 338, 507, 761]
        assert hero.level == 6

    def test_no_level(self):
        hero = Hero()
        assert apply_xp(hero, 99) == 0
        assert hero.level == 1
        assert hero.xp == 99


class TestDefeatMonster:
    def test_gold_bonus_applied(self, rng):
        s = make_state()
        s.monster.gold_reward = 10
        s.prestige_upgrades["gold"].level = 1
        result = defeat_monster(s, rng)
        assert result.gold == 11
        assert s.hero.gold == 11

    def test_gold_rush_doubles_and_is_consumed(self, rng):
        s = make_state()
        s.monster.gold_reward = 10
        s.effects.gold_rush_active = True
        assert defeat_monster(s, rng).gold == 20
        assert not s.effects.gold_rush_active

    def test_boss_warning_on_tenth_kill(self, rng):
        s = make_state()
        s.monsters_killed_in_stage = 9
        defeat_monster(s, rng)
        assert s.monsters_killed_in_stage == 10
        assert any("boss approaches" in e.text for e in s.combat_log)

    def test_loot_rolled_on_new_stage(self):
        s = make_state()
        s.is_boss_fight = True
        s.monsters_killed_in_stage = 10
        result = defeat_monster(s, ScriptedRandom([0.0, 0.9]))
        assert s.stage == 2
        assert result.item is not None
        assert result.item.value == pytest.approx(5.5)
        assert s.inventory == [result.item]

    def test_hp_restored_after_level_up(self, rng):
        s = make_state(hp=30, xp=95)
        result = defeat_monster(s, rng)
        assert result.levels_gained == 1
        assert s.hero.max_hp == 120
        assert s.hero.hp == 120


class TestBuyUpgrade:
    def test_damage_track(self):
        s = make_state(gold=10)
        assert buy_upgrade(s, "damage")
        assert s.hero.gold == 0
        assert s.hero.damage == 11
        assert s.upgrades["damage"].level == 1
        assert s.upgrades["damage"].cost == 12

    def test_health_track_raises_hp_too(self):
        s = make_state(gold=15)
        assert buy_upgrade(s, "health")
        assert s.hero.max_hp == 110
        assert s.hero.hp == 110
        assert s.upgrades["health"].cost == 18

    def test_crit_track(self):
        s = make_state(gold=50, crit_chance=0.05)
        assert buy_upgrade(s, "critChance")
        assert s.hero.crit_chance == pytest.approx(0.06)
        assert s.upgrades["critChance"].cost == 75

    def test_crit_track_cost_rounds_half_up(self):
        s = make_state(gold=75)
        s.upgrades["critChance"].cost = 75
        assert buy_upgrade(s, "critChance")
        assert s.upgrades["critChance"].cost == 113

    def test_insufficient_gold(self):
        s = make_state(gold=9)
        before = s.to_dict()
        assert not buy_upgrade(s, "damage")
        assert s.to_dict() == before

    def test_unknown_track(self):
        assert not buy_upgrade(make_state(gold=1000), "speed")


class TestPrestige:
    def test_requires_level(self):
        s = make_state(level=19)
        assert not can_prestige(s)
        assert prestige(s) is None
        assert s.hero.level == 19

    def test_reset_and_rewards(self):
        s = make_state(level=50, gold=1000, skill_points=3)
        s.hero.materials = {"scrap": 7, "essence": 2}
        s.hero.equipment["weapon"] = make_item("weapon", "epic")
        s.inventory.append(make_item("shield", "rare"))
        s.stage = 10
        s.upgrades["damage"].level = 4
        s.skills["goldRush"].remaining = 40
        s.effects.gold_rush_active = True
        assert relics_for(s) == 52

        assert prestige(s) == 52
        assert s.prestige.level == 1
        assert s.prestige.relics == 52
        assert s.prestige.next_level_req == 30
        assert s.hero.level == 1
        assert s.hero.gold == 0
        assert s.hero.skill_points == 3
        assert s.hero.materials == {"scrap": 7, "essence": 2}
        assert s.hero.equipment["weapon"] is None
        assert s.hero.hp == 100
        assert s.inventory == []
        assert s.stage == 1
        assert s.upgrades["damage"].level == 0
        assert s.skills["goldRush"].remaining == 0
        assert not s.effects.gold_rush_active
        assert not s.monster.is_dead


class TestLeveledRecords:
    def test_prestige_upgrade_cost_progression(self):
        s = make_state()
        s.prestige.relics = 5
        assert buy_prestige_upgrade(s, "damage")
        assert s.prestige.relics == 4
        assert s.prestige_upgrades["damage"].level == 1
        assert s.prestige_upgrades["damage"].cost == 2
        assert buy_prestige_upgrade(s, "damage")
        assert s.prestige.relics == 2
        assert s.prestige_upgrades["damage"].cost == 4

    def test_cost_step_doubles_from_level_five(self):
        s = make_state()
        record = s.prestige_upgrades["gold"]
        record.level = 5
        record.cost = 16
        s.prestige.relics = 16
        assert buy_prestige_upgrade(s, "gold")
        assert record.cost == 28
        assert record.level == 6

    def test_prestige_upgrade_unaffordable(self):
        s = make_state()
        assert not buy_prestige_upgrade(s, "fasterCooldowns")
        assert not buy_prestige_upgrade(s, "nope")

    def test_passive_skill(self):
        s = make_state(skill_points=1)
        assert buy_passive_skill(s, "health")
        assert s.hero.skill_points == 0
        assert s.passive_skills["health"].level == 1
        assert s.passive_skills["health"].cost == 2
        assert not buy_passive_skill(s, "health")


class TestPets:
    def test_level_up(self):
        s = make_state(gold=100)
        assert level_up_pet(s, "wolf")
        assert s.hero.gold == 0
        assert s.pets["wolf"].level == 1
        assert s.pets["wolf"].cost == 400

    def test_level_up_unaffordable(self):
        s = make_state(gold=99)
        assert not level_up_pet(s, "wolf")
        assert s.pets["wolf"].level == 0

    def test_set_active_pet(self):
        s = make_state()
        assert set_active_pet(s, "owl")
        assert s.active_pet == "owl"
        assert not set_active_pet(s, "dragon")
        assert s.active_pet == "owl"
