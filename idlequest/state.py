"""Game state model — Hero/Monster/Item records, GameState aggregate, snapshot mapping.

Snapshots use the camelCase field names of the save format; attributes use
their snake_case equivalents. ``to_dict``/``from_dict`` are exact inverses
for every reachable state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from idlequest import constants as C


# ── Items ────────────────────────────────────────────────────────

@dataclass(slots=True)
class Item:
    id: str
    name: str
    item_type: str  # weapon, shield, amulet
    rarity: str  # common, rare, epic
    stat_target: str  # damage, maxHp, critChance
    value: float
    upgrade_level: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "itemType": self.item_type,
            "rarity": self.rarity,
            "statTarget": self.stat_target,
            "value": self.value,
            "upgradeLevel": self.upgrade_level,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Item:
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            item_type=data["itemType"],
            rarity=data["rarity"],
            stat_target=data["statTarget"],
            value=data["value"],
            upgrade_level=data.get("upgradeLevel", 0),
        )


def _item_or_none(data: dict[str, Any] | None) -> Item | None:
    return Item.from_dict(data) if data else None


# ── Hero ─────────────────────────────────────────────────────────

@dataclass(slots=True)
class Poison:
    remaining_ticks: int
    damage_per_tick: float


def _empty_equipment() -> dict[str, Item | None]:
    return {slot: None for slot in C.EQUIPMENT_SLOTS}


def _empty_materials() -> dict[str, int]:
    return {"scrap": 0, "essence": 0}


@dataclass(slots=True)
class Hero:
    level: int = C.HERO_DEFAULTS["level"]
    hp: float = C.HERO_DEFAULTS["hp"]
    max_hp: float = C.HERO_DEFAULTS["max_hp"]  # base, before modifiers
    damage: float = C.HERO_DEFAULTS["damage"]  # base, before modifiers
    crit_chance: float = C.HERO_DEFAULTS["crit_chance"]
    crit_multiplier: float = C.HERO_DEFAULTS["crit_multiplier"]
    gold: int = C.HERO_DEFAULTS["gold"]
    xp: int = C.HERO_DEFAULTS["xp"]
    xp_needed: int = C.HERO_DEFAULTS["xp_needed"]
    skill_points: int = 0
    materials: dict[str, int] = field(default_factory=_empty_materials)
    equipment: dict[str, Item | None] = field(default_factory=_empty_equipment)
    poison: Poison | None = None

    def to_dict(self) -> dict[str, Any]:
        poison = None
        if self.poison:
            poison = {
                "remainingTicks": self.poison.remaining_ticks,
                "damagePerTick": self.poison.damage_per_tick,
            }
        return {
            "level": self.level,
            "hp": self.hp,
            "maxHp": self.max_hp,
            "damage": self.damage,
            "critChance": self.crit_chance,
            "critMultiplier": self.crit_multiplier,
            "gold": self.gold,
            "xp": self.xp,
            "xpNeeded": self.xp_needed,
            "skillPoints": self.skill_points,
            "materials": dict(self.materials),
            "equipment": {
                slot: item.to_dict() if item else None
                for slot, item in self.equipment.items()
            },
            "statusEffects": {"poison": poison},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Hero:
        poison_data = (data.get("statusEffects") or {}).get("poison")
        poison = None
        if poison_data:
            poison = Poison(
                remaining_ticks=poison_data["remainingTicks"],
                damage_per_tick=poison_data["damagePerTick"],
            )
        equipment = _empty_equipment()
        for slot, item in data["equipment"].items():
            equipment[slot] = _item_or_none(item)
        return cls(
            level=data["level"],
            hp=data["hp"],
            max_hp=data["maxHp"],
            damage=data["damage"],
            crit_chance=data["critChance"],
            crit_multiplier=data["critMultiplier"],
            gold=data["gold"],
            xp=data["xp"],
            xp_needed=data["xpNeeded"],
            skill_points=data["skillPoints"],
            materials=dict(data["materials"]),
            equipment=equipment,
            poison=poison,
        )


# ── Monster ──────────────────────────────────────────────────────

@dataclass(slots=True)
class Monster:
    name: str = "Weak Orc"
    hp: float = C.MONSTER_BASE_HP
    max_hp: float = C.MONSTER_BASE_HP
    gold_reward: int = C.MONSTER_BASE_GOLD
    xp_reward: int = C.MONSTER_BASE_XP
    art: str = "👹"
    abilities: set[str] = field(default_factory=set)
    used_heal_this_encounter: bool = False

    @property
    def is_dead(self) -> bool:
        return self.hp <= 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "hp": self.hp,
            "maxHp": self.max_hp,
            "goldReward": self.gold_reward,
            "xpReward": self.xp_reward,
            "art": self.art,
            "abilities": sorted(self.abilities),
            "usedHealThisEncounter": self.used_heal_this_encounter,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Monster:
        abilities = data["abilities"]
        if not isinstance(abilities, list):
            raise TypeError(f"abilities must be a list, got {type(abilities).__name__}")
        return cls(
            name=data["name"],
            hp=data["hp"],
            max_hp=data["maxHp"],
            gold_reward=data["goldReward"],
            xp_reward=data["xpReward"],
            art=data["art"],
            abilities=set(abilities),
            used_heal_this_encounter=data["usedHealThisEncounter"],
        )


# ── Upgrades, skills, prestige, pets ─────────────────────────────

@dataclass(slots=True)
class UpgradeTrack:
    cost: int
    increase: float
    level: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"cost": self.cost, "increase": self.increase, "level": self.level}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UpgradeTrack:
        return cls(cost=data["cost"], increase=data["increase"], level=data["level"])


@dataclass(slots=True)
class Skill:
    name: str
    cooldown: float
    remaining: float = 0
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "cooldown": self.cooldown,
            "remaining": self.remaining,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Skill:
        return cls(
            name=data["name"],
            cooldown=data["cooldown"],
            remaining=data["remaining"],
            description=data.get("description", ""),
        )


@dataclass(slots=True)
class Effects:
    powerful_strike_active: bool = False
    gold_rush_active: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "powerfulStrikeActive": self.powerful_strike_active,
            "goldRushActive": self.gold_rush_active,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Effects:
        return cls(
            powerful_strike_active=data["powerfulStrikeActive"],
            gold_rush_active=data["goldRushActive"],
        )


@dataclass(slots=True)
class PrestigeState:
    level: int = 0
    relics: int = 0
    next_level_req: int = C.PRESTIGE_FIRST_LEVEL_REQ

    def to_dict(self) -> dict[str, Any]:
        return {"level": self.level, "relics": self.relics, "nextLevelReq": self.next_level_req}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PrestigeState:
        return cls(level=data["level"], relics=data["relics"], next_level_req=data["nextLevelReq"])


@dataclass(slots=True)
class LeveledUpgrade:
    """Prestige upgrade or passive skill: bonus = level × increment."""

    level: int
    cost: int
    increment: float
    description: str = ""

    @property
    def bonus(self) -> float:
        return self.level * self.increment

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "cost": self.cost,
            "increment": self.increment,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LeveledUpgrade:
        return cls(
            level=data["level"],
            cost=data["cost"],
            increment=data["increment"],
            description=data.get("description", ""),
        )


@dataclass(slots=True)
class Pet:
    name: str
    bonus_type: str  # damage, critChance, gold
    level: int
    cost: int
    increment: float
    description: str = ""

    @property
    def bonus(self) -> float:
        return self.level * self.increment

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "bonusType": self.bonus_type,
            "level": self.level,
            "cost": self.cost,
            "increment": self.increment,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Pet:
        return cls(
            name=data["name"],
            bonus_type=data["bonusType"],
            level=data["level"],
            cost=data["cost"],
            increment=data["increment"],
            description=data.get("description", ""),
        )


def pet_cost(level: int) -> int:
    return C.PET_COST_BASE * (level + 1) ** 2


@dataclass(slots=True)
class LogEntry:
    text: str
    color: str = "gray"

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "color": self.color}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LogEntry:
        return cls(text=data["text"], color=data.get("color", "gray"))


@dataclass(slots=True)
class Settings:
    music: bool = True
    sfx: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {"music": self.music, "sfx": self.sfx}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        return cls(music=data["music"], sfx=data["sfx"])


# ── Default factories ────────────────────────────────────────────

def default_upgrades() -> dict[str, UpgradeTrack]:
    return {
        track_id: UpgradeTrack(cost=cost, increase=increase)
        for track_id, (cost, increase, _growth) in C.UPGRADE_TRACKS.items()
    }


def default_skills() -> dict[str, Skill]:
    return {
        skill_id: Skill(name=d["name"], cooldown=d["cooldown"], description=d["description"])
        for skill_id, d in C.SKILL_DEFAULTS.items()
    }


def _leveled(table: dict[str, tuple[int, float, str]]) -> dict[str, LeveledUpgrade]:
    return {
        key: LeveledUpgrade(level=0, cost=cost, increment=inc, description=desc)
        for key, (cost, inc, desc) in table.items()
    }


def default_prestige_upgrades() -> dict[str, LeveledUpgrade]:
    return _leveled(C.PRESTIGE_UPGRADES)


def default_passive_skills() -> dict[str, LeveledUpgrade]:
    return _leveled(C.PASSIVE_SKILLS)


def default_pets() -> dict[str, Pet]:
    return {
        pet_id: Pet(
            name=name, bonus_type=bonus, level=C.PET_START_LEVEL,
            cost=pet_cost(C.PET_START_LEVEL), increment=inc, description=desc,
        )
        for pet_id, (name, bonus, inc, desc) in C.PETS.items()
    }


# ── Aggregate root ───────────────────────────────────────────────

@dataclass(slots=True)
class GameState:
    hero: Hero = field(default_factory=Hero)
    monster: Monster = field(default_factory=Monster)
    inventory: list[Item] = field(default_factory=list)
    stage: int = 1
    monsters_killed_in_stage: int = 0
    monsters_per_stage: int = C.MONSTERS_PER_STAGE
    is_boss_fight: bool = False
    boss_timer: int = C.BOSS_TIME_LIMIT
    upgrades: dict[str, UpgradeTrack] = field(default_factory=default_upgrades)
    skills: dict[str, Skill] = field(default_factory=default_skills)
    effects: Effects = field(default_factory=Effects)
    prestige: PrestigeState = field(default_factory=PrestigeState)
    prestige_upgrades: dict[str, LeveledUpgrade] = field(default_factory=default_prestige_upgrades)
    passive_skills: dict[str, LeveledUpgrade] = field(default_factory=default_passive_skills)
    pets: dict[str, Pet] = field(default_factory=default_pets)
    active_pet: str = C.DEFAULT_PET
    combat_log: list[LogEntry] = field(default_factory=list)
    last_daily_reward_date: str | None = None
    settings: Settings = field(default_factory=Settings)

    def find_item(self, item_id: str) -> Item | None:
        for item in self.inventory:
            if item.id == item_id:
                return item
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "hero": self.hero.to_dict(),
            "monster": self.monster.to_dict(),
            "inventory": [item.to_dict() for item in self.inventory],
            "stage": self.stage,
            "monstersKilledInStage": self.monsters_killed_in_stage,
            "monstersPerStage": self.monsters_per_stage,
            "isBossFight": self.is_boss_fight,
            "bossTimer": self.boss_timer,
            "upgrades": {k: v.to_dict() for k, v in self.upgrades.items()},
            "skills": {k: v.to_dict() for k, v in self.skills.items()},
            "effects": self.effects.to_dict(),
            "prestige": self.prestige.to_dict(),
            "prestigeUpgrades": {k: v.to_dict() for k, v in self.prestige_upgrades.items()},
            "passiveSkills": {k: v.to_dict() for k, v in self.passive_skills.items()},
            "pets": {k: v.to_dict() for k, v in self.pets.items()},
            "activePet": self.active_pet,
            "combatLog": [entry.to_dict() for entry in self.combat_log],
            "lastDailyRewardDate": self.last_daily_reward_date,
            "settings": self.settings.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameState:
        return cls(
            hero=Hero.from_dict(data["hero"]),
            monster=Monster.from_dict(data["monster"]),
            inventory=[Item.from_dict(d) for d in data["inventory"]],
            stage=data["stage"],
            monsters_killed_in_stage=data["monstersKilledInStage"],
            monsters_per_stage=data["monstersPerStage"],
            is_boss_fight=data["isBossFight"],
            boss_timer=data["bossTimer"],
            upgrades={k: UpgradeTrack.from_dict(v) for k, v in data["upgrades"].items()},
            skills={k: Skill.from_dict(v) for k, v in data["skills"].items()},
            effects=Effects.from_dict(data["effects"]),
            prestige=PrestigeState.from_dict(data["prestige"]),
            prestige_upgrades={
                k: LeveledUpgrade.from_dict(v) for k, v in data["prestigeUpgrades"].items()
            },
            passive_skills={
                k: LeveledUpgrade.from_dict(v) for k, v in data["passiveSkills"].items()
            },
            pets={k: Pet.from_dict(v) for k, v in data["pets"].items()},
            active_pet=data["activePet"],
            combat_log=[LogEntry.from_dict(d) for d in data["combatLog"]],
            last_daily_reward_date=data["lastDailyRewardDate"],
            settings=Settings.from_dict(data["settings"]),
        )


def add_log(state: GameState, text: str, color: str = "gray") -> None:
    """Append a combat log message, keeping only the most recent entries."""
    state.combat_log.append(LogEntry(text, color))
    if len(state.combat_log) > C.COMBAT_LOG_SIZE:
        del state.combat_log[: len(state.combat_log) - C.COMBAT_LOG_SIZE]
