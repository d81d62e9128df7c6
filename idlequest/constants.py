"""IdleQuest constants — hero defaults, monsters, loot tables, upgrade tracks, prestige."""

from __future__ import annotations

# ── Hero ───────────────────────────────────────────────────────

HERO_DEFAULTS = {
    "level": 1,
    "hp": 100,
    "max_hp": 100,
    "damage": 10,
    "crit_chance": 0.05,
    "crit_multiplier": 1.5,
    "gold": 0,
    "xp": 0,
    "xp_needed": 100,
}

XP_GROWTH = 1.5
LEVEL_HP_GAIN = 20
LEVEL_DAMAGE_GAIN = 5
SKILL_POINTS_PER_LEVEL = 1

EQUIPMENT_SLOTS = ["weapon", "shield", "amulet"]

# ── Monsters ───────────────────────────────────────────────────

MONSTER_NAMES = ["Goblin", "Skeleton", "Slime", "Wolf", "Giant Spider", "Golem", "Young Dragon"]
BOSS_NAMES = ["Orc Warlord", "Lich King", "Ancient Dragon", "Stone Titan", "Spider Queen"]
MONSTER_ART = ["👹", "👺", "👻", "👽", "💀", "🤖", "🎃", "🐲", "🦂", "🦇"]

MONSTER_BASE_HP = 50
MONSTER_HP_VARIANCE = 0.2
MONSTER_BASE_GOLD = 5
MONSTER_BASE_XP = 10
STAGE_SCALING = 0.2  # +20% monster stats per stage

MONSTERS_PER_STAGE = 10
BOSS_HP_MULTIPLIER = 5
BOSS_REWARD_MULTIPLIER = 5
BOSS_TIME_LIMIT = 30  # seconds

ABILITIES = ["heal", "dodge", "poison"]
ABILITY_MIN_STAGE = 2
ABILITY_CHANCE = 0.15
BOSS_ABILITY_CHANCE = 0.5

DODGE_CHANCE = 0.15
MONSTER_HEAL_FRACTION = 0.05
POISON_CHANCE = 0.25
POISON_TICKS = 5
POISON_DAMAGE_FRACTION = 0.02

# ── Skills ─────────────────────────────────────────────────────

SKILL_DEFAULTS: dict[str, dict[str, object]] = {
    "powerfulStrike": {"name": "Powerful Strike", "cooldown": 10, "description": "Deals 300% damage."},
    "quickHeal": {"name": "Quick Heal", "cooldown": 30, "description": "Heals 25% of max HP."},
    "goldRush": {"name": "Gold Rush", "cooldown": 60, "description": "Doubles the gold of the next kill."},
}

POWERFUL_STRIKE_MULTIPLIER = 3
QUICK_HEAL_FRACTION = 0.25
GOLD_RUSH_MULTIPLIER = 2
MIN_COOLDOWN = 1

# ── Gold upgrade tracks ────────────────────────────────────────
# track_id → (initial cost, increase per purchase, cost growth)

UPGRADE_TRACKS: dict[str, tuple[int, float, float]] = {
    "damage": (10, 1, 1.15),
    "health": (15, 10, 1.2),
    "critChance": (50, 0.01, 1.5),
}

# ── Loot ───────────────────────────────────────────────────────

DROP_CHANCE = 0.2
BOSS_DROP_CHANCE = 0.8

# (epic threshold, rare threshold) for the rarity roll
RARITY_THRESHOLDS = (0.05, 0.25)
BOSS_RARITY_THRESHOLDS = (0.2, 0.6)

RARITIES = ["common", "rare", "epic"]

# item_type → (name, stat target, base value)
ITEM_TEMPLATES: dict[str, tuple[str, str, float]] = {
    "weapon": ("Sword", "damage", 5),
    "shield": ("Shield", "maxHp", 20),
    "amulet": ("Amulet", "critChance", 0.01),
}

RARITY_MULTIPLIER = {"common": 1, "rare": 2, "epic": 4}
LOOT_STAGE_SCALING = 0.1

SELL_VALUE = {"common": 10, "rare": 50, "epic": 200}
SELL_UPGRADE_BONUS = 0.5

# rarity → (scrap, essence)
DISMANTLE_YIELD = {"common": (1, 0), "rare": (3, 1), "epic": (5, 3)}

ITEM_UPGRADE_GOLD = 100
ITEM_UPGRADE_SCRAP = 5
ITEM_UPGRADE_ESSENCE = 1
ITEM_UPGRADE_VALUE_FRACTION = 0.1

# ── Prestige ───────────────────────────────────────────────────

PRESTIGE_FIRST_LEVEL_REQ = 20
PRESTIGE_LEVEL_REQ_STEP = 10
RELIC_STAGE_DIVISOR = 5

# Leveled records: id → (cost, increment per level, description)
PRESTIGE_UPGRADES: dict[str, tuple[int, float, str]] = {
    "damage": (1, 0.10, "+10% damage per level"),
    "gold": (1, 0.10, "+10% gold per level"),
    "fasterCooldowns": (2, 0.05, "-5% skill cooldowns per level"),
}

PASSIVE_SKILLS: dict[str, tuple[int, float, str]] = {
    "damage": (1, 0.05, "+5% damage per level"),
    "health": (1, 0.05, "+5% max HP per level"),
}

LEVELED_COST_STEP_LEVEL = 5

# pet_id → (name, bonus stat, increment per level, description)
PETS: dict[str, tuple[str, str, float, str]] = {
    "wolf": ("Wolf", "damage", 0.05, "+5% damage per level"),
    "owl": ("Owl", "critChance", 0.01, "+1% crit chance per level"),
    "goldenBeetle": ("Golden Beetle", "gold", 0.05, "+5% gold per level"),
}
DEFAULT_PET = "wolf"
PET_START_LEVEL = 0
PET_COST_BASE = 100

# ── Daily reward / offline / log ───────────────────────────────

DAILY_REWARD_GOLD = 500
DAILY_REWARD_SCRAP = 10
DAILY_REWARD_ESSENCE = 2

OFFLINE_MIN_SECONDS = 10
OFFLINE_KILLS_PER_SECOND = 0.25
OFFLINE_EFFICIENCY = 0.25

COMBAT_LOG_SIZE = 11
