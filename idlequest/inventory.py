"""Equipment & inventory — equip, unequip, dismantle, sell, upgrade.

Every operation returns True when it changed the state and False when a
precondition failed; a failed call leaves the state untouched.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from idlequest import constants as C
from idlequest.loot import base_value
from idlequest.state import add_log
from idlequest.stats import clamp_hp, round_half_up

if TYPE_CHECKING:
    from idlequest.state import GameState, Item

log = logging.getLogger(__name__)


def equip(state: GameState, item_id: str) -> bool:
    """Move an inventory item into its slot; the previous occupant is swapped back."""
    item = state.find_item(item_id)
    if item is None:
        log.debug("equip: %s not in inventory", item_id)
        return False

    hero = state.hero
    state.inventory.remove(item)
    previous = hero.equipment.get(item.item_type)
    if previous is not None:
        state.inventory.append(previous)
    hero.equipment[item.item_type] = item
    clamp_hp(state)
    add_log(state, f"Equipped {item.name}.", "cyan")
    return True


def unequip(state: GameState, slot: str) -> bool:
    item = state.hero.equipment.get(slot)
    if item is None:
        return False
    state.hero.equipment[slot] = None
    state.inventory.append(item)
    clamp_hp(state)
    add_log(state, f"Unequipped {item.name}.", "gray")
    return True


def dismantle(state: GameState, item_id: str) -> bool:
    item = state.find_item(item_id)
    if item is None:
        log.debug("dismantle: %s not in inventory", item_id)
        return False

    scrap, essence = C.DISMANTLE_YIELD[item.rarity]
    state.inventory.remove(item)
    materials = state.hero.materials
    materials["scrap"] = materials.get("scrap", 0) + scrap
    materials["essence"] = materials.get("essence", 0) + essence
    add_log(state, f"Dismantled {item.name}: +{scrap} scrap, +{essence} essence.", "orange")
    return True


def sell_price(item: Item) -> int:
    bonus = 1 + item.upgrade_level * C.SELL_UPGRADE_BONUS
    return round_half_up(C.SELL_VALUE[item.rarity] * bonus)


def sell(state: GameState, item_id: str) -> bool:
    item = state.find_item(item_id)
    if item is None:
        log.debug("sell: %s not in inventory", item_id)
        return False

    price = sell_price(item)
    state.inventory.remove(item)
    state.hero.gold += price
    add_log(state, f"Sold {item.name} for {price} gold.", "yellow")
    return True


def upgrade_cost(item: Item) -> dict[str, int]:
    """Gold/scrap/essence needed to raise an item to the next upgrade level."""
    step = item.upgrade_level + 1
    return {
        "gold": C.ITEM_UPGRADE_GOLD * step,
        "scrap": C.ITEM_UPGRADE_SCRAP * step,
        "essence": 0 if item.rarity == "common" else C.ITEM_UPGRADE_ESSENCE * step,
    }


def can_afford_upgrade(state: GameState, item: Item) -> bool:
    cost = upgrade_cost(item)
    hero = state.hero
    return (
        hero.gold >= cost["gold"]
        and hero.materials.get("scrap", 0) >= cost["scrap"]
        and hero.materials.get("essence", 0) >= cost["essence"]
    )


def upgrade_item(state: GameState, slot: str) -> bool:
    """Upgrade the item equipped in ``slot``. Item identity is preserved."""
    item = state.hero.equipment.get(slot)
    if item is None:
        return False
    if not can_afford_upgrade(state, item):
        log.debug("upgrade_item: cannot afford upgrade of %s", item.name)
        return False

    cost = upgrade_cost(item)
    hero = state.hero
    hero.gold -= cost["gold"]
    hero.materials["scrap"] -= cost["scrap"]
    hero.materials["essence"] = hero.materials.get("essence", 0) - cost["essence"]
    item.upgrade_level += 1
    item.value += base_value(item) * C.ITEM_UPGRADE_VALUE_FRACTION
    clamp_hp(state)
    add_log(state, f"{item.name} upgraded to +{item.upgrade_level}!", "purple")
    return True
