"""Shared test helpers — scripted random source, state factories."""

import pytest

from idlequest.state import GameState, Monster


class ScriptedRandom:
    """Stand-in for random.Random that replays scripted rolls.

    ``random()`` pops from ``values`` and falls back to ``default`` once the
    script is exhausted; ``choice()`` returns the next scripted pick when it
    is a member of the sequence, otherwise the first element.
    """

    def __init__(self, values=(), default=0.99, choices=()):
        self.values = list(values)
        self.default = default
        self.choices = list(choices)

    def random(self):
        if self.values:
            return self.values.pop(0)
        return self.default

    def choice(self, seq):
        if self.choices:
            wanted = self.choices.pop(0)
            if wanted in seq:
                return wanted
        return seq[0]


def make_state(monster_hp=50, abilities=(), crit_chance=0.0, **hero):
    """Default GameState with a plain monster and a crit-free hero."""
    state = GameState()
    state.monster = Monster(
        name="Test Goblin", hp=monster_hp, max_hp=monster_hp,
        gold_reward=5, xp_reward=10, abilities=set(abilities),
    )
    state.hero.crit_chance = crit_chance
    for key, value in hero.items():
        setattr(state.hero, key, value)
    return state


@pytest.fixture
def rng():
    return ScriptedRandom()
