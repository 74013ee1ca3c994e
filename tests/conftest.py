from collections.abc import Callable
from typing import Any

import pytest

from deckwright.models.card import Card, Rarity
from deckwright.models.requirements import DeckFormat, DeckRequirements

CardFactory = Callable[..., Card]

_RARITIES = (Rarity.COMMON, Rarity.UNCOMMON, Rarity.RARE, Rarity.MYTHIC)
_CREATURE_TYPES = ("Merfolk Wizard", "Drake", "Human Wizard", "Sphinx", "Merfolk Rogue")


def make_card(card_id: str, **overrides: Any) -> Card:
    """Card with sensible defaults; name defaults to a title-cased id."""
    fields: dict[str, Any] = {
        "name": card_id.replace("-", " ").title(),
        "mana_value": 3.0,
        "type_line": "Instant",
        "rarity": Rarity.COMMON,
        "price": 0.5,
    }
    fields.update(overrides)
    return Card(id=card_id, **fields)


def _blue(card_id: str, mana_value: int, **overrides: Any) -> Card:
    cost = "{%d}{U}" % (mana_value - 1) if mana_value > 1 else "{U}"
    return make_card(
        card_id,
        mana_value=float(mana_value),
        colors=("U",),
        color_identity=("U",),
        mana_cost=cost,
        **overrides,
    )


def generate_blue_pool(include_ramp: bool = True) -> list[Card]:
    """
    Deterministic 400-card pool for mono-blue commander builds.

    Contains a legendary commander, Sol Ring, a basic Island, blue spells
    covering every role, and off-color cards the filter must drop.
    """
    pool: list[Card] = [
        _blue(
            "talrand",
            4,
            name="Talrand, Sky Summoner",
            type_line="Legendary Creature — Merfolk Wizard",
            oracle_text=(
                "Whenever you cast an instant or sorcery spell, create a 2/2 blue "
                "Drake creature token with flying."
            ),
            rarity=Rarity.RARE,
            price=3.0,
        ),
        make_card(
            "sol-ring",
            name="Sol Ring",
            mana_value=1.0,
            type_line="Artifact",
            mana_cost="{1}",
            oracle_text="{T}: Add {C}{C}.",
            rarity=Rarity.UNCOMMON,
            price=1.5,
        ),
        make_card(
            "island",
            name="Island",
            mana_value=0.0,
            type_line="Basic Land — Island",
            color_identity=("U",),
            oracle_text="({T}: Add {U}.)",
            price=0.05,
        ),
    ]

    if include_ramp:
        for i in range(40):
            pool.append(
                _blue(
                    f"ramp-{i:03d}",
                    2 + i % 2,
                    type_line="Artifact",
                    oracle_text="{T}: Add {U}.",
                    rarity=Rarity.RARE,
                    price=6.0,
                )
            )

    for i in range(40):
        pool.append(
            _blue(
                f"draw-{i:03d}",
                1 + i % 5,
                type_line="Sorcery",
                oracle_text="Draw two cards.",
                rarity=_RARITIES[i % 3],
                price=0.5 + i % 4,
            )
        )
    for i in range(40):
        pool.append(
            _blue(
                f"removal-{i:03d}",
                1 + i % 4,
                type_line="Instant",
                oracle_text="Exile target creature an opponent controls.",
                rarity=_RARITIES[i % 4],
                price=1.5,
            )
        )
    for i in range(8):
        pool.append(
            _blue(
                f"sweeper-{i:03d}",
                4 + i % 3,
                type_line="Sorcery",
                oracle_text="Destroy all creatures.",
                rarity=Rarity.RARE,
                price=2.0,
            )
        )

    creature_count = 220 if include_ramp else 260
    for i in range(creature_count):
        pool.append(
            _blue(
                f"creature-{i:03d}",
                1 + i % 7,
                type_line=f"Creature — {_CREATURE_TYPES[i % len(_CREATURE_TYPES)]}",
                oracle_text="Flying",
                keywords=("Flying",),
                rarity=_RARITIES[i % 4],
                price=[0.05, 0.5, 2.0, 3.0][i % 4],
            )
        )

    if not include_ramp:
        # Sol Ring taps for mana
        pool = [c for c in pool if c.id != "sol-ring"]

    for i in range(400 - len(pool)):
        pool.append(
            make_card(
                f"red-{i:03d}",
                mana_value=float(1 + i % 5),
                type_line="Creature — Goblin",
                colors=("R",),
                color_identity=("R",),
                mana_cost="{R}",
                rarity=Rarity.MYTHIC,
                price=20.0,
            )
        )

    return pool


@pytest.fixture
def card_factory() -> CardFactory:
    """Factory for one-off cards."""
    return make_card


@pytest.fixture
def blue_pool() -> list[Card]:
    return generate_blue_pool()


@pytest.fixture
def no_ramp_pool() -> list[Card]:
    return generate_blue_pool(include_ramp=False)


@pytest.fixture
def blue_commander_requirements() -> DeckRequirements:
    return DeckRequirements(
        color_identity=frozenset({"U"}),
        format=DeckFormat.COMMANDER,
        power_level=6,
    )


@pytest.fixture
def red_constructed_pool() -> list[Card]:
    """Small mono-red pool for 60-card, four-copy builds."""
    pool = [
        make_card(
            f"burn-{i:02d}",
            mana_value=float(1 + i % 4),
            type_line="Instant" if i % 2 else "Creature — Goblin",
            colors=("R",),
            color_identity=("R",),
            mana_cost="{R}",
            oracle_text="Destroy target creature." if i % 3 == 0 else "",
            rarity=_RARITIES[i % 4],
            price=1.0 + i,
        )
        for i in range(20)
    ]
    pool.append(
        make_card(
            "mountain",
            name="Mountain",
            mana_value=0.0,
            type_line="Basic Land — Mountain",
            color_identity=("R",),
            price=0.05,
        )
    )
    return pool
