"""Tests for the mana base optimizer."""

import pytest

from deckwright.models.failure import FailureKind
from deckwright.models.requirements import (
    COMMANDER_LAND_PLAN,
    CONSTRUCTED_LAND_PLAN,
    DeckFormat,
    DeckRequirements,
)
from deckwright.services.mana_base import (
    allocate_basics,
    average_mana_value,
    build_mana_base,
    count_color_pips,
    land_target,
)

COMMANDER = DeckRequirements(format=DeckFormat.COMMANDER)


@pytest.fixture
def basics(card_factory):
    return [
        card_factory(
            name.lower(),
            name=name,
            mana_value=0,
            type_line=f"Basic Land — {name}",
            color_identity=(color,),
        )
        for color, name in (("W", "Plains"), ("U", "Island"), ("B", "Swamp"))
    ]


class TestLandCount:
    """Land count formula."""

    @pytest.mark.parametrize(
        ("average", "expected"),
        [(3.0, 24), (4.0, 26), (2.0, 22), (0.5, 20), (9.0, 30), (3.25, 25), (2.75, 24)],
    )
    def test_commander_formula(self, average: float, expected: int) -> None:
        assert COMMANDER_LAND_PLAN.land_count(average, 100) == expected

    def test_scales_with_deck_size(self) -> None:
        assert CONSTRUCTED_LAND_PLAN.land_count(3.0, 60) == 24
        assert CONSTRUCTED_LAND_PLAN.land_count(9.0, 60) == 26
        assert COMMANDER_LAND_PLAN.land_count(3.0, 50) == 12

    def test_land_target_uses_nonland_average(self, card_factory) -> None:
        cards = [card_factory(f"c{i}", mana_value=4) for i in range(10)]
        cards.append(card_factory("land", type_line="Land", mana_value=0))
        assert average_mana_value(cards) == 4.0
        assert land_target(cards, COMMANDER) == 26

    def test_empty_selection_is_neutral(self) -> None:
        assert land_target([], COMMANDER) == 24


class TestPips:
    def test_counts_occurrences(self, card_factory) -> None:
        cards = [
            card_factory("a", mana_cost="{W}{W}{U}"),
            card_factory("b", mana_cost="{1}{U}"),
            card_factory("l", type_line="Land", mana_cost="{B}"),
        ]
        pips = count_color_pips(cards)
        assert pips == {"W": 2, "U": 2, "B": 0, "R": 0, "G": 0}


class TestAllocateBasics:
    def test_proportional(self) -> None:
        assert allocate_basics(10, {"W": 3, "U": 1}) in ({"W": 8, "U": 2}, {"W": 7, "U": 3})
        assert sum(allocate_basics(10, {"W": 3, "U": 1}).values()) == 10

    def test_largest_remainder(self) -> None:
        assert allocate_basics(3, {"W": 1, "U": 1, "B": 1}) == {"W": 1, "U": 1, "B": 1}
        assert allocate_basics(2, {"W": 1, "U": 1, "B": 1}) == {"W": 1, "U": 1, "B": 0}

    def test_nothing_to_allocate(self) -> None:
        assert allocate_basics(0, {"W": 1}) == {}
        assert allocate_basics(5, {"W": 0}) == {}


class TestBuildManaBase:
    def test_basics_follow_pips(self, card_factory, basics) -> None:
        nonland = [card_factory("a", mana_cost="{W}{W}{W}"), card_factory("b", mana_cost="{U}")]

        mana = build_mana_base(nonland, COMMANDER, basics, land_count=20)

        names = [c.name for c in mana.lands]
        assert len(names) == 20
        assert names.count("Plains") == 15
        assert names.count("Island") == 5
        assert "Swamp" not in names
        assert mana.shortfalls == []

    def test_duals_first_up_to_cap(self, card_factory, basics) -> None:
        duals = [
            card_factory(
                f"dual{i}",
                type_line="Land",
                color_identity=("W", "U"),
                oracle_text="{T}: Add {W} or {U}.",
            )
            for i in range(5)
        ]
        nonland = [card_factory("a", mana_cost="{W}{U}")]

        mana = build_mana_base(nonland, COMMANDER, duals + basics, land_count=10, dual_cap=3)

        assert [c.id for c in mana.lands[:3]] == ["dual0", "dual1", "dual2"]
        assert mana.dual_count == 3
        assert mana.basic_count == 7
        assert len(mana.lands) == 10

    def test_irrelevant_duals_skipped(self, card_factory, basics) -> None:
        gruul = card_factory(
            "gruul",
            type_line="Land",
            color_identity=("R", "G"),
            oracle_text="{T}: Add {R} or {G}.",
        )
        nonland = [card_factory("a", mana_cost="{W}")]

        mana = build_mana_base(nonland, COMMANDER, [gruul, *basics], land_count=4)

        assert mana.dual_count == 0
        assert {c.name for c in mana.lands[:4]} == {"Plains"}

    def test_fixed_lands_count_toward_target(self, card_factory, basics) -> None:
        utility = card_factory("tower", type_line="Land", oracle_text="{T}: Add {C}.")
        nonland = [card_factory("a", mana_cost="{U}")]

        mana = build_mana_base(nonland, COMMANDER, basics, land_count=5, fixed_lands=[utility])

        assert mana.lands[0].id == "tower"
        assert len(mana.lands) == 5

    def test_shortfall_when_pool_runs_out(self, card_factory) -> None:
        owned = card_factory(
            "plains",
            name="Plains",
            type_line="Basic Land — Plains",
            quantity=3,
        )
        nonland = [card_factory("a", mana_cost="{W}")]

        mana = build_mana_base(nonland, COMMANDER, [owned], land_count=10)

        assert len(mana.lands) == 3
        assert len(mana.shortfalls) == 1
        assert mana.shortfalls[0].kind == FailureKind.POOL_INSUFFICIENT
        assert mana.shortfalls[0].message == "Low lands: 3/10 cards"

    def test_colorless_deck_uses_identity(self, card_factory, basics) -> None:
        nonland = [card_factory("rock", type_line="Artifact", mana_cost="{3}")]
        mana = build_mana_base(
            nonland,
            COMMANDER,
            basics,
            land_count=4,
            identity=frozenset({"U"}),
        )
        assert {c.name for c in mana.lands} == {"Island"}
