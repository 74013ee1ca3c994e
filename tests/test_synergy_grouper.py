"""Tests for synergy grouping and synergy scores."""

import pytest

from deckwright.models.card import Rarity
from deckwright.models.requirements import DeckRequirements
from deckwright.services.card_tagger import tag_pool
from deckwright.services.synergy_grouper import (
    SUBTYPE_AXIS,
    TAG_AXIS,
    SynergyGroup,
    card_synergy,
    deck_synergy,
    group_relevance,
    group_synergies,
    group_synergy,
    matches_label,
    rank_groups,
)


def _by_key(groups):
    return {(g.axis, g.key): g for g in groups}


class TestGroupSynergies:
    """Group thresholds and truncation."""

    def test_tag_group_needs_three_cards(self, card_factory) -> None:
        two = [card_factory(f"d{i}", oracle_text="Draw a card.") for i in range(2)]
        assert group_synergies(two, tag_pool(two)) == []

        three = [card_factory(f"d{i}", oracle_text="Draw a card.") for i in range(3)]
        groups = group_synergies(three, tag_pool(three))
        assert [(g.axis, g.key, len(g)) for g in groups] == [(TAG_AXIS, "draw", 3)]

    def test_tag_group_truncated_to_best_eight(self, card_factory) -> None:
        cards = [
            card_factory(
                f"d{i}",
                oracle_text="Draw a card.",
                rarity=Rarity.MYTHIC if i >= 7 else Rarity.COMMON,
            )
            for i in range(12)
        ]
        group = group_synergies(cards, tag_pool(cards))[0]

        assert len(group) == 8
        # Mythics first, then commons in pool order
        assert [c.id for c in group.cards] == ["d7", "d8", "d9", "d10", "d11", "d0", "d1", "d2"]

    def test_subtype_group_needs_four_creatures(self, card_factory) -> None:
        elves = [card_factory(f"e{i}", type_line="Creature — Elf Warrior") for i in range(3)]
        assert group_synergies(elves, tag_pool(elves)) == []

        elves.append(card_factory("e3", type_line="Creature — Elf Druid"))
        groups = _by_key(group_synergies(elves, tag_pool(elves)))

        assert (SUBTYPE_AXIS, "Elf") in groups
        assert (SUBTYPE_AXIS, "Warrior") not in groups

    def test_subtype_group_truncated_to_six(self, card_factory) -> None:
        elves = [card_factory(f"e{i}", type_line="Creature — Elf") for i in range(10)]
        groups = group_synergies(elves, tag_pool(elves))
        assert len(groups[0]) == 6

    def test_noncreatures_never_form_subtype_groups(self, card_factory) -> None:
        auras = [card_factory(f"a{i}", type_line="Enchantment — Aura") for i in range(5)]
        assert group_synergies(auras, tag_pool(auras)) == []

    def test_groups_may_overlap(self, card_factory) -> None:
        cards = [
            card_factory(f"e{i}", type_line="Creature — Elf", oracle_text="Draw a card.")
            for i in range(4)
        ]
        groups = group_synergies(cards, tag_pool(cards))
        assert {(g.axis, g.key) for g in groups} == {(TAG_AXIS, "draw"), (SUBTYPE_AXIS, "Elf")}


class TestCardSynergy:
    """Pairwise synergy weights."""

    def test_weights(self, card_factory) -> None:
        a = card_factory(
            "a",
            type_line="Creature — Elf",
            colors=("G",),
            keywords=("Trample",),
            oracle_text="Draw a card.",
        )
        b = card_factory(
            "b",
            type_line="Creature — Elf",
            colors=("G",),
            keywords=("trample",),
            oracle_text="Draw two cards.",
        )
        tags = tag_pool([a, b])

        # tag 0.3 + keyword 0.2 + color 0.1 + type 0.15
        assert card_synergy(a, b, tags) == pytest.approx(0.75)

    def test_capped_at_one(self, card_factory) -> None:
        text = "Draw a card. Destroy target creature. Create a token. Counter target spell."
        a = card_factory("a", colors=("U", "B"), oracle_text=text)
        b = card_factory("b", colors=("U", "B"), oracle_text=text)
        assert card_synergy(a, b, tag_pool([a, b])) == 1.0

    def test_unrelated_cards(self, card_factory) -> None:
        a = card_factory("a", type_line="Instant")
        b = card_factory("b", type_line="Sorcery")
        assert card_synergy(a, b, tag_pool([a, b])) == 0.0

    def test_deck_synergy_mean_of_pairs(self, card_factory) -> None:
        cards = [card_factory(f"c{i}", type_line="Instant") for i in range(3)]
        assert deck_synergy(cards, tag_pool(cards)) == pytest.approx(0.15)

    def test_deck_synergy_tiny_decks(self, card_factory) -> None:
        assert deck_synergy([], tag_pool([])) == 0.0
        assert deck_synergy([card_factory("a")], tag_pool([])) == 0.0

    def test_group_synergy_empty_selection(self, card_factory) -> None:
        group = [card_factory("a")]
        assert group_synergy(group, [], tag_pool(group)) == 0.0


class TestRelevance:
    """Label matching and group relevance."""

    def test_matches_tag_keyword_subtype(self, card_factory) -> None:
        token_maker = card_factory("t", oracle_text="Create a 1/1 Elf token.")
        flier = card_factory("f", keywords=("Flying",))
        elf = card_factory("e", type_line="Creature — Elf")
        tags = tag_pool([token_maker, flier, elf])

        assert matches_label(token_maker, tags, "tokens")
        assert matches_label(flier, tags, "flying")
        assert matches_label(elf, tags, "Elf")
        assert not matches_label(elf, tags, "")

    def test_archetype_indicators(self, card_factory) -> None:
        card = card_factory("h", oracle_text="Haste")
        assert matches_label(card, tag_pool([card]), "aggro")

    def test_relevance_averaged_and_capped(self, card_factory) -> None:
        cards = [
            card_factory(f"t{i}", color_identity=("G",), oracle_text="Create a token.")
            for i in range(3)
        ]
        group = SynergyGroup(axis=TAG_AXIS, key="tokens", cards=tuple(cards))
        tags = tag_pool(cards)

        archetype_only = DeckRequirements(archetype="tokens")
        assert group_relevance(group, archetype_only, tags) == pytest.approx(0.3)

        everything = DeckRequirements(
            archetype="tokens",
            themes=("tokens", "token"),
            color_identity=frozenset({"G"}),
        )
        # 0.3 + 0.2 + 0.2 + 0.1 per card
        assert group_relevance(group, everything, tags) == pytest.approx(0.8)

    def test_rank_groups_by_score_times_relevance(self, card_factory) -> None:
        tokens = [card_factory(f"t{i}", oracle_text="Create a token.") for i in range(3)]
        draw = [card_factory(f"d{i}", oracle_text="Draw a card.") for i in range(3)]
        selected = [card_factory("s", oracle_text="Create a token.")]
        tags = tag_pool(tokens + draw + selected)
        groups = group_synergies(draw + tokens, tags)

        ranked = rank_groups(groups, selected, DeckRequirements(archetype="tokens"), tags)

        assert ranked[0].group.key == "tokens"
        assert ranked[0].priority > ranked[1].priority
