"""Tests for the card model and the pool ingestion boundary."""

import pytest

from deckwright.models.card import Card, Rarity, count_pips, sort_colors
from deckwright.models.card_record import CardRecord, load_pool
from deckwright.models.failure import FailureKind, PoolIngestionError


class TestCardDerivedFields:
    """Type-line and mana-cost helpers."""

    def test_type_line_parsing(self, card_factory) -> None:
        card = card_factory("elf", type_line="Legendary Creature — Elf Druid")

        assert card.is_creature
        assert card.is_legendary
        assert not card.is_land
        assert card.primary_type == "Legendary Creature"
        assert card.subtypes == ("Elf", "Druid")

    def test_no_subtypes_without_separator(self, card_factory) -> None:
        card = card_factory("bolt", type_line="Instant")
        assert card.subtypes == ()
        assert card.primary_type == "Instant"

    def test_basic_land(self, card_factory) -> None:
        card = card_factory("forest", type_line="Basic Land — Forest")
        assert card.is_land
        assert card.is_basic_land

    def test_hybrid_pips_count_each_color(self) -> None:
        pips = count_pips("{2}{W/U}{U}")
        assert pips["W"] == 1
        assert pips["U"] == 2
        assert pips["B"] == 0

    def test_color_pips_fall_back_to_colors(self, card_factory) -> None:
        card = card_factory("x", colors=("G",), mana_cost="")
        assert card.color_pips()["G"] == 1

    def test_produced_colors_from_oracle_text(self, card_factory) -> None:
        land = card_factory(
            "dual",
            type_line="Land",
            oracle_text="{T}: Add {W} or {U}.",
        )
        assert land.produced_colors() == frozenset({"W", "U"})

    def test_produced_colors_any_color(self, card_factory) -> None:
        land = card_factory("tower", type_line="Land", oracle_text="{T}: Add one mana of any color.")
        assert land.produced_colors() == frozenset("WUBRG")

    def test_sort_colors_is_wubrg(self) -> None:
        assert sort_colors({"G", "W", "U"}) == ("W", "U", "G")

    def test_availability(self, card_factory) -> None:
        assert card_factory("a").is_available
        assert card_factory("b", quantity=2).is_available
        assert not card_factory("c", quantity=0).is_available

    def test_cards_are_hashable(self, card_factory) -> None:
        card = card_factory("a", legalities={"commander": "legal"})
        assert {card} == {card}


class TestCardRecord:
    """Normalization of provider records."""

    def test_scryfall_shape(self) -> None:
        record = CardRecord.model_validate(
            {
                "id": "abc",
                "name": "Opt",
                "cmc": 1,
                "type_line": "Instant",
                "colors": ["u"],
                "color_identity": ["U"],
                "oracle_text": "Scry 1.\nDraw a card.",
                "rarity": "common",
                "prices": {"usd": "0.25"},
                "legalities": {"Commander": "Legal"},
                "set": "XLN",
            }
        )
        card = record.to_card()

        assert card.mana_value == 1.0
        assert card.colors == ("U",)
        assert card.price == 0.25
        assert card.legalities == {"commander": "legal"}

    def test_unknown_rarity_becomes_common(self) -> None:
        record = CardRecord.model_validate({"id": "a", "name": "A", "rarity": "special"})
        assert record.rarity == Rarity.COMMON

    def test_null_text_fields_become_empty(self) -> None:
        record = CardRecord.model_validate({"id": "a", "name": "A", "oracle_text": None})
        assert record.oracle_text == ""

    def test_invalid_colors_dropped(self) -> None:
        record = CardRecord.model_validate({"id": "a", "name": "A", "colors": ["U", "X", "U"]})
        assert record.colors == ("U",)


class TestLoadPool:
    """load_pool() ordering, dedup and error handling."""

    def test_preserves_order_and_drops_duplicates(self) -> None:
        pool = load_pool(
            [
                {"id": "b", "name": "B"},
                {"id": "a", "name": "A"},
                {"id": "b", "name": "B again"},
            ]
        )
        assert [c.id for c in pool] == ["b", "a"]
        assert pool[0].name == "B"

    def test_cards_pass_through(self, card_factory) -> None:
        card = card_factory("x")
        assert load_pool([card]) == [card]

    def test_invalid_records_skipped(self) -> None:
        pool = load_pool([{"id": "a", "name": "A", "cmc": -1}, {"id": "b", "name": "B"}])
        assert [c.id for c in pool] == ["b"]

    def test_strict_mode_raises(self) -> None:
        with pytest.raises(PoolIngestionError) as exc_info:
            load_pool([{"id": "bad", "name": ""}], strict=True)

        assert exc_info.value.record_id == "bad"
        assert exc_info.value.kind == FailureKind.INVALID_CARD_RECORD

    def test_card_type_matches(self) -> None:
        pool = load_pool([{"id": "a", "name": "A"}])
        assert isinstance(pool[0], Card)
