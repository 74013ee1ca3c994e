"""
Pool ingestion boundary.

Card records arrive from the card data provider in heterogeneous shapes
(Scryfall JSON, collection exports, hand-built fixtures). This module is the
ONLY place those shapes are accepted: everything downstream sees a closed,
validated `Card`.

INVARIANTS:
- Unknown fields are ignored, known fields are normalized
- Invalid records never reach scoring or tagging
- Pool order is preserved; duplicate ids keep their first occurrence
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from deckwright.models.card import VALID_COLORS, Card, Rarity, sort_colors
from deckwright.models.failure import PoolIngestionError

logger = logging.getLogger(__name__)

VALID_RARITIES = frozenset(r.value for r in Rarity)


def _normalize_rarity(rarity: str) -> str:
    """Normalize rarity to one of: common, uncommon, rare, mythic."""
    rarity = rarity.lower()
    return rarity if rarity in VALID_RARITIES else "common"


def _normalize_colors(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = list(value)
    colors = {str(c).strip().upper() for c in value}
    return sort_colors(colors & VALID_COLORS)


class CardRecord(BaseModel):
    """A raw card record as supplied by the card data provider."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    mana_value: float = Field(
        default=0.0,
        ge=0,
        validation_alias=AliasChoices("mana_value", "cmc"),
    )
    type_line: str = ""
    colors: tuple[str, ...] = ()
    color_identity: tuple[str, ...] = ()
    oracle_text: str = ""
    rarity: Rarity = Rarity.COMMON
    price: float | None = Field(default=None, ge=0)
    mana_cost: str = ""
    keywords: tuple[str, ...] = ()
    legalities: dict[str, str] = Field(default_factory=dict)
    quantity: int | None = Field(default=None, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _lift_scryfall_price(cls, data: Any) -> Any:
        """Accept Scryfall's nested {"prices": {"usd": "1.23"}} shape."""
        if isinstance(data, Mapping) and data.get("price") is None:
            prices = data.get("prices")
            if isinstance(prices, Mapping) and prices.get("usd") is not None:
                data = {**data, "price": prices["usd"]}
        return data

    @field_validator("oracle_text", "type_line", "mana_cost", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("colors", "color_identity", mode="before")
    @classmethod
    def _colors(cls, value: Any) -> tuple[str, ...]:
        return _normalize_colors(value)

    @field_validator("rarity", mode="before")
    @classmethod
    def _rarity(cls, value: Any) -> str:
        if value is None:
            return Rarity.COMMON.value
        if isinstance(value, Rarity):
            return value.value
        return _normalize_rarity(str(value))

    @field_validator("keywords", mode="before")
    @classmethod
    def _keywords(cls, value: Any) -> tuple[str, ...]:
        if value is None:
            return ()
        return tuple(str(k) for k in value)

    @field_validator("legalities", mode="before")
    @classmethod
    def _legalities(cls, value: Any) -> dict[str, str]:
        if value is None:
            return {}
        return {str(k).lower(): str(v).lower() for k, v in dict(value).items()}

    def to_card(self) -> Card:
        """Convert to the engine's immutable Card."""
        return Card(
            id=self.id,
            name=self.name,
            mana_value=self.mana_value,
            type_line=self.type_line,
            colors=self.colors,
            color_identity=self.color_identity,
            oracle_text=self.oracle_text,
            rarity=self.rarity,
            price=self.price,
            mana_cost=self.mana_cost,
            keywords=self.keywords,
            legalities=dict(self.legalities),
            quantity=self.quantity,
        )


def load_pool(
    records: Iterable[Mapping[str, Any] | Card],
    strict: bool = False,
) -> list[Card]:
    """
    Normalize raw card records into an ordered candidate pool.

    Args:
        records: Raw mappings from the data provider (Cards pass through)
        strict: Raise on the first invalid record instead of skipping it

    Returns:
        Cards in input order, duplicate ids removed (first wins)

    Raises:
        PoolIngestionError: In strict mode, for an invalid record
    """
    pool: list[Card] = []
    seen: set[str] = set()
    skipped = 0

    for index, record in enumerate(records):
        if isinstance(record, Card):
            card = record
        else:
            try:
                card = CardRecord.model_validate(record).to_card()
            except ValidationError as e:
                raw_id = record.get("id") if isinstance(record, Mapping) else None
                record_id = str(raw_id) if raw_id else f"#{index}"
                if strict:
                    raise PoolIngestionError(record_id, str(e)) from e
                logger.warning("Skipping invalid card record %s: %s", record_id, e)
                skipped += 1
                continue

        if card.id in seen:
            logger.debug("Dropping duplicate card id %s", card.id)
            continue
        seen.add(card.id)
        pool.append(card)

    logger.info(
        "pool_loaded",
        extra={"cards": len(pool), "skipped": skipped},
    )
    return pool
