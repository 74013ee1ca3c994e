"""
Engine output models.

GeneratedDeck is produced fresh per build and handed to the caller. The
persistence and advisory layers consume it through `to_dict()`; the engine
knows nothing about how it is stored or narrated.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from deckwright.models.card import Card
from deckwright.models.failure import FailureDetail


@dataclass(frozen=True, slots=True)
class MechanicSynergy:
    """How strongly one mechanic is represented in a deck."""

    mechanic: str
    count: int
    score: float  # count / deck size


@dataclass(frozen=True)
class DeckAnalysis:
    """
    Structured statistics for a finished deck.

    Attributes:
        curve: Nonland card count per mana value
        color_distribution: Color pip occurrences per color
        type_distribution: Card count per primary type
        mechanic_synergies: Mechanics ranked by synergy score, descending
        weaknesses: Threshold-derived warnings
        strengths: Threshold-derived strengths
        total_value: Sum of known card prices in USD
        average_mana_value: Mean mana value of nonland cards
    """

    curve: dict[int, int] = field(default_factory=dict)
    color_distribution: dict[str, int] = field(default_factory=dict)
    type_distribution: dict[str, int] = field(default_factory=dict)
    mechanic_synergies: tuple[MechanicSynergy, ...] = ()
    weaknesses: tuple[str, ...] = ()
    strengths: tuple[str, ...] = ()
    total_value: float = 0.0
    average_mana_value: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "curve": {str(mv): n for mv, n in sorted(self.curve.items())},
            "color_distribution": dict(self.color_distribution),
            "type_distribution": dict(sorted(self.type_distribution.items())),
            "mechanic_synergies": [
                {"mechanic": m.mechanic, "count": m.count, "score": m.score}
                for m in self.mechanic_synergies
            ],
            "weaknesses": list(self.weaknesses),
            "strengths": list(self.strengths),
            "total_value": self.total_value,
            "average_mana_value": self.average_mana_value,
        }


def card_to_dict(card: Card) -> dict[str, Any]:
    """Plain JSON-compatible representation of a card."""
    return {
        "id": card.id,
        "name": card.name,
        "mana_value": card.mana_value,
        "type_line": card.type_line,
        "colors": list(card.colors),
        "color_identity": list(card.color_identity),
        "rarity": card.rarity.value,
        "price": card.price,
    }


@dataclass(frozen=True)
class GeneratedDeck:
    """
    A finished deck.

    Attributes:
        cards: Main deck in build order (nonland cards, then lands)
        commander: Commander card for commander formats
        synergy_score: Mean pairwise synergy, 0-1
        power_level: Estimated power, 1-10
        analysis: Structured statistics
        suggestions: Short template-driven suggestions
    """

    cards: tuple[Card, ...]
    commander: Card | None
    synergy_score: float
    power_level: int
    analysis: DeckAnalysis
    suggestions: tuple[str, ...] = ()

    @property
    def nonland_cards(self) -> tuple[Card, ...]:
        return tuple(c for c in self.cards if not c.is_land)

    @property
    def lands(self) -> tuple[Card, ...]:
        return tuple(c for c in self.cards if c.is_land)

    def total_cards(self) -> int:
        """Main deck plus commander."""
        return len(self.cards) + (1 if self.commander else 0)

    def card_ids(self) -> list[str]:
        return [c.id for c in self.cards]

    def to_dict(self) -> dict[str, Any]:
        """Deterministic, JSON-compatible representation."""
        return {
            "commander": card_to_dict(self.commander) if self.commander else None,
            "cards": [card_to_dict(c) for c in self.cards],
            "synergy_score": self.synergy_score,
            "power_level": self.power_level,
            "analysis": self.analysis.to_dict(),
            "suggestions": list(self.suggestions),
        }


class BuildState(str, Enum):
    """Pipeline states. Transitions are strictly sequential."""

    PENDING = "pending"
    FILTERING = "filtering"
    TAGGING = "tagging"
    SELECTING = "selecting"
    MANA_BASE = "mana_base"
    CURVE_BALANCE = "curve_balance"
    ANALYZING = "analyzing"
    VALIDATED = "validated"
    FAILED = "failed"


@dataclass(frozen=True)
class BuildResult:
    """
    Outcome of one build invocation.

    Either `deck` is set (state VALIDATED) or `failures` is non-empty
    (state FAILED). Warnings and the change log are present in both cases.
    """

    state: BuildState
    deck: GeneratedDeck | None = None
    failures: tuple[FailureDetail, ...] = ()
    warnings: tuple[str, ...] = ()
    change_log: tuple[str, ...] = ()
    failed_during: BuildState | None = None

    @property
    def is_success(self) -> bool:
        return self.state == BuildState.VALIDATED

    @property
    def errors(self) -> list[str]:
        """Failure messages as plain strings."""
        return [f.message for f in self.failures]
