"""
Deckwright: deck assembly and synergy engine.

Builds legal, internally coherent decks from a candidate card pool and a
declarative set of requirements.
"""

from deckwright.models.card import Card, Rarity
from deckwright.models.card_record import CardRecord, load_pool
from deckwright.models.deck import BuildResult, BuildState, DeckAnalysis, GeneratedDeck
from deckwright.models.quotas import RoleQuota, RoleQuotaTable
from deckwright.models.requirements import DeckFormat, DeckRequirements
from deckwright.services.deck_builder import build_deck

__all__ = [
    "BuildResult",
    "BuildState",
    "Card",
    "CardRecord",
    "DeckAnalysis",
    "DeckFormat",
    "DeckRequirements",
    "GeneratedDeck",
    "Rarity",
    "RoleQuota",
    "RoleQuotaTable",
    "build_deck",
    "load_pool",
]
