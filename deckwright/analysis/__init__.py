from deckwright.analysis.deck_analyzer import (
    analyze_deck,
    estimate_power_level,
    generate_suggestions,
)

__all__ = [
    "analyze_deck",
    "estimate_power_level",
    "generate_suggestions",
]
