from deckwright.models.card import (
    COLOR_ORDER,
    COLOR_TO_BASIC_LAND,
    VALID_COLORS,
    Card,
    Rarity,
    count_pips,
    sort_colors,
)
from deckwright.models.card_record import CardRecord, load_pool
from deckwright.models.deck import (
    BuildResult,
    BuildState,
    DeckAnalysis,
    GeneratedDeck,
    MechanicSynergy,
)
from deckwright.models.failure import (
    ConfigurationError,
    DeckValidationError,
    FailureDetail,
    FailureKind,
    KnownError,
    PoolIngestionError,
    PoolInsufficientError,
    SizeInvariantError,
    create_unknown_failure,
)
from deckwright.models.quotas import (
    ARCHETYPE_PLANS,
    COMMANDER_QUOTAS,
    CONSTRUCTED_QUOTAS,
    ROLE_PRIORITY,
    RoleQuota,
    RoleQuotaTable,
    default_quotas,
    resolve_quotas,
)
from deckwright.models.requirements import (
    FORMAT_RULES,
    DeckFormat,
    DeckRequirements,
    FormatRules,
    LandPlan,
    get_format_rules,
)

__all__ = [
    # Card
    "COLOR_ORDER",
    "COLOR_TO_BASIC_LAND",
    "VALID_COLORS",
    "Card",
    "CardRecord",
    "Rarity",
    "count_pips",
    "load_pool",
    "sort_colors",
    # Deck
    "BuildResult",
    "BuildState",
    "DeckAnalysis",
    "GeneratedDeck",
    "MechanicSynergy",
    # Failure
    "ConfigurationError",
    "DeckValidationError",
    "FailureDetail",
    "FailureKind",
    "KnownError",
    "PoolIngestionError",
    "PoolInsufficientError",
    "SizeInvariantError",
    "create_unknown_failure",
    # Quotas
    "ARCHETYPE_PLANS",
    "COMMANDER_QUOTAS",
    "CONSTRUCTED_QUOTAS",
    "ROLE_PRIORITY",
    "RoleQuota",
    "RoleQuotaTable",
    "default_quotas",
    "resolve_quotas",
    # Requirements
    "FORMAT_RULES",
    "DeckFormat",
    "DeckRequirements",
    "FormatRules",
    "LandPlan",
    "get_format_rules",
]
