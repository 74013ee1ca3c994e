from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment (DECKWRIGHT_*)."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="DECKWRIGHT_", extra="ignore")

    # Share tags across builds through a lock-protected cache keyed by card id
    memoize_tags: bool = False

    # Maximum multi-color lands the mana base may take before basics
    dual_land_cap: int = 12

    # Treat role maximums as hard caps during synergy and filler phases
    enforce_role_max: bool = False


settings = Settings()


# =============================================================================
# SYNERGY GROUPING
# =============================================================================

# A role tag shared by at least this many cards becomes a synergy group
MIN_TAG_GROUP_SIZE = 3
MAX_TAG_GROUP_SIZE = 8

# A creature subtype shared by at least this many creatures becomes a group
MIN_SUBTYPE_GROUP_SIZE = 4
MAX_SUBTYPE_GROUP_SIZE = 6

# Pairwise synergy partial weights (per shared element), capped per pair
SHARED_TAG_WEIGHT = 0.3
SHARED_KEYWORD_WEIGHT = 0.2
SHARED_COLOR_WEIGHT = 0.1
SAME_TYPE_WEIGHT = 0.15
MAX_PAIR_SYNERGY = 1.0

# Group relevance partial weights (per card)
ARCHETYPE_RELEVANCE = 0.3
THEME_RELEVANCE = 0.2
COLOR_RELEVANCE = 0.1


# =============================================================================
# ANALYSIS THRESHOLDS
# =============================================================================

HIGH_CURVE_AVERAGE = 4.0
MIN_EARLY_GAME_CARDS = 12
MAX_EXPENSIVE_CARDS = 8
EXPENSIVE_MANA_VALUE = 6
STRENGTH_MECHANIC_COUNT = 8
