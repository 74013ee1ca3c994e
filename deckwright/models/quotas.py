"""
Role quota tables.

A quota is a {min, max} card count for one functional role. Defaults exist
per format; an archetype plan overrides individual roles, and a caller may
pass an explicit plan that overrides both.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

from deckwright.models.requirements import DeckRequirements

# Standard roles, in the order the selector fills them
ROLE_PRIORITY: tuple[str, ...] = (
    "ramp",
    "draw",
    "removal",
    "sweepers",
    "creatures",
    "archetype",
    "theme",
)

# Standard roles backed by a single tag
ROLE_TAGS: dict[str, str] = {
    "ramp": "ramp",
    "draw": "draw",
    "removal": "removal-spot",
    "sweepers": "removal-sweeper",
}

# Roles whose minimum scales with the power target
POWER_SCALED_ROLES = frozenset({"ramp", "draw"})
HIGH_POWER_THRESHOLD = 7
LOW_POWER_THRESHOLD = 4
HIGH_POWER_MULTIPLIER = 1.2
LOW_POWER_MULTIPLIER = 0.8


@dataclass(frozen=True, slots=True)
class RoleQuota:
    """Minimum and maximum card count for a role."""

    min: int
    max: int

    def __post_init__(self) -> None:
        if self.min < 0 or self.max < self.min:
            raise ValueError(f"Invalid quota range {self.min}-{self.max}")


@dataclass(frozen=True)
class RoleQuotaTable:
    """
    Mapping from role name to quota.

    Iteration order is the fill order: standard roles first in
    ROLE_PRIORITY order, then any extra tag roles sorted by name.
    """

    quotas: Mapping[str, RoleQuota] = field(default_factory=dict)

    def __contains__(self, role: str) -> bool:
        return role in self.quotas

    def __len__(self) -> int:
        return len(self.quotas)

    def __iter__(self) -> Iterator[str]:
        standard = [r for r in ROLE_PRIORITY if r in self.quotas]
        extra = sorted(r for r in self.quotas if r not in ROLE_PRIORITY)
        return iter(standard + extra)

    def get(self, role: str) -> RoleQuota | None:
        return self.quotas.get(role)

    def items(self) -> Iterator[tuple[str, RoleQuota]]:
        for role in self:
            yield role, self.quotas[role]

    def merged(self, overrides: "Mapping[str, RoleQuota] | RoleQuotaTable") -> "RoleQuotaTable":
        """Return a new table with `overrides` replacing matching roles."""
        if isinstance(overrides, RoleQuotaTable):
            overrides = overrides.quotas
        return RoleQuotaTable(quotas={**self.quotas, **overrides})

    def adjusted_for_power(self, power_level: int) -> "RoleQuotaTable":
        """
        Scale ramp and draw minimums by the power target.

        Targets >= 7 raise the minimums by 20%, targets <= 4 lower them by
        20% (floored). Maximums grow to stay >= the new minimum.
        """
        if power_level >= HIGH_POWER_THRESHOLD:
            multiplier = HIGH_POWER_MULTIPLIER
        elif power_level <= LOW_POWER_THRESHOLD:
            multiplier = LOW_POWER_MULTIPLIER
        else:
            return self

        adjusted: dict[str, RoleQuota] = dict(self.quotas)
        for role in POWER_SCALED_ROLES & set(self.quotas):
            quota = self.quotas[role]
            new_min = int(quota.min * multiplier)
            adjusted[role] = RoleQuota(min=new_min, max=max(quota.max, new_min))
        return RoleQuotaTable(quotas=adjusted)


COMMANDER_QUOTAS = RoleQuotaTable(
    quotas={
        "ramp": RoleQuota(10, 14),
        "draw": RoleQuota(8, 12),
        "removal": RoleQuota(6, 10),
        "sweepers": RoleQuota(2, 4),
        "creatures": RoleQuota(20, 30),
        "archetype": RoleQuota(8, 12),
        "theme": RoleQuota(4, 8),
    }
)

CONSTRUCTED_QUOTAS = RoleQuotaTable(
    quotas={
        "ramp": RoleQuota(0, 4),
        "draw": RoleQuota(2, 6),
        "removal": RoleQuota(4, 8),
        "sweepers": RoleQuota(0, 2),
        "creatures": RoleQuota(12, 20),
        "archetype": RoleQuota(6, 10),
        "theme": RoleQuota(4, 8),
    }
)

# Archetype-specific overrides applied on top of the format defaults
ARCHETYPE_PLANS: dict[str, dict[str, RoleQuota]] = {
    "aggro": {
        "ramp": RoleQuota(0, 2),
        "draw": RoleQuota(0, 4),
        "removal": RoleQuota(4, 8),
        "sweepers": RoleQuota(0, 0),
        "creatures": RoleQuota(16, 30),
    },
    "midrange": {
        "ramp": RoleQuota(2, 12),
        "draw": RoleQuota(2, 10),
        "removal": RoleQuota(6, 10),
    },
    "control": {
        "draw": RoleQuota(4, 12),
        "removal": RoleQuota(8, 12),
        "sweepers": RoleQuota(2, 4),
        "counterspell": RoleQuota(6, 12),
        "creatures": RoleQuota(4, 16),
    },
    "combo": {
        "draw": RoleQuota(4, 12),
        "ramp": RoleQuota(2, 12),
        "removal": RoleQuota(4, 8),
        "tutor": RoleQuota(2, 6),
    },
    "tokens": {
        "tokens": RoleQuota(8, 16),
    },
    "counters": {
        "counters": RoleQuota(8, 16),
        "proliferate": RoleQuota(3, 8),
    },
}


def default_quotas(requirements: DeckRequirements) -> RoleQuotaTable:
    """
    Resolve the quota table for a build.

    Format default, then archetype plan. Roles that cannot apply
    (archetype/theme without labels) are dropped.
    """
    table = COMMANDER_QUOTAS if requirements.rules.has_commander else CONSTRUCTED_QUOTAS

    archetype = (requirements.archetype or "").lower()
    if archetype in ARCHETYPE_PLANS:
        table = table.merged(ARCHETYPE_PLANS[archetype])

    quotas = dict(table.quotas)
    if not requirements.archetype:
        quotas.pop("archetype", None)
    if not requirements.themes:
        quotas.pop("theme", None)
    return RoleQuotaTable(quotas=quotas)


def resolve_quotas(
    requirements: DeckRequirements,
    plan: RoleQuotaTable | Mapping[str, RoleQuota] | None = None,
) -> RoleQuotaTable:
    """Defaults, overridden by an explicit plan, adjusted for power target."""
    table = default_quotas(requirements)
    if plan is not None:
        table = table.merged(plan)
    return table.adjusted_for_power(requirements.power_level)
