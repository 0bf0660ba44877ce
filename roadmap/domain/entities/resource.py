"""
Resource Entities - Capacity pools and the effort initiatives draw from them.

Capacity is aggregate only: a pool offers so much effort per period and
requirements consume it. There is no notion of individual people or skills.
"""
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from ..exceptions import InvalidDateRangeError


class CapacityUnit(str, Enum):
    FTE = "FTE"
    PERSON_DAYS = "PersonDays"
    PERSON_MONTHS = "PersonMonths"


class PeriodType(str, Enum):
    """Granularity of allocation periods."""
    MONTH = "Month"
    QUARTER = "Quarter"
    YEAR = "Year"


@dataclass(frozen=True)
class ResourcePool:
    """
    Pool of capacity (e.g., 'Dev Team').

    Attributes:
        id: Opaque identity
        name: Display name
        capacity_per_period: Effort available per period; None = unconstrained
        capacity_unit: Unit of capacity and demand
        period_type: Native granularity of the pool
    """

    id: str
    name: str = ""
    capacity_per_period: Optional[float] = None
    capacity_unit: CapacityUnit = CapacityUnit.FTE
    period_type: PeriodType = PeriodType.MONTH
    description: Optional[str] = None

    @property
    def is_constrained(self) -> bool:
        return self.capacity_per_period is not None and self.capacity_per_period > 0

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'id': self.id,
            'name': self.name,
            'capacity_per_period': self.capacity_per_period,
            'capacity_unit': self.capacity_unit.value,
            'period_type': self.period_type.value,
        }


@dataclass(frozen=True)
class InitiativeResourceRequirement:
    """
    Effort an initiative needs from a pool.

    The effort is spread evenly across the initiative's own dates unless an
    explicit [period_start, period_end] window is given.
    """

    initiative_id: str
    resource_pool_id: str
    effort_required: float = 0.0
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    id: Optional[str] = None

    def __post_init__(self):
        if self.period_start and self.period_end and self.period_start > self.period_end:
            raise InvalidDateRangeError(
                self.id or self.initiative_id, self.period_start, self.period_end
            )

    @property
    def has_explicit_window(self) -> bool:
        return self.period_start is not None and self.period_end is not None
