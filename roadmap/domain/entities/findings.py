"""
Analysis Findings - Ephemeral records produced by the analyzers.

Violations, allocations and conflicts are recomputed on every call and are
never persisted.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Tuple

from .constraint import ConstraintType, Hardness
from .dependency import DependencyType


@dataclass(frozen=True)
class DateShift:
    """Required new dates for an initiative."""
    start_date: date
    end_date: date

    def to_dict(self) -> dict:
        return {
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
        }


@dataclass
class DependencyViolation:
    """
    Successor scheduled in breach of a dependency on its predecessor.

    Attributes:
        initiative_id: Successor identity
        initiative_name: Successor name
        depends_on_id: Predecessor identity
        depends_on_name: Predecessor name
        dependency_type: Rule that is broken
        message: Human-readable description
        suggested_fix: Tightest successor dates satisfying the rule,
            keeping the successor's duration
    """

    initiative_id: str
    initiative_name: str
    depends_on_id: str
    depends_on_name: str
    dependency_type: DependencyType
    message: str
    suggested_fix: Optional[DateShift] = None
    lag_days: int = 0

    kind = 'dependency'

    def to_dict(self) -> dict:
        return {
            'type': self.kind,
            'initiative_id': self.initiative_id,
            'initiative_name': self.initiative_name,
            'depends_on_id': self.depends_on_id,
            'depends_on_name': self.depends_on_name,
            'dependency_type': self.dependency_type.value,
            'lag_days': self.lag_days,
            'message': self.message,
            'suggested_fix': self.suggested_fix.to_dict() if self.suggested_fix else None,
        }


@dataclass
class ConstraintViolation:
    """Initiative dates breaching a linked constraint."""

    constraint_id: str
    constraint_name: str
    constraint_type: ConstraintType
    initiative_id: str
    initiative_name: str
    hardness: Hardness
    message: str

    kind = 'constraint'

    @property
    def is_hard(self) -> bool:
        return self.hardness == Hardness.HARD

    def to_dict(self) -> dict:
        return {
            'type': self.kind,
            'constraint_id': self.constraint_id,
            'constraint_name': self.constraint_name,
            'constraint_type': self.constraint_type.value,
            'initiative_id': self.initiative_id,
            'initiative_name': self.initiative_name,
            'hardness': self.hardness.value,
            'message': self.message,
        }


@dataclass
class ResourceAllocation:
    """
    Demand vs. capacity for one pool in one period.

    Attributes:
        pool_id: Pool identity
        pool_name: Pool name
        period_start: Inclusive start of the period
        period_end: Exclusive end of the period (clipped to the plan span)
        demand: Effort drawn from the pool during the period
        capacity: Pool capacity; None for unconstrained pools
        utilisation: demand / capacity * 100, or 0 when unconstrained
    """

    pool_id: str
    pool_name: str
    period_start: date
    period_end: date
    demand: float
    capacity: Optional[float]
    utilisation: float

    @property
    def key(self) -> Tuple[str, date]:
        return (self.pool_id, self.period_start)

    @property
    def is_over_capacity(self) -> bool:
        return self.capacity is not None and self.capacity > 0 and self.demand > self.capacity

    def to_dict(self) -> dict:
        return {
            'pool_id': self.pool_id,
            'pool_name': self.pool_name,
            'period_start': self.period_start.isoformat(),
            'period_end': self.period_end.isoformat(),
            'demand': self.demand,
            'capacity': self.capacity,
            'utilisation': self.utilisation,
        }


@dataclass
class ContributingInitiative:
    """One initiative's share of a pool's demand in a period."""
    id: str
    name: str
    effort: float

    def to_dict(self) -> dict:
        return {'id': self.id, 'name': self.name, 'effort': self.effort}


@dataclass
class ResourceConflict:
    """Pool/period where demand exceeds a positive capacity."""

    pool_id: str
    pool_name: str
    period_start: date
    period_end: date
    demand: float
    capacity: float
    over_allocation: float
    utilisation_percent: float
    contributing_initiatives: List[ContributingInitiative] = field(default_factory=list)

    kind = 'resource'

    @property
    def key(self) -> Tuple[str, date]:
        return (self.pool_id, self.period_start)

    def involves(self, initiative_id: str) -> bool:
        return any(c.id == initiative_id for c in self.contributing_initiatives)

    def to_dict(self) -> dict:
        return {
            'type': self.kind,
            'pool_id': self.pool_id,
            'pool_name': self.pool_name,
            'period_start': self.period_start.isoformat(),
            'period_end': self.period_end.isoformat(),
            'demand': self.demand,
            'capacity': self.capacity,
            'over_allocation': self.over_allocation,
            'utilisation_percent': self.utilisation_percent,
            'contributing_initiatives': [c.to_dict() for c in self.contributing_initiatives],
        }
