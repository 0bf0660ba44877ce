"""
Initiative Entity - A unit of planned roadmap work.

Initiatives are immutable snapshots supplied by the persistence layer.
Scheduling checks only apply to initiatives carrying both dates.
"""
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Optional

from ..exceptions import InvalidDateRangeError


class InitiativeStatus(str, Enum):
    """Delivery status of an initiative."""
    PROPOSED = "Proposed"
    PLANNED = "Planned"
    IN_PROGRESS = "InProgress"
    COMPLETE = "Complete"
    CANCELLED = "Cancelled"  # Excluded from scheduling views


class InitiativeType(str, Enum):
    """Kind of change an initiative delivers."""
    UPGRADE = "Upgrade"
    REPLACEMENT = "Replacement"
    NEW = "New"
    DECOMMISSION = "Decommission"
    MIGRATION = "Migration"


class Priority(str, Enum):
    """MoSCoW priority."""
    MUST = "Must"
    SHOULD = "Should"
    COULD = "Could"
    WONT = "Wont"


@dataclass(frozen=True)
class Initiative:
    """
    Planned piece of roadmap work.

    Attributes:
        id: Opaque identity from the persistence layer
        name: Display name
        start_date: Planned start (calendar date, no time component)
        end_date: Planned end
        status: Delivery status
        type: Kind of change
        priority: MoSCoW priority
        effort_estimate: Estimated effort in person-days
        scenario_id: Scenario the initiative belongs to
    """

    id: str
    name: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: InitiativeStatus = InitiativeStatus.PROPOSED
    type: InitiativeType = InitiativeType.NEW
    priority: Priority = Priority.SHOULD
    effort_estimate: Optional[float] = None
    scenario_id: Optional[str] = None

    def __post_init__(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise InvalidDateRangeError(self.id, self.start_date, self.end_date)

    @property
    def is_scheduled(self) -> bool:
        """True when both dates are present."""
        return self.start_date is not None and self.end_date is not None

    @property
    def is_cancelled(self) -> bool:
        return self.status == InitiativeStatus.CANCELLED

    def duration_days(self) -> Optional[int]:
        """Duration in days, or None for undated initiatives."""
        if not self.is_scheduled:
            return None
        return (self.end_date - self.start_date).days

    def with_dates(self, start_date: date, end_date: date) -> 'Initiative':
        """
        Build a virtual copy carrying proposed dates.

        Raises:
            InvalidDateRangeError: If start_date is after end_date
        """
        return replace(self, start_date=start_date, end_date=end_date)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'id': self.id,
            'name': self.name,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'status': self.status.value,
            'type': self.type.value,
            'priority': self.priority.value,
            'effort_estimate': self.effort_estimate,
            'scenario_id': self.scenario_id,
        }
