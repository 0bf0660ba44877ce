"""
Constraint Entities - Calendar, budget and compliance limits on initiatives.

A Deadline constraint reads its effective date as the due date; every
other type treats [effective_date, expiry_date] as its applicability window.
"""
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional


class ConstraintType(str, Enum):
    DEADLINE = "Deadline"
    BUDGET = "Budget"
    RESOURCE = "Resource"
    DEPENDENCY = "Dependency"
    COMPLIANCE = "Compliance"
    OTHER = "Other"


class Hardness(str, Enum):
    """Whether a violation is mandatory (Hard) or advisory (Soft)."""
    HARD = "Hard"
    SOFT = "Soft"


@dataclass(frozen=True)
class Constraint:
    """
    Named limit an initiative can be linked to.

    Attributes:
        id: Opaque identity
        name: Display name (e.g., 'SOC2 Deadline')
        type: Constraint category
        hardness: Hard or Soft
        effective_date: Due date for deadlines, window start otherwise
        expiry_date: Window end
        description: Free text
    """

    id: str
    name: str = ""
    type: ConstraintType = ConstraintType.OTHER
    hardness: Hardness = Hardness.SOFT
    effective_date: Optional[date] = None
    expiry_date: Optional[date] = None
    description: Optional[str] = None

    @property
    def is_deadline(self) -> bool:
        return self.type == ConstraintType.DEADLINE

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'id': self.id,
            'name': self.name,
            'type': self.type.value,
            'hardness': self.hardness.value,
            'effective_date': self.effective_date.isoformat() if self.effective_date else None,
            'expiry_date': self.expiry_date.isoformat() if self.expiry_date else None,
            'description': self.description,
        }


@dataclass(frozen=True)
class InitiativeConstraint:
    """Many-to-many link between an initiative and a constraint."""

    initiative_id: str
    constraint_id: str
    id: Optional[str] = None
