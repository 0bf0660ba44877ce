"""
Initiative Dependency Entity - Temporal link between two initiatives.
"""
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Optional

from ..exceptions import ValidationError


class DependencyType(str, Enum):
    """Precedence relation between predecessor and successor."""
    FINISH_TO_START = "FinishToStart"
    START_TO_START = "StartToStart"
    FINISH_TO_FINISH = "FinishToFinish"
    START_TO_FINISH = "StartToFinish"

    @property
    def anchors_successor_end(self) -> bool:
        """True when the rule bounds the successor's end rather than its start."""
        return self in (DependencyType.FINISH_TO_FINISH, DependencyType.START_TO_FINISH)

    @property
    def anchors_predecessor_end(self) -> bool:
        """True when the rule is measured from the predecessor's end."""
        return self in (DependencyType.FINISH_TO_START, DependencyType.FINISH_TO_FINISH)


@dataclass(frozen=True)
class InitiativeDependency:
    """
    Ordered (predecessor, successor) pair with a type and lag.

    Attributes:
        predecessor_id: Initiative that must happen first
        successor_id: Initiative constrained by the predecessor
        dependency_type: FS / SS / FF / SF
        lag_days: Extra days required beyond the base rule (>= 0)
        id: Optional record identity
    """

    predecessor_id: str
    successor_id: str
    dependency_type: DependencyType = DependencyType.FINISH_TO_START
    lag_days: int = 0
    id: Optional[str] = None

    def __post_init__(self):
        if self.lag_days < 0:
            raise ValidationError('lag_days', f"must be non-negative, got {self.lag_days}")

    @property
    def lag(self) -> timedelta:
        return timedelta(days=self.lag_days)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'id': self.id,
            'predecessor_id': self.predecessor_id,
            'successor_id': self.successor_id,
            'dependency_type': self.dependency_type.value,
            'lag_days': self.lag_days,
        }
