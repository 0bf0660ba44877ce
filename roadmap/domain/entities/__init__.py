"""
Domain Entities - Immutable snapshots and analysis findings.
"""

from .initiative import Initiative, InitiativeStatus, InitiativeType, Priority
from .dependency import InitiativeDependency, DependencyType
from .constraint import Constraint, ConstraintType, Hardness, InitiativeConstraint
from .resource import ResourcePool, InitiativeResourceRequirement, CapacityUnit, PeriodType
from .findings import (
    DateShift,
    DependencyViolation,
    ConstraintViolation,
    ResourceAllocation,
    ResourceConflict,
    ContributingInitiative,
)

__all__ = [
    'Initiative', 'InitiativeStatus', 'InitiativeType', 'Priority',
    'InitiativeDependency', 'DependencyType',
    'Constraint', 'ConstraintType', 'Hardness', 'InitiativeConstraint',
    'ResourcePool', 'InitiativeResourceRequirement', 'CapacityUnit', 'PeriodType',
    'DateShift', 'DependencyViolation', 'ConstraintViolation',
    'ResourceAllocation', 'ResourceConflict', 'ContributingInitiative',
]
