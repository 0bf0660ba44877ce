"""
Domain Layer - Consequence engine for roadmap schedules.

This module contains:
- entities/: Immutable snapshots (Initiative, InitiativeDependency, Constraint,
  ResourcePool, ...) and analysis findings
- services/: Analyzers (DependencyAnalyzer, ConstraintAnalyzer,
  ResourceAnalyzer) and the ConsequenceFacade
"""

from .entities import (
    Initiative, InitiativeStatus, InitiativeType, Priority,
    InitiativeDependency, DependencyType,
    Constraint, ConstraintType, Hardness, InitiativeConstraint,
    ResourcePool, InitiativeResourceRequirement, CapacityUnit, PeriodType,
    DateShift, DependencyViolation, ConstraintViolation,
    ResourceAllocation, ResourceConflict, ContributingInitiative,
)

__all__ = [
    'Initiative', 'InitiativeStatus', 'InitiativeType', 'Priority',
    'InitiativeDependency', 'DependencyType',
    'Constraint', 'ConstraintType', 'Hardness', 'InitiativeConstraint',
    'ResourcePool', 'InitiativeResourceRequirement', 'CapacityUnit', 'PeriodType',
    'DateShift', 'DependencyViolation', 'ConstraintViolation',
    'ResourceAllocation', 'ResourceConflict', 'ContributingInitiative',
]
