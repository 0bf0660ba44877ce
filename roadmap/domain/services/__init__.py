"""
Domain Services - Dependency, constraint and resource analysis.
"""

from .dependency_analyzer import DependencyAnalyzer
from .constraint_analyzer import ConstraintAnalyzer
from .resource_analyzer import ResourceAnalyzer
from .consequence_facade import (
    ConsequenceFacade,
    ConsequenceContext,
    ConsequenceReport,
    summarize,
)

__all__ = [
    'DependencyAnalyzer',
    'ConstraintAnalyzer',
    'ResourceAnalyzer',
    'ConsequenceFacade',
    'ConsequenceContext',
    'ConsequenceReport',
    'summarize',
]
