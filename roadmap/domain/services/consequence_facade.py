"""
Consequence Facade - Single entry point combining all analyzers.

Evaluates either the current state of a plan or a hypothetical move of one
initiative, and assembles dependency violations, constraint violations,
resource conflicts and cascading shifts into one report.

The facade holds no plan state: every call receives a ConsequenceContext
snapshot pre-loaded by the caller.
"""
import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Dict, List, Optional, Sequence, Union

from roadmap.config import RoadmapConfig, get_config
from roadmap.domain.entities import (
    Constraint,
    ConstraintViolation,
    DateShift,
    DependencyViolation,
    Initiative,
    InitiativeConstraint,
    InitiativeDependency,
    InitiativeResourceRequirement,
    PeriodType,
    ResourceConflict,
    ResourcePool,
)
from roadmap.domain.exceptions import InitiativeNotFoundError
from .dependency_analyzer import DependencyAnalyzer
from .constraint_analyzer import ConstraintAnalyzer
from .resource_analyzer import ResourceAnalyzer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConsequenceContext:
    """
    Read-only snapshot of the collections the engine analyzes.

    Attributes:
        initiatives: Initiatives in the scenario being planned
        dependencies: Initiative dependencies
        constraints: Constraint definitions
        constraint_links: Initiative <-> constraint links
        requirements: Resource requirements
        pools: Resource pools
        period_type: Allocation granularity (default from config)
    """

    initiatives: Sequence[Initiative] = ()
    dependencies: Sequence[InitiativeDependency] = ()
    constraints: Sequence[Constraint] = ()
    constraint_links: Sequence[InitiativeConstraint] = ()
    requirements: Sequence[InitiativeResourceRequirement] = ()
    pools: Sequence[ResourcePool] = ()
    period_type: Optional[Union[PeriodType, str]] = None

    def get_initiative(self, initiative_id: str) -> Initiative:
        """
        Look up an initiative by id.

        Raises:
            InitiativeNotFoundError: If the id is not in the snapshot
        """
        for initiative in self.initiatives:
            if initiative.id == initiative_id:
                return initiative
        raise InitiativeNotFoundError(initiative_id)

    def without_cancelled(self) -> 'ConsequenceContext':
        """Copy of the context with Cancelled initiatives removed."""
        return replace(
            self,
            initiatives=tuple(i for i in self.initiatives if not i.is_cancelled),
        )


@dataclass
class ConsequenceReport:
    """
    Combined outcome of an evaluation.

    cascading_changes and resolved_conflicts are informational and do not
    count towards total_issue_count.
    """

    dependency_violations: List[DependencyViolation] = field(default_factory=list)
    constraint_violations: List[ConstraintViolation] = field(default_factory=list)
    resource_conflicts: List[ResourceConflict] = field(default_factory=list)
    cascading_changes: Dict[str, DateShift] = field(default_factory=dict)
    resolved_conflicts: List[ResourceConflict] = field(default_factory=list)
    has_hard_violations: bool = False
    has_soft_violations: bool = False
    has_resource_conflicts: bool = False
    total_issue_count: int = 0
    summary: str = "No issues detected"

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'dependency_violations': [v.to_dict() for v in self.dependency_violations],
            'constraint_violations': [v.to_dict() for v in self.constraint_violations],
            'resource_conflicts': [c.to_dict() for c in self.resource_conflicts],
            'resolved_conflicts': [c.to_dict() for c in self.resolved_conflicts],
            'cascading_changes': {
                initiative_id: shift.to_dict()
                for initiative_id, shift in self.cascading_changes.items()
            },
            'has_hard_violations': self.has_hard_violations,
            'has_soft_violations': self.has_soft_violations,
            'has_resource_conflicts': self.has_resource_conflicts,
            'total_issue_count': self.total_issue_count,
            'summary': self.summary,
        }


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count != 1 else ''}"


def summarize(
    dependency_count: int,
    hard_count: int,
    soft_count: int,
    resource_count: int,
    cascade_count: int
) -> str:
    """
    Human-readable sentence listing non-zero categories.

    Example: '2 dependency violations, 1 hard constraint violation,
    3 initiatives would cascade'
    """
    parts = []
    if dependency_count:
        parts.append(_plural(dependency_count, "dependency violation"))
    if hard_count:
        parts.append(_plural(hard_count, "hard constraint violation"))
    if soft_count:
        parts.append(_plural(soft_count, "soft constraint violation"))
    if resource_count:
        parts.append(_plural(resource_count, "resource conflict"))
    if cascade_count:
        parts.append(f"{_plural(cascade_count, 'initiative')} would cascade")

    return ", ".join(parts) if parts else "No issues detected"


class ConsequenceFacade:
    """
    Facade over the dependency, constraint and resource analyzers.

    Stateless and safe to share between threads, provided callers do not
    mutate a context while a call is in flight.
    """

    def __init__(
        self,
        dependency_analyzer: Optional[DependencyAnalyzer] = None,
        constraint_analyzer: Optional[ConstraintAnalyzer] = None,
        resource_analyzer: Optional[ResourceAnalyzer] = None,
        config: Optional[RoadmapConfig] = None
    ):
        self.config = config or get_config()
        self.dependencies = dependency_analyzer or DependencyAnalyzer()
        self.constraints = constraint_analyzer or ConstraintAnalyzer(self.config)
        self.resources = resource_analyzer or ResourceAnalyzer(self.config)

    def _prepare(self, context: ConsequenceContext) -> ConsequenceContext:
        if self.config.exclude_cancelled:
            return context.without_cancelled()
        return context

    def _build_report(
        self,
        dependency_violations: List[DependencyViolation],
        constraint_violations: List[ConstraintViolation],
        resource_conflicts: List[ResourceConflict],
        cascading_changes: Dict[str, DateShift],
        resolved_conflicts: Optional[List[ResourceConflict]] = None
    ) -> ConsequenceReport:
        categorized = self.constraints.categorize(constraint_violations)
        hard, soft = categorized['hard'], categorized['soft']

        return ConsequenceReport(
            dependency_violations=dependency_violations,
            constraint_violations=constraint_violations,
            resource_conflicts=resource_conflicts,
            cascading_changes=cascading_changes,
            resolved_conflicts=resolved_conflicts or [],
            has_hard_violations=bool(hard),
            has_soft_violations=bool(soft),
            has_resource_conflicts=bool(resource_conflicts),
            total_issue_count=(
                len(dependency_violations)
                + len(constraint_violations)
                + len(resource_conflicts)
            ),
            summary=summarize(
                len(dependency_violations),
                len(hard),
                len(soft),
                len(resource_conflicts),
                len(cascading_changes),
            ),
        )

    # =========================================================================
    # Evaluation
    # =========================================================================

    def evaluate_change(
        self,
        initiative: Initiative,
        new_start: date,
        new_end: date,
        context: ConsequenceContext
    ) -> ConsequenceReport:
        """
        Evaluate moving one initiative to new dates.

        Args:
            initiative: Initiative being moved (current snapshot)
            new_start: Proposed start
            new_end: Proposed end
            context: Plan snapshot

        Returns:
            Report of violations at the new dates, conflicts the move
            introduces, and the successors that would have to shift; empty
            for a Cancelled initiative when cancelled initiatives are excluded

        Raises:
            InvalidDateRangeError: If new_start is after new_end
        """
        virtual = initiative.with_dates(new_start, new_end)
        if initiative.is_cancelled and self.config.exclude_cancelled:
            logger.info("Skipped move of cancelled initiative '%s'", initiative.id)
            return ConsequenceReport()

        ctx = self._prepare(context)
        dependency_violations = self.dependencies.violations_for(
            virtual, ctx.initiatives, ctx.dependencies
        )
        constraint_violations = self.constraints.evaluate_hypothetical(
            initiative, new_start, new_end, ctx.constraints, ctx.constraint_links
        )
        resource_diff = self.resources.evaluate_hypothetical_move(
            initiative, new_start, new_end,
            ctx.initiatives, ctx.requirements, ctx.pools, ctx.period_type
        )
        cascading_changes = self.dependencies.cascade(
            initiative.id, new_start, new_end, ctx.initiatives, ctx.dependencies
        )

        report = self._build_report(
            dependency_violations,
            constraint_violations,
            resource_diff['new_conflicts'],
            cascading_changes,
            resource_diff['resolved_conflicts'],
        )
        logger.info("Evaluated move of '%s' to %s..%s: %s",
                    initiative.id, new_start, new_end, report.summary)
        return report

    def evaluate_current_state(self, context: ConsequenceContext) -> ConsequenceReport:
        """Evaluate every initiative as currently scheduled (no cascade)."""
        ctx = self._prepare(context)

        dependency_violations = self.dependencies.all_violations(
            ctx.initiatives, ctx.dependencies
        )
        constraint_violations = self.constraints.all_violations(
            ctx.initiatives, ctx.constraints, ctx.constraint_links
        )
        allocations = self.resources.allocate(
            ctx.initiatives, ctx.requirements, ctx.pools, ctx.period_type
        )
        resource_conflicts = self.resources.conflicts(
            allocations, ctx.initiatives, ctx.requirements
        )

        report = self._build_report(
            dependency_violations, constraint_violations, resource_conflicts, {}
        )
        logger.info("Evaluated current state of %d initiatives: %s",
                    len(ctx.initiatives), report.summary)
        return report

    def violations_for_initiative(
        self,
        initiative: Initiative,
        context: ConsequenceContext
    ) -> Dict[str, list]:
        """
        Issues concerning one initiative as currently scheduled.

        Resource conflicts are those the initiative contributes to.

        Returns:
            Dict with 'dependencies', 'constraints' and 'resources' lists
        """
        ctx = self._prepare(context)

        allocations = self.resources.allocate(
            ctx.initiatives, ctx.requirements, ctx.pools, ctx.period_type
        )
        conflicts = self.resources.conflicts(allocations, ctx.initiatives, ctx.requirements)

        return {
            'dependencies': self.dependencies.violations_for(
                initiative, ctx.initiatives, ctx.dependencies
            ),
            'constraints': self.constraints.violations_for(
                initiative, ctx.constraints, ctx.constraint_links
            ),
            'resources': [c for c in conflicts if c.involves(initiative.id)],
        }

    def what_would_move(
        self,
        initiative_id: str,
        new_start: date,
        new_end: date,
        context: ConsequenceContext
    ) -> Dict[str, DateShift]:
        """
        Successors that would have to shift if an initiative moved.

        Raises:
            InitiativeNotFoundError: If initiative_id is not in the context
        """
        ctx = self._prepare(context)
        ctx.get_initiative(initiative_id)
        return self.dependencies.cascade(
            initiative_id, new_start, new_end, ctx.initiatives, ctx.dependencies
        )

    def check_cycles(self, dependencies: Sequence[InitiativeDependency]) -> Dict:
        """
        Advisory cycle check.

        Returns:
            Dict with 'has_cycles' and 'cycles'
        """
        cycles = self.dependencies.detect_cycles(dependencies)
        if cycles:
            logger.warning("Dependency graph contains %d cycles", len(cycles))
        return {'has_cycles': bool(cycles), 'cycles': cycles}

    # =========================================================================
    # Presentation Helpers
    # =========================================================================

    @staticmethod
    def severity_level(report: ConsequenceReport) -> str:
        """
        Overall severity for display.

        Returns:
            'error' for hard violations, 'warning' for any other issue,
            'none' otherwise
        """
        if report.has_hard_violations:
            return "error"
        if (report.has_soft_violations
                or report.dependency_violations
                or report.has_resource_conflicts):
            return "warning"
        return "none"

    @staticmethod
    def group_by_initiative(report: ConsequenceReport) -> Dict[str, Dict[str, list]]:
        """
        Bucket a report's issues per initiative.

        A resource conflict is attributed to every contributing initiative.
        """
        grouped: Dict[str, Dict[str, list]] = {}

        def bucket(initiative_id: str) -> Dict[str, list]:
            return grouped.setdefault(
                initiative_id, {'dependencies': [], 'constraints': [], 'resources': []}
            )

        for violation in report.dependency_violations:
            bucket(violation.initiative_id)['dependencies'].append(violation)
        for violation in report.constraint_violations:
            bucket(violation.initiative_id)['constraints'].append(violation)
        for conflict in report.resource_conflicts:
            for contributor in conflict.contributing_initiatives:
                bucket(contributor.id)['resources'].append(conflict)

        return grouped
