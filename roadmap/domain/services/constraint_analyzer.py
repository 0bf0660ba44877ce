"""
Constraint Analyzer - Validates initiative dates against linked constraints.

Rules (only for linked constraints, only for fully dated initiatives):
- Deadline with an effective date D: violated if end > D
- Any other type: violated if the initiative falls outside
  [effective_date, expiry_date], i.e. start > expiry or end < effective
"""
import logging
from datetime import date
from typing import Dict, Iterable, List, Optional

from roadmap.config import RoadmapConfig, get_config
from roadmap.domain.entities import (
    Constraint,
    ConstraintViolation,
    Hardness,
    Initiative,
    InitiativeConstraint,
)
from roadmap.domain.exceptions import InvariantViolationError

logger = logging.getLogger(__name__)


class ConstraintAnalyzer:
    """
    Analyzer for deadline, budget and compliance constraints.

    Hard and Soft constraints are evaluated identically; hardness is carried
    on each violation for the caller to style or gate on.
    """

    def __init__(self, config: Optional[RoadmapConfig] = None):
        self.config = config or get_config()

    def _violation(
        self,
        initiative: Initiative,
        constraint: Constraint,
        message: str
    ) -> ConstraintViolation:
        return ConstraintViolation(
            constraint_id=constraint.id,
            constraint_name=constraint.name,
            constraint_type=constraint.type,
            initiative_id=initiative.id,
            initiative_name=initiative.name,
            hardness=constraint.hardness,
            message=message,
        )

    def check(
        self,
        initiative: Initiative,
        constraint: Constraint
    ) -> Optional[ConstraintViolation]:
        """
        Evaluate one constraint against one initiative.

        Returns:
            The violation, or None when satisfied or not applicable
        """
        if not initiative.is_scheduled:
            return None

        fmt = self.config.format_date

        if constraint.is_deadline:
            deadline = constraint.effective_date
            if deadline and initiative.end_date > deadline:
                return self._violation(
                    initiative, constraint,
                    f'"{initiative.name}" ends after deadline "{constraint.name}" ({fmt(deadline)})'
                )
            return None

        if constraint.expiry_date and initiative.start_date > constraint.expiry_date:
            return self._violation(
                initiative, constraint,
                f'"{initiative.name}" starts after "{constraint.name}" expires '
                f'({fmt(constraint.expiry_date)})'
            )

        if constraint.effective_date and initiative.end_date < constraint.effective_date:
            return self._violation(
                initiative, constraint,
                f'"{initiative.name}" ends before "{constraint.name}" is effective '
                f'({fmt(constraint.effective_date)})'
            )

        return None

    def linked_constraints(
        self,
        initiative_id: str,
        constraints: Iterable[Constraint],
        links: Iterable[InitiativeConstraint]
    ) -> List[Constraint]:
        """Constraints linked to an initiative; dangling links are ignored."""
        linked_ids = {link.constraint_id for link in links if link.initiative_id == initiative_id}
        return [c for c in constraints if c.id in linked_ids]

    def violations_for(
        self,
        initiative: Initiative,
        constraints: Iterable[Constraint],
        links: Iterable[InitiativeConstraint]
    ) -> List[ConstraintViolation]:
        """Violations of every constraint linked to the initiative."""
        violations = []
        for constraint in self.linked_constraints(initiative.id, constraints, links):
            violation = self.check(initiative, constraint)
            if violation:
                violations.append(violation)
        return violations

    def evaluate_hypothetical(
        self,
        initiative: Initiative,
        new_start: date,
        new_end: date,
        constraints: Iterable[Constraint],
        links: Iterable[InitiativeConstraint]
    ) -> List[ConstraintViolation]:
        """Violations the initiative would have with the proposed dates."""
        return self.violations_for(initiative.with_dates(new_start, new_end), constraints, links)

    def all_violations(
        self,
        initiatives: Iterable[Initiative],
        constraints: Iterable[Constraint],
        links: Iterable[InitiativeConstraint]
    ) -> List[ConstraintViolation]:
        """Violations across every initiative in the snapshot."""
        constraints = list(constraints)
        links = list(links)
        violations = []
        for initiative in initiatives:
            violations.extend(self.violations_for(initiative, constraints, links))

        logger.debug("Found %d constraint violations", len(violations))
        return violations

    def violated_constraints(
        self,
        start: date,
        end: date,
        constraints: Iterable[Constraint]
    ) -> List[Constraint]:
        """
        Constraints a bare date range would break, regardless of links.

        A deadline is broken when end passes it; any other constraint when
        start is after its expiry.
        """
        violated = []
        for constraint in constraints:
            if constraint.is_deadline:
                if constraint.effective_date and end > constraint.effective_date:
                    violated.append(constraint)
            elif constraint.expiry_date and start > constraint.expiry_date:
                violated.append(constraint)
        return violated

    def latest_valid_end(
        self,
        initiative: Initiative,
        constraints: Iterable[Constraint],
        links: Iterable[InitiativeConstraint]
    ) -> Optional[date]:
        """Earliest linked deadline, or None when no deadline applies."""
        deadlines = [
            c.effective_date
            for c in self.linked_constraints(initiative.id, constraints, links)
            if c.is_deadline and c.effective_date
        ]
        return min(deadlines) if deadlines else None

    @staticmethod
    def categorize(violations: Iterable[ConstraintViolation]) -> Dict[str, List[ConstraintViolation]]:
        """
        Split violations by hardness.

        Returns:
            Dict with 'hard' and 'soft' lists

        Raises:
            InvariantViolationError: If a violation carries no known hardness
        """
        violations = list(violations)
        hard = [v for v in violations if v.hardness == Hardness.HARD]
        soft = [v for v in violations if v.hardness == Hardness.SOFT]

        if len(hard) + len(soft) != len(violations):
            raise InvariantViolationError(
                "hardness_partition",
                expected=str(len(violations)),
                actual=str(len(hard) + len(soft)),
            )
        return {'hard': hard, 'soft': soft}
