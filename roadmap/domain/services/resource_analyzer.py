"""
Resource Analyzer - Demand vs. capacity per pool per period.

Each requirement's effort is spread evenly across its window (the
initiative's dates, or an explicit requirement window):

    period_demand = effort_required / window_days * overlap_days(window, period)

Periods partition the overall plan span at Month, Quarter or Year
boundaries, clipped to the span. Since the periods are contiguous, the
demand an initiative contributes summed over all periods equals its
effort_required.
"""
import logging
from collections import OrderedDict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Tuple, Union

import pandas as pd

from roadmap.config import RoadmapConfig, get_config
from roadmap.domain.entities import (
    ContributingInitiative,
    Initiative,
    InitiativeResourceRequirement,
    PeriodType,
    ResourceAllocation,
    ResourceConflict,
    ResourcePool,
)

logger = logging.getLogger(__name__)

ALLOCATION_COLUMNS = [
    'pool_id', 'pool_name', 'period_start', 'period_end',
    'demand', 'capacity', 'utilisation', 'status',
]


def next_period_boundary(current: date, period_type: PeriodType) -> date:
    """First day of the period following the one containing current."""
    if period_type == PeriodType.YEAR:
        return date(current.year + 1, 1, 1)
    if period_type == PeriodType.QUARTER:
        month_index = (current.month - 1) // 3 * 3 + 3
    else:
        month_index = current.month
    return date(current.year + month_index // 12, month_index % 12 + 1, 1)


def occupied_range(start: date, end: date) -> Tuple[date, date]:
    """Half-open range for an inclusive date pair; a single-day range keeps its day."""
    return start, max(end, start + timedelta(days=1))


def overlap_days(start1: date, end1: date, start2: date, end2: date) -> int:
    """Days shared by two [start, end) ranges (0 if disjoint)."""
    overlap_start = max(start1, start2)
    overlap_end = min(end1, end2)
    if overlap_start >= overlap_end:
        return 0
    return (overlap_end - overlap_start).days


class ResourceAnalyzer:
    """
    Analyzer for resource pool allocation.

    Only aggregate capacity is considered; there is no substitution between
    pools and no skill matching.
    """

    def __init__(self, config: Optional[RoadmapConfig] = None):
        self.config = config or get_config()

    def _period_type(self, period_type: Union[PeriodType, str, None]) -> PeriodType:
        return PeriodType(period_type or self.config.default_period_type)

    # =========================================================================
    # Periods
    # =========================================================================

    @staticmethod
    def generate_periods(
        start: date,
        end: date,
        period_type: PeriodType = PeriodType.MONTH
    ) -> List[Tuple[date, date]]:
        """
        Partition [start, end) into consecutive periods.

        The first period begins at start and the last is clipped to end.

        Returns:
            List of (period_start, period_end) pairs
        """
        periods = []
        current = start
        while current < end:
            period_end = min(next_period_boundary(current, PeriodType(period_type)), end)
            periods.append((current, period_end))
            current = period_end
        return periods

    @staticmethod
    def _demand_window(
        requirement: InitiativeResourceRequirement,
        initiative: Initiative
    ) -> Optional[Tuple[date, date]]:
        if requirement.has_explicit_window:
            return occupied_range(requirement.period_start, requirement.period_end)
        if initiative.is_scheduled:
            return occupied_range(initiative.start_date, initiative.end_date)
        return None

    def _plan_span(
        self,
        by_id: Dict[str, Initiative],
        requirements: List[InitiativeResourceRequirement]
    ) -> Optional[Tuple[date, date]]:
        """Overall min/max over dated initiatives and explicit windows."""
        ranges = [
            occupied_range(i.start_date, i.end_date) for i in by_id.values() if i.is_scheduled
        ]
        ranges.extend(
            occupied_range(req.period_start, req.period_end)
            for req in requirements
            if req.has_explicit_window and req.initiative_id in by_id
        )
        if not ranges:
            return None
        return min(start for start, _ in ranges), max(end for _, end in ranges)

    def _contributions(
        self,
        pool_id: str,
        period_start: date,
        period_end: date,
        by_id: Dict[str, Initiative],
        requirements: Iterable[InitiativeResourceRequirement]
    ) -> List[Tuple[Initiative, float]]:
        """
        Effort each requirement on the pool draws during one period.

        Effort is spread per day over the requirement's window; a window whose
        start equals its end counts as one day so its effort is not lost.
        """
        contributions = []
        for req in requirements:
            if req.resource_pool_id != pool_id:
                continue
            initiative = by_id.get(req.initiative_id)
            if initiative is None:
                continue
            window = self._demand_window(req, initiative)
            if window is None:
                continue

            shared = overlap_days(window[0], window[1], period_start, period_end)
            if shared > 0:
                duration = (window[1] - window[0]).days
                contributions.append((initiative, req.effort_required / duration * shared))
        return contributions

    # =========================================================================
    # Allocation
    # =========================================================================

    def allocate(
        self,
        initiatives: Iterable[Initiative],
        requirements: Iterable[InitiativeResourceRequirement],
        pools: Iterable[ResourcePool],
        period_type: Union[PeriodType, str, None] = None
    ) -> List[ResourceAllocation]:
        """
        Build the pool x period allocation table.

        Args:
            initiatives: Snapshot of initiatives
            requirements: Resource requirements
            pools: Resource pools
            period_type: Month, Quarter or Year (default from config)

        Returns:
            One allocation per (pool, period), pools in input order
        """
        by_id = {i.id: i for i in initiatives}
        requirements = list(requirements)
        span = self._plan_span(by_id, requirements)
        if span is None:
            return []

        periods = self.generate_periods(span[0], span[1], self._period_type(period_type))
        allocations = []

        for pool in pools:
            for period_start, period_end in periods:
                demand = sum(
                    effort for _, effort in
                    self._contributions(pool.id, period_start, period_end, by_id, requirements)
                )
                capacity = pool.capacity_per_period
                utilisation = demand / capacity * 100 if pool.is_constrained else 0.0

                allocations.append(ResourceAllocation(
                    pool_id=pool.id,
                    pool_name=pool.name,
                    period_start=period_start,
                    period_end=period_end,
                    demand=demand,
                    capacity=capacity,
                    utilisation=utilisation,
                ))

        logger.debug("Allocated %d pool-periods over %s..%s", len(allocations), *span)
        return allocations

    def conflicts(
        self,
        allocations: Iterable[ResourceAllocation],
        initiatives: Iterable[Initiative],
        requirements: Iterable[InitiativeResourceRequirement]
    ) -> List[ResourceConflict]:
        """
        Pool-periods where demand exceeds a positive capacity.

        Contributors are aggregated per initiative and sorted by effort,
        largest first.
        """
        by_id = {i.id: i for i in initiatives}
        requirements = list(requirements)
        conflicts = []

        for allocation in allocations:
            if not allocation.is_over_capacity:
                continue

            shares: Dict[str, ContributingInitiative] = OrderedDict()
            for initiative, effort in self._contributions(
                allocation.pool_id, allocation.period_start, allocation.period_end,
                by_id, requirements
            ):
                if initiative.id in shares:
                    shares[initiative.id].effort += effort
                else:
                    shares[initiative.id] = ContributingInitiative(
                        id=initiative.id, name=initiative.name, effort=effort
                    )

            conflicts.append(ResourceConflict(
                pool_id=allocation.pool_id,
                pool_name=allocation.pool_name,
                period_start=allocation.period_start,
                period_end=allocation.period_end,
                demand=allocation.demand,
                capacity=allocation.capacity,
                over_allocation=allocation.demand - allocation.capacity,
                utilisation_percent=allocation.utilisation,
                contributing_initiatives=sorted(
                    shares.values(), key=lambda c: (-c.effort, c.name)
                ),
            ))

        return conflicts

    def evaluate_hypothetical_move(
        self,
        initiative: Initiative,
        new_start: date,
        new_end: date,
        initiatives: Iterable[Initiative],
        requirements: Iterable[InitiativeResourceRequirement],
        pools: Iterable[ResourcePool],
        period_type: Union[PeriodType, str, None] = None
    ) -> Dict[str, List[ResourceConflict]]:
        """
        Conflicts a move would introduce or resolve.

        The whole table is recomputed with the initiative's dates substituted
        (the initiative is added if it is not in the snapshot yet), and the
        conflict sets are compared by (pool, period start).

        Returns:
            Dict with 'new_conflicts' and 'resolved_conflicts'
        """
        initiatives = list(initiatives)
        requirements = list(requirements)
        pools = list(pools)

        virtual = initiative.with_dates(new_start, new_end)
        modified = [virtual if i.id == initiative.id else i for i in initiatives]
        if not any(i.id == initiative.id for i in initiatives):
            modified.append(virtual)

        before = self.conflicts(
            self.allocate(initiatives, requirements, pools, period_type),
            initiatives, requirements
        )
        after = self.conflicts(
            self.allocate(modified, requirements, pools, period_type),
            modified, requirements
        )

        before_keys = {c.key for c in before}
        after_keys = {c.key for c in after}
        return {
            'new_conflicts': [c for c in after if c.key not in before_keys],
            'resolved_conflicts': [c for c in before if c.key not in after_keys],
        }

    # =========================================================================
    # Summaries
    # =========================================================================

    @staticmethod
    def effort_by_pool(
        initiative_id: str,
        requirements: Iterable[InitiativeResourceRequirement],
        pools: Iterable[ResourcePool]
    ) -> List[Dict]:
        """Total effort an initiative requires from each pool."""
        names = {p.id: p.name for p in pools}
        return [
            {
                'pool_id': req.resource_pool_id,
                'pool_name': names.get(req.resource_pool_id, 'Unknown'),
                'effort': req.effort_required,
            }
            for req in requirements
            if req.initiative_id == initiative_id
        ]

    @staticmethod
    def pool_utilisation_summary(pool_id: str, allocations: Iterable[ResourceAllocation]) -> Dict:
        """Average/max utilisation and over-capacity count for one pool."""
        pool_allocations = [a for a in allocations if a.pool_id == pool_id]
        if not pool_allocations:
            return {
                'avg_utilisation': 0.0,
                'max_utilisation': 0.0,
                'periods_over_capacity': 0,
                'total_periods': 0,
            }

        utilisations = [a.utilisation for a in pool_allocations]
        return {
            'avg_utilisation': sum(utilisations) / len(utilisations),
            'max_utilisation': max(utilisations),
            'periods_over_capacity': sum(1 for u in utilisations if u > 100),
            'total_periods': len(utilisations),
        }

    def utilisation_status(self, utilisation: float) -> str:
        """Band classification ('none', 'normal', 'high', 'over_threshold', 'over_capacity')."""
        return self.config.get_utilisation_status(utilisation)

    def allocation_frame(self, allocations: Iterable[ResourceAllocation]) -> pd.DataFrame:
        """One row per pool-period, with utilisation status."""
        rows = []
        for allocation in allocations:
            row = allocation.to_dict()
            row['period_start'] = allocation.period_start
            row['period_end'] = allocation.period_end
            row['status'] = self.utilisation_status(allocation.utilisation)
            rows.append(row)
        return pd.DataFrame(rows, columns=ALLOCATION_COLUMNS)

    def utilisation_heatmap(self, allocations: Iterable[ResourceAllocation]) -> pd.DataFrame:
        """Pool x period utilisation grid (rows: pool names, columns: period starts)."""
        df = self.allocation_frame(allocations)
        if df.empty:
            return pd.DataFrame()
        return df.pivot_table(
            index='pool_name',
            columns='period_start',
            values='utilisation',
            aggfunc='sum',
            sort=False,
        )
