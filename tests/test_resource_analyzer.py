"""
Tests for the resource analyzer.

Tests:
- Period generation at Month / Quarter / Year granularity
- Demand distribution and period additivity
- Conflicts and contributing initiatives
- Hypothetical move diffs
- Summaries and DataFrame views
"""
import pytest
from datetime import date

from roadmap.domain.entities import (
    Initiative,
    InitiativeResourceRequirement,
    PeriodType,
    ResourcePool,
)
from roadmap.domain.services import ResourceAnalyzer
from roadmap.domain.services.resource_analyzer import next_period_boundary, overlap_days


@pytest.fixture
def analyzer():
    return ResourceAnalyzer()


@pytest.fixture
def dev_team():
    return ResourcePool(id="dev", name="Dev Team", capacity_per_period=8)


def make(initiative_id, start=None, end=None):
    return Initiative(id=initiative_id, name=initiative_id.upper(), start_date=start, end_date=end)


def req(initiative_id, effort, pool_id="dev", period_start=None, period_end=None):
    return InitiativeResourceRequirement(
        initiative_id=initiative_id,
        resource_pool_id=pool_id,
        effort_required=effort,
        period_start=period_start,
        period_end=period_end,
    )


# =============================================================================
# Periods
# =============================================================================

class TestPeriods:
    """Tests for period generation."""

    def test_monthly_periods_are_clipped(self, analyzer):
        """First period starts at the span start, last ends at the span end."""
        periods = analyzer.generate_periods(date(2025, 1, 15), date(2025, 4, 10), PeriodType.MONTH)

        assert periods == [
            (date(2025, 1, 15), date(2025, 2, 1)),
            (date(2025, 2, 1), date(2025, 3, 1)),
            (date(2025, 3, 1), date(2025, 4, 1)),
            (date(2025, 4, 1), date(2025, 4, 10)),
        ]

    def test_quarterly_periods(self, analyzer):
        """Quarter boundaries fall on Jan/Apr/Jul/Oct 1."""
        periods = analyzer.generate_periods(date(2025, 2, 1), date(2025, 12, 31), PeriodType.QUARTER)

        assert periods == [
            (date(2025, 2, 1), date(2025, 4, 1)),
            (date(2025, 4, 1), date(2025, 7, 1)),
            (date(2025, 7, 1), date(2025, 10, 1)),
            (date(2025, 10, 1), date(2025, 12, 31)),
        ]

    def test_yearly_periods(self, analyzer):
        """Year boundaries fall on Jan 1."""
        periods = analyzer.generate_periods(date(2024, 11, 1), date(2026, 2, 1), PeriodType.YEAR)

        assert periods == [
            (date(2024, 11, 1), date(2025, 1, 1)),
            (date(2025, 1, 1), date(2026, 1, 1)),
            (date(2026, 1, 1), date(2026, 2, 1)),
        ]

    def test_year_rollover(self):
        """December and Q4 roll into the next year."""
        assert next_period_boundary(date(2025, 12, 10), PeriodType.MONTH) == date(2026, 1, 1)
        assert next_period_boundary(date(2025, 11, 30), PeriodType.QUARTER) == date(2026, 1, 1)

    def test_empty_span(self, analyzer):
        """A zero-length span has no periods."""
        assert analyzer.generate_periods(date(2025, 1, 1), date(2025, 1, 1)) == []

    def test_overlap_days(self):
        """Overlap counts shared days and is zero for disjoint ranges."""
        assert overlap_days(date(2025, 1, 1), date(2025, 1, 31), date(2025, 1, 20), date(2025, 2, 10)) == 11
        assert overlap_days(date(2025, 1, 1), date(2025, 1, 31), date(2025, 2, 1), date(2025, 2, 10)) == 0


# =============================================================================
# Allocation
# =============================================================================

class TestAllocation:
    """Tests for the allocation table."""

    def test_over_allocated_month_scenario(self, analyzer, dev_team):
        """Two 5-effort initiatives in the same month overload an 8-capacity pool."""
        initiatives = [
            make("x", date(2025, 1, 1), date(2025, 1, 31)),
            make("y", date(2025, 1, 1), date(2025, 1, 31)),
        ]
        requirements = [req("x", 5), req("y", 5)]

        allocations = analyzer.allocate(initiatives, requirements, [dev_team], PeriodType.MONTH)

        assert len(allocations) == 1
        allocation = allocations[0]
        assert allocation.demand == pytest.approx(10)
        assert allocation.capacity == 8
        assert allocation.utilisation == pytest.approx(125)

        conflicts = analyzer.conflicts(allocations, initiatives, requirements)
        assert len(conflicts) == 1
        assert conflicts[0].over_allocation == pytest.approx(2)
        assert conflicts[0].utilisation_percent == pytest.approx(125)
        assert {c.id for c in conflicts[0].contributing_initiatives} == {"x", "y"}

    def test_period_additivity(self, analyzer, dev_team):
        """Demand summed over all periods reproduces the total effort."""
        initiatives = [make("x", date(2025, 1, 15), date(2025, 4, 10))]

        allocations = analyzer.allocate(initiatives, [req("x", 12)], [dev_team], PeriodType.MONTH)

        assert len(allocations) == 4
        assert sum(a.demand for a in allocations) == pytest.approx(12)
        # January share: 17 of 85 days
        assert allocations[0].demand == pytest.approx(12 / 85 * 17)

    def test_single_day_initiative_keeps_its_effort(self, analyzer, dev_team):
        """start == end occupies one day rather than contributing nothing."""
        alone = analyzer.allocate(
            [make("x", date(2025, 1, 15), date(2025, 1, 15))], [req("x", 3)], [dev_team]
        )

        assert [(a.period_start, a.period_end) for a in alone] == [
            (date(2025, 1, 15), date(2025, 1, 16))
        ]
        assert alone[0].demand == pytest.approx(3)

    def test_single_day_initiative_is_period_additive(self, analyzer, dev_team):
        """A one-day initiative lands in its month and totals stay exact."""
        initiatives = [
            make("x", date(2025, 1, 1), date(2025, 3, 31)),
            make("y", date(2025, 2, 28), date(2025, 2, 28)),
        ]
        requirements = [req("x", 89), req("y", 3)]

        allocations = analyzer.allocate(initiatives, requirements, [dev_team], PeriodType.MONTH)

        by_start = {a.period_start: a.demand for a in allocations}
        assert by_start[date(2025, 2, 1)] == pytest.approx(28 + 3)
        assert sum(by_start.values()) == pytest.approx(89 + 3)

    def test_unconstrained_pool_records_demand_only(self, analyzer):
        """Pools without capacity never register utilisation or conflicts."""
        pool = ResourcePool(id="ops", name="Ops")
        initiatives = [make("x", date(2025, 1, 1), date(2025, 1, 31))]
        requirements = [req("x", 50, pool_id="ops")]

        allocations = analyzer.allocate(initiatives, requirements, [pool], PeriodType.MONTH)

        assert allocations[0].demand == pytest.approx(50)
        assert allocations[0].capacity is None
        assert allocations[0].utilisation == 0
        assert analyzer.conflicts(allocations, initiatives, requirements) == []

    def test_zero_capacity_is_unconstrained(self, analyzer):
        """Zero capacity means 'cannot evaluate', not 'always over'."""
        pool = ResourcePool(id="z", name="Zero", capacity_per_period=0)
        initiatives = [make("x", date(2025, 1, 1), date(2025, 1, 31))]
        requirements = [req("x", 5, pool_id="z")]

        allocations = analyzer.allocate(initiatives, requirements, [pool])

        assert allocations[0].utilisation == 0
        assert analyzer.conflicts(allocations, initiatives, requirements) == []

    def test_undated_and_dangling_requirements_are_ignored(self, analyzer, dev_team):
        """Requirements without a dated initiative add no demand."""
        initiatives = [make("x", date(2025, 1, 1), date(2025, 1, 31)), make("u")]
        requirements = [req("x", 4), req("u", 100), req("ghost", 100)]

        allocations = analyzer.allocate(initiatives, requirements, [dev_team])

        assert [a.demand for a in allocations] == [pytest.approx(4)]

    def test_no_dated_initiatives(self, analyzer, dev_team):
        """Nothing dated means no periods at all."""
        assert analyzer.allocate([make("u")], [req("u", 5)], [dev_team]) == []

    def test_explicit_requirement_window(self, analyzer, dev_team):
        """An explicit window places the effort outside the initiative's dates."""
        initiatives = [make("x", date(2025, 1, 1), date(2025, 1, 31))]
        requirements = [req("x", 6, period_start=date(2025, 3, 1), period_end=date(2025, 3, 31))]

        allocations = analyzer.allocate(initiatives, requirements, [dev_team], PeriodType.MONTH)

        by_start = {a.period_start: a.demand for a in allocations}
        assert by_start[date(2025, 1, 1)] == 0
        assert by_start[date(2025, 3, 1)] == pytest.approx(6)

    def test_default_period_type_from_config(self, analyzer, dev_team):
        """Without an explicit granularity the configured default (Month) applies."""
        initiatives = [make("x", date(2025, 1, 1), date(2025, 3, 31))]

        allocations = analyzer.allocate(initiatives, [req("x", 3)], [dev_team])

        assert [a.period_start for a in allocations] == [
            date(2025, 1, 1), date(2025, 2, 1), date(2025, 3, 1)
        ]

    def test_period_type_accepts_string(self, analyzer, dev_team):
        """Period type can be given by its stored name."""
        initiatives = [make("x", date(2025, 1, 1), date(2025, 12, 31))]

        allocations = analyzer.allocate(initiatives, [req("x", 4)], [dev_team], "Quarter")

        assert len(allocations) == 4


# =============================================================================
# Conflicts
# =============================================================================

class TestConflicts:
    """Tests for conflict details."""

    def test_contributors_sorted_by_effort(self, analyzer, dev_team):
        """The biggest contributor comes first."""
        initiatives = [
            make("small", date(2025, 1, 1), date(2025, 1, 31)),
            make("big", date(2025, 1, 1), date(2025, 1, 31)),
        ]
        requirements = [req("small", 3), req("big", 6)]

        allocations = analyzer.allocate(initiatives, requirements, [dev_team])
        conflict = analyzer.conflicts(allocations, initiatives, requirements)[0]

        assert [c.id for c in conflict.contributing_initiatives] == ["big", "small"]
        assert conflict.contributing_initiatives[0].effort == pytest.approx(6)
        assert conflict.contributing_initiatives[0].name == "BIG"

    def test_multiple_requirements_are_merged_per_initiative(self, analyzer, dev_team):
        """Two requirements from one initiative show as one contributor."""
        initiatives = [make("x", date(2025, 1, 1), date(2025, 1, 31))]
        requirements = [req("x", 5), req("x", 4)]

        allocations = analyzer.allocate(initiatives, requirements, [dev_team])
        conflict = analyzer.conflicts(allocations, initiatives, requirements)[0]

        assert len(conflict.contributing_initiatives) == 1
        assert conflict.contributing_initiatives[0].effort == pytest.approx(9)

    def test_at_capacity_is_not_a_conflict(self, analyzer, dev_team):
        """Demand equal to capacity is fine."""
        initiatives = [make("x", date(2025, 1, 1), date(2025, 1, 17))]
        requirements = [req("x", 8)]

        allocations = analyzer.allocate(initiatives, requirements, [dev_team])

        assert analyzer.conflicts(allocations, initiatives, requirements) == []


# =============================================================================
# Hypothetical Moves
# =============================================================================

class TestHypotheticalMove:
    """Tests for evaluate_hypothetical_move."""

    def test_move_apart_resolves_conflict(self, analyzer, dev_team):
        """Moving one initiative out of the shared month resolves the conflict."""
        x = make("x", date(2025, 1, 1), date(2025, 1, 31))
        y = make("y", date(2025, 1, 1), date(2025, 1, 31))
        requirements = [req("x", 5), req("y", 5)]

        diff = analyzer.evaluate_hypothetical_move(
            y, date(2025, 3, 1), date(2025, 3, 31), [x, y], requirements, [dev_team], PeriodType.MONTH
        )

        assert diff['new_conflicts'] == []
        assert [c.key for c in diff['resolved_conflicts']] == [("dev", date(2025, 1, 1))]

    def test_move_together_introduces_conflict(self, analyzer, dev_team):
        """Moving into an occupied month introduces a conflict."""
        x = make("x", date(2025, 1, 1), date(2025, 1, 31))
        y = make("y", date(2025, 3, 1), date(2025, 3, 31))
        requirements = [req("x", 5), req("y", 5)]

        diff = analyzer.evaluate_hypothetical_move(
            y, date(2025, 1, 1), date(2025, 1, 31), [x, y], requirements, [dev_team], PeriodType.MONTH
        )

        assert [c.key for c in diff['new_conflicts']] == [("dev", date(2025, 1, 1))]
        assert diff['resolved_conflicts'] == []

    def test_input_snapshot_is_not_mutated(self, analyzer, dev_team):
        """The original initiatives keep their dates."""
        x = make("x", date(2025, 1, 1), date(2025, 1, 31))
        initiatives = [x]

        analyzer.evaluate_hypothetical_move(
            x, date(2025, 5, 1), date(2025, 5, 31), initiatives, [req("x", 1)], [dev_team]
        )

        assert initiatives == [x]
        assert x.start_date == date(2025, 1, 1)


# =============================================================================
# Summaries
# =============================================================================

class TestSummaries:
    """Tests for summaries and DataFrame views."""

    @pytest.fixture
    def allocations(self, analyzer, dev_team):
        initiatives = [
            make("x", date(2025, 1, 1), date(2025, 2, 28)),
            make("y", date(2025, 1, 1), date(2025, 1, 31)),
        ]
        requirements = [req("x", 11.8), req("y", 4)]
        return analyzer.allocate(initiatives, requirements, [dev_team], PeriodType.MONTH)

    def test_pool_utilisation_summary(self, analyzer, allocations):
        """Average, max and over-capacity count per pool."""
        summary = analyzer.pool_utilisation_summary("dev", allocations)

        assert summary['total_periods'] == 2
        assert summary['periods_over_capacity'] == 1
        assert summary['max_utilisation'] == pytest.approx(max(a.utilisation for a in allocations))
        assert summary['avg_utilisation'] == pytest.approx(
            sum(a.utilisation for a in allocations) / 2
        )

    def test_pool_utilisation_summary_unknown_pool(self, analyzer, allocations):
        """Unknown pools summarize to zeros."""
        assert analyzer.pool_utilisation_summary("none", allocations)['total_periods'] == 0

    def test_effort_by_pool(self, analyzer, dev_team):
        """Requirement totals per pool, with unknown pools named 'Unknown'."""
        requirements = [req("x", 5), req("x", 2, pool_id="gone"), req("y", 9)]

        assert analyzer.effort_by_pool("x", requirements, [dev_team]) == [
            {'pool_id': 'dev', 'pool_name': 'Dev Team', 'effort': 5},
            {'pool_id': 'gone', 'pool_name': 'Unknown', 'effort': 2},
        ]

    @pytest.mark.parametrize("utilisation,status", [
        (0, "none"),
        (50, "normal"),
        (70, "normal"),
        (85, "high"),
        (95, "over_threshold"),
        (100, "over_threshold"),
        (125, "over_capacity"),
    ])
    def test_utilisation_status(self, analyzer, utilisation, status):
        """Bands follow the configured thresholds."""
        assert analyzer.utilisation_status(utilisation) == status

    def test_allocation_frame(self, analyzer, allocations):
        """One row per allocation with a status column."""
        df = analyzer.allocation_frame(allocations)

        assert len(df) == 2
        assert list(df.columns) == [
            'pool_id', 'pool_name', 'period_start', 'period_end',
            'demand', 'capacity', 'utilisation', 'status',
        ]
        assert df.iloc[0]['status'] == "over_capacity"

    def test_utilisation_heatmap(self, analyzer, allocations):
        """Pools as rows, periods as columns."""
        heatmap = analyzer.utilisation_heatmap(allocations)

        assert list(heatmap.index) == ["Dev Team"]
        assert list(heatmap.columns) == [date(2025, 1, 1), date(2025, 2, 1)]

    def test_empty_views(self, analyzer):
        """No allocations produce empty frames."""
        assert analyzer.allocation_frame([]).empty
        assert analyzer.utilisation_heatmap([]).empty
