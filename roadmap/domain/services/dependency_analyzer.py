"""
Dependency Analyzer - Temporal precedence between initiatives.

Evaluates Finish-to-Start, Start-to-Start, Finish-to-Finish and
Start-to-Finish dependencies (each with a lag in days):

    FinishToStart:   S.start >= P.end   + lag
    StartToStart:    S.start >= P.start + lag
    FinishToFinish:  S.end   >= P.end   + lag
    StartToFinish:   S.end   >= P.start + lag

Also computes the cascade of date shifts a move forces onto successors and
detects cycles. The dependency set is handled as an explicit adjacency map
keyed by initiative id; every walk is bounded by a visited set.
"""
import logging
from collections import defaultdict, deque
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from roadmap.domain.entities import (
    DateShift,
    DependencyType,
    DependencyViolation,
    Initiative,
    InitiativeDependency,
)

logger = logging.getLogger(__name__)


_VIOLATION_MESSAGES = {
    DependencyType.FINISH_TO_START: '"{successor}" starts before "{predecessor}" finishes',
    DependencyType.START_TO_START: '"{successor}" starts before "{predecessor}" starts',
    DependencyType.FINISH_TO_FINISH: '"{successor}" finishes before "{predecessor}" finishes',
    DependencyType.START_TO_FINISH: '"{successor}" finishes before "{predecessor}" starts',
}


def index_initiatives(initiatives: Iterable[Initiative]) -> Dict[str, Initiative]:
    """Map initiative id -> initiative."""
    return {initiative.id: initiative for initiative in initiatives}


def strongly_connected_components(
    nodes: Iterable[str],
    successors: Dict[str, List[str]]
) -> List[List[str]]:
    """
    Tarjan's algorithm, iterative.

    Args:
        nodes: Nodes to visit, in the order roots are tried
        successors: Adjacency map restricted to those nodes

    Returns:
        Components in topological order (a component comes before every
        component it has an edge into)
    """
    index: Dict[str, int] = {}
    lowlink: Dict[str, int] = {}
    stack: List[str] = []
    on_stack = set()
    components: List[List[str]] = []

    for root in nodes:
        if root in index:
            continue

        index[root] = lowlink[root] = len(index)
        stack.append(root)
        on_stack.add(root)
        work = [(root, iter(successors.get(root, [])))]

        while work:
            node, neighbors = work[-1]
            descended = False
            for neighbor in neighbors:
                if neighbor not in index:
                    index[neighbor] = lowlink[neighbor] = len(index)
                    stack.append(neighbor)
                    on_stack.add(neighbor)
                    work.append((neighbor, iter(successors.get(neighbor, []))))
                    descended = True
                    break
                if neighbor in on_stack:
                    lowlink[node] = min(lowlink[node], index[neighbor])
            if descended:
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[node])

            if lowlink[node] == index[node]:
                component = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node:
                        break
                components.append(component)

    # Tarjan emits sinks first
    components.reverse()
    return components


class DependencyAnalyzer:
    """
    Analyzer for initiative dependencies.

    Stateless: every method takes the snapshot it works on, so a single
    instance can be shared between threads.
    """

    # =========================================================================
    # Graph Construction
    # =========================================================================

    @staticmethod
    def build_graph(
        dependencies: Iterable[InitiativeDependency]
    ) -> Dict[str, List[InitiativeDependency]]:
        """
        Build the outgoing adjacency map.

        Args:
            dependencies: Dependency records

        Returns:
            Dict of predecessor id -> dependencies leaving it, in input order
        """
        graph: Dict[str, List[InitiativeDependency]] = defaultdict(list)
        for dep in dependencies:
            graph[dep.predecessor_id].append(dep)
        return dict(graph)

    # =========================================================================
    # Rule Evaluation
    # =========================================================================

    @staticmethod
    def required_start(
        successor: Initiative,
        predecessor_start: date,
        predecessor_end: date,
        dependency: InitiativeDependency
    ) -> date:
        """
        Earliest successor start that satisfies a dependency.

        End-anchored rules (FF, SF) are converted to a start by keeping the
        successor's current duration.
        """
        dep_type = dependency.dependency_type
        anchor = predecessor_end if dep_type.anchors_predecessor_end else predecessor_start
        bound = anchor + dependency.lag
        if dep_type.anchors_successor_end:
            return bound - (successor.end_date - successor.start_date)
        return bound

    def is_satisfied(
        self,
        successor: Initiative,
        predecessor: Initiative,
        dependency: InitiativeDependency
    ) -> bool:
        """
        Check a single dependency.

        Undated initiatives satisfy every dependency vacuously.
        """
        if not successor.is_scheduled or not predecessor.is_scheduled:
            return True

        dep_type = dependency.dependency_type
        anchor = predecessor.end_date if dep_type.anchors_predecessor_end else predecessor.start_date
        subject = successor.end_date if dep_type.anchors_successor_end else successor.start_date
        return subject >= anchor + dependency.lag

    def suggested_fix(
        self,
        successor: Initiative,
        predecessor: Initiative,
        dependency: InitiativeDependency
    ) -> Optional[DateShift]:
        """
        Tightest successor dates satisfying the rule, duration preserved.

        Returns None when either initiative is undated.
        """
        if not successor.is_scheduled or not predecessor.is_scheduled:
            return None

        new_start = self.required_start(
            successor, predecessor.start_date, predecessor.end_date, dependency
        )
        return DateShift(new_start, new_start + (successor.end_date - successor.start_date))

    # =========================================================================
    # Violations
    # =========================================================================

    def violations_for(
        self,
        initiative: Initiative,
        all_initiatives: Iterable[Initiative],
        all_dependencies: Iterable[InitiativeDependency]
    ) -> List[DependencyViolation]:
        """
        Violations of dependencies where the initiative is the successor.

        Dependencies naming an unknown predecessor are skipped.
        """
        by_id = index_initiatives(all_initiatives)
        violations = []

        for dep in all_dependencies:
            if dep.successor_id != initiative.id:
                continue
            predecessor = by_id.get(dep.predecessor_id)
            if predecessor is None:
                continue
            if self.is_satisfied(initiative, predecessor, dep):
                continue

            violations.append(DependencyViolation(
                initiative_id=initiative.id,
                initiative_name=initiative.name,
                depends_on_id=predecessor.id,
                depends_on_name=predecessor.name,
                dependency_type=dep.dependency_type,
                message=_VIOLATION_MESSAGES[dep.dependency_type].format(
                    successor=initiative.name, predecessor=predecessor.name
                ),
                suggested_fix=self.suggested_fix(initiative, predecessor, dep),
                lag_days=dep.lag_days,
            ))

        return violations

    def all_violations(
        self,
        initiatives: Iterable[Initiative],
        dependencies: Iterable[InitiativeDependency]
    ) -> List[DependencyViolation]:
        """Violations across every initiative in the snapshot."""
        initiatives = list(initiatives)
        dependencies = list(dependencies)
        violations = []
        for initiative in initiatives:
            violations.extend(self.violations_for(initiative, initiatives, dependencies))

        logger.debug("Found %d dependency violations across %d initiatives",
                     len(violations), len(initiatives))
        return violations

    # =========================================================================
    # Cascade
    # =========================================================================

    def cascade(
        self,
        initiative_id: str,
        new_start: date,
        new_end: date,
        all_initiatives: Iterable[Initiative],
        all_dependencies: Iterable[InitiativeDependency]
    ) -> Dict[str, DateShift]:
        """
        Date shifts forced onto successors when an initiative moves.

        The successors reachable from the moved initiative are condensed
        into strongly connected components, and the components are processed
        in topological order. Each successor takes the latest start demanded
        by any moved or shifted predecessor and shifts (keeping its duration)
        only if that start is later than its current one. Members of a
        cyclic component are processed once each, in discovery order,
        ignoring predecessors in the same component not yet processed. The moved initiative is never shifted and is not part of
        the result.

        Args:
            initiative_id: Moved initiative
            new_start: Its proposed start
            new_end: Its proposed end
            all_initiatives: Snapshot of initiatives
            all_dependencies: Snapshot of dependencies

        Returns:
            Dict of affected initiative id -> required new dates
        """
        by_id = index_initiatives(all_initiatives)
        graph = self.build_graph(all_dependencies)

        # Reachable successors, in breadth-first discovery order
        visited = {initiative_id}
        order: List[str] = []
        queue = deque([initiative_id])
        while queue:
            node = queue.popleft()
            for dep in graph.get(node, []):
                if dep.successor_id not in visited:
                    visited.add(dep.successor_id)
                    order.append(dep.successor_id)
                    queue.append(dep.successor_id)

        reachable = set(order)
        position = {node: i for i, node in enumerate(order)}
        successors = {
            node: [d.successor_id for d in graph.get(node, []) if d.successor_id in reachable]
            for node in order
        }
        incoming: Dict[str, List[InitiativeDependency]] = defaultdict(list)
        for node in visited:
            for dep in graph.get(node, []):
                if dep.successor_id in reachable:
                    incoming[dep.successor_id].append(dep)

        effective: Dict[str, DateShift] = {initiative_id: DateShift(new_start, new_end)}
        changes: Dict[str, DateShift] = {}

        for component in strongly_connected_components(order, successors):
            members = sorted(component, key=position.get)
            if len(members) > 1 or members[0] in successors[members[0]]:
                logger.warning("Cascade from '%s' passes through dependency cycle %s",
                               initiative_id, members)

            for node in members:
                shift = self._shift_for(by_id.get(node), incoming[node], effective)
                if shift is not None:
                    changes[node] = shift
                    effective[node] = shift

        logger.debug("Moving '%s' cascades to %d initiatives", initiative_id, len(changes))
        return changes

    def _shift_for(
        self,
        successor: Optional[Initiative],
        dependencies: List[InitiativeDependency],
        effective: Dict[str, DateShift]
    ) -> Optional[DateShift]:
        """Most constraining shift demanded by already-moved predecessors."""
        if successor is None or not successor.is_scheduled:
            return None

        required: Optional[date] = None
        for dep in dependencies:
            dates = effective.get(dep.predecessor_id)
            if dates is None:
                continue
            start = self.required_start(successor, dates.start_date, dates.end_date, dep)
            if required is None or start > required:
                required = start

        if required is None or required <= successor.start_date:
            return None
        return DateShift(required, required + (successor.end_date - successor.start_date))

    # =========================================================================
    # Valid Range
    # =========================================================================

    def valid_date_range(
        self,
        initiative_id: str,
        all_initiatives: Iterable[Initiative],
        all_dependencies: Iterable[InitiativeDependency]
    ) -> Tuple[Optional[date], Optional[date]]:
        """
        Date window allowed by incoming dependencies.

        Only Finish-to-Start and Start-to-Start bound the start; no rule
        bounds the end, so latest_end is always None.

        Returns:
            (earliest_start, latest_end)
        """
        by_id = index_initiatives(all_initiatives)
        earliest_start: Optional[date] = None

        for dep in all_dependencies:
            if dep.successor_id != initiative_id or dep.dependency_type.anchors_successor_end:
                continue
            predecessor = by_id.get(dep.predecessor_id)
            if predecessor is None or not predecessor.is_scheduled:
                continue

            if dep.dependency_type.anchors_predecessor_end:
                constrained = predecessor.end_date + dep.lag
            else:
                constrained = predecessor.start_date + dep.lag

            if earliest_start is None or constrained > earliest_start:
                earliest_start = constrained

        return earliest_start, None

    # =========================================================================
    # Cycle Detection
    # =========================================================================

    def detect_cycles(self, all_dependencies: Iterable[InitiativeDependency]) -> List[List[str]]:
        """
        Find cycles with an iterative depth-first search.

        Each cycle is reported from the repeated node back to itself,
        inclusive (e.g., ['A', 'B', 'C', 'A']).
        """
        adjacency: Dict[str, List[str]] = {}
        for dep in all_dependencies:
            adjacency.setdefault(dep.predecessor_id, [])
            adjacency.setdefault(dep.successor_id, [])
            if dep.successor_id not in adjacency[dep.predecessor_id]:
                adjacency[dep.predecessor_id].append(dep.successor_id)

        cycles: List[List[str]] = []
        visited = set()

        for root in adjacency:
            if root in visited:
                continue

            visited.add(root)
            path = [root]
            on_path = {root}
            stack = [iter(adjacency[root])]

            while stack:
                descended = False
                for neighbor in stack[-1]:
                    if neighbor in on_path:
                        cycles.append(path[path.index(neighbor):] + [neighbor])
                    elif neighbor not in visited:
                        visited.add(neighbor)
                        path.append(neighbor)
                        on_path.add(neighbor)
                        stack.append(iter(adjacency[neighbor]))
                        descended = True
                        break
                if not descended:
                    stack.pop()
                    on_path.discard(path.pop())

        if cycles:
            logger.debug("Detected %d dependency cycles", len(cycles))
        return cycles
