"""Contract dependency graph for flow-deployments library."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Sequence, Tuple

from .exceptions import ContractConflictError, DependencyCycleError, DuplicateContractError
from .types import ContractUnit


class _Mark(Enum):
    UNVISITED = 0
    IN_PROGRESS = 1
    DONE = 2


@dataclass
class DependencyGraph:
    """
    Acyclic import graph of one network's deployment set.

    An edge A -> B means contract A imports contract B.
    """

    nodes: List[ContractUnit] = field(default_factory=list)  # Declaration order
    edges: Dict[str, Tuple[str, ...]] = field(default_factory=dict)

    def node(self, name: str) -> ContractUnit:
        for unit in self.nodes:
            if unit.name == name:
                return unit
        raise KeyError(name)

    def dependencies(self, name: str) -> Tuple[str, ...]:
        return self.edges.get(name, ())

    def dependents(self, name: str) -> List[str]:
        return [unit.name for unit in self.nodes if name in self.edges.get(unit.name, ())]

    def __len__(self) -> int:
        return len(self.nodes)


def find_cycle(nodes: Sequence[str], edges: Dict[str, Tuple[str, ...]]) -> List[str]:
    """
    Depth-first search for an import cycle.

    Args:
        nodes: Node names, traversal starts in this order
        edges: Node name -> names it imports

    Returns:
        The first cycle found as a closed path (first == last), or [] if acyclic
    """
    marks: Dict[str, _Mark] = {name: _Mark.UNVISITED for name in nodes}
    path: List[str] = []

    def visit(name: str) -> List[str]:
        marks[name] = _Mark.IN_PROGRESS
        path.append(name)

        for dependency in edges.get(name, ()):
            mark = marks.get(dependency)
            if mark is _Mark.IN_PROGRESS:
                # Back edge: the cycle is the path suffix starting at dependency
                return path[path.index(dependency):] + [dependency]
            if mark is _Mark.UNVISITED:
                cycle = visit(dependency)
                if cycle:
                    return cycle

        path.pop()
        marks[name] = _Mark.DONE
        return []

    for name in nodes:
        if marks[name] is _Mark.UNVISITED:
            cycle = visit(name)
            if cycle:
                return cycle
    return []


def build_dependency_graph(units: Sequence[ContractUnit]) -> DependencyGraph:
    """
    Build the import graph of resolved contracts.

    Only imports of contracts that are part of the same deployment set
    become edges; aliased imports are already deployed.

    Args:
        units: Resolved contracts targeted at one network

    Returns:
        DependencyGraph

    Raises:
        ContractConflictError: If two accounts deploy a contract of one name
        DuplicateContractError: If one account lists a contract twice
        DependencyCycleError: If imports form a cycle
    """
    names: List[str] = []
    accounts: Dict[str, str] = {}
    for unit in units:
        if unit.name in accounts:
            if accounts[unit.name] == unit.account_name:
                raise DuplicateContractError(unit.name, unit.account_name)
            raise ContractConflictError({unit.name: [accounts[unit.name], unit.account_name]})
        accounts[unit.name] = unit.account_name
        names.append(unit.name)

    edges: Dict[str, Tuple[str, ...]] = {
        unit.name: tuple(dep for dep in unit.dependencies if dep in accounts) for unit in units
    }

    cycle = find_cycle(names, edges)
    if cycle:
        raise DependencyCycleError(cycle)

    return DependencyGraph(nodes=list(units), edges=edges)
