"""Deployment ordering for flow-deployments library."""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Sequence

from .exceptions import DependencyCycleError
from .graph import DependencyGraph, build_dependency_graph, find_cycle
from .types import ContractUnit


@dataclass
class DeploymentPlan:
    """Contracts in the order they must be deployed."""

    units: List[ContractUnit] = field(default_factory=list)

    @property
    def names(self) -> List[str]:
        return [unit.name for unit in self.units]

    def __iter__(self) -> Iterator[ContractUnit]:
        return iter(self.units)

    def __len__(self) -> int:
        return len(self.units)


def plan_deployment(graph: DependencyGraph) -> DeploymentPlan:
    """
    Topologically sort a dependency graph.

    Repeatedly takes the earliest-declared contract whose imports are all
    already placed, so unchanged input always yields the same plan.

    Args:
        graph: Dependency graph of one network

    Returns:
        DeploymentPlan where every contract comes after everything it imports

    Raises:
        DependencyCycleError: If the graph is not acyclic
    """
    remaining: Dict[str, int] = {
        unit.name: len(set(graph.dependencies(unit.name))) for unit in graph.nodes
    }
    placed: List[ContractUnit] = []

    while remaining:
        ready = next((unit for unit in graph.nodes if remaining.get(unit.name) == 0), None)
        if ready is None:
            names = [unit.name for unit in graph.nodes if unit.name in remaining]
            raise DependencyCycleError(find_cycle(names, graph.edges) or names)

        placed.append(ready)
        del remaining[ready.name]
        for dependent in graph.dependents(ready.name):
            if dependent in remaining:
                remaining[dependent] -= 1

    return DeploymentPlan(units=placed)


def deployment_order(units: Sequence[ContractUnit]) -> DeploymentPlan:
    """Build the graph of resolved contracts and plan it in one step."""
    return plan_deployment(build_dependency_graph(units))
