from dataclasses import dataclass
import graphlib
from pathlib import Path

from .errors import DuplicateTargetError
from .errors import UnknownPrerequisiteError
from .errors import UnknownTargetError


@dataclass(frozen=True)
class BuildAction:

    context: Path
    tag: str
    arguments: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class Target:

    id: str
    prerequisites: tuple[str, ...]
    action: BuildAction


class TargetRegistry:
    """Table of buildable targets in declaration order.

    Targets must be registered leaves-first: every prerequisite of a target
    has to be registered before the target itself. That ordering is what
    keeps the prerequisite graph acyclic.
    """

    def __init__(self):
        self.__targets: dict[str, Target] = {}

    def register(self, target_id: str, prerequisites, action: BuildAction) -> Target:
        if target_id in self.__targets:
            raise DuplicateTargetError(target_id)
        prerequisites = tuple(prerequisites)
        for prerequisite_id in prerequisites:
            if prerequisite_id not in self.__targets:
                raise UnknownPrerequisiteError(target_id, prerequisite_id)
        target = Target(id=target_id, prerequisites=prerequisites, action=action)
        self.__targets[target_id] = target
        return target

    def resolve(self, target_id: str) -> Target:
        try:
            return self.__targets[target_id]
        except KeyError:
            raise UnknownTargetError(target_id) from None

    def ids(self) -> tuple[str, ...]:
        return tuple(self.__targets.keys())

    def check_acyclic(self):
        """Raise graphlib.CycleError if the prerequisite graph has a cycle."""
        graph = {t.id: t.prerequisites for t in self.__targets.values()}
        graphlib.TopologicalSorter(graph).prepare()

    def __iter__(self):
        return iter(tuple(self.__targets.values()))

    def __len__(self):
        return len(self.__targets)

    def __contains__(self, target_id):
        return target_id in self.__targets

    def __str__(self):
        lines = []
        for target in self:
            requires = ", ".join(target.prerequisites) or "-"
            lines.append(f"{target.id}: {target.action.tag} (requires: {requires})")
        return "\n".join(lines)


def graph_to_dot(registry: TargetRegistry):

    def make_str(target_id: str):
        return registry.resolve(target_id).action.tag.replace('"', r"\"")

    output = ["digraph target_graph {"]
    for target in registry:
        output.append(f'  "{make_str(target.id)}";')
    for target in registry:
        for dep in target.prerequisites:
            output.append(f'  "{make_str(target.id)}" -> "{make_str(dep)}";')
    output.append("}")
    return "\n".join(output)
