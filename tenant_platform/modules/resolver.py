"""
Dependency Resolver

Graph algorithms over the module registry: enablement checks, cycle
detection, transitive dependency trees, topological load order and
safe-disable checks.

Every operation is pure. The registry is only read, and the set of enabled
modules is always passed in explicitly. Only hard dependencies participate in
cycle detection, load order and disable checks; optional dependencies are
reported as diagnostics.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .exceptions import ModuleNotFound
from .registry import ModuleRegistry

logger = logging.getLogger(__name__)


@dataclass
class DependencyResolution:
    """Outcome of asking whether a module can be enabled"""
    module_name: str
    can_enable: bool
    missing_dependencies: List[str] = field(default_factory=list)
    missing_optional_dependencies: List[str] = field(default_factory=list)
    message: str = ''


@dataclass
class CircularDependencyReport:
    has_circular: bool
    circular_path: List[str] = field(default_factory=list)


@dataclass
class DependencyValidation:
    module_name: str
    valid: bool
    missing_from_registry: List[str] = field(default_factory=list)
    circular_dependency: Optional[List[str]] = None


@dataclass
class DisableCheck:
    module_name: str
    can_disable: bool
    dependent_modules: List[str] = field(default_factory=list)


class DependencyResolver:
    """
    Resolves module dependencies against a registry.

    Usage:
        resolver = DependencyResolver(registry)
        resolution = resolver.resolve_dependencies('payroll', ['hr-core'])
        if not resolution.can_enable:
            print(resolution.missing_dependencies)
    """

    def __init__(self, registry: ModuleRegistry):
        self.registry = registry

    def _require(self, module_name: str):
        descriptor = self.registry.get_module(module_name)
        if descriptor is None:
            raise ModuleNotFound(module_name)
        return descriptor

    def _hard_dependencies(self, module_name: str) -> List[str]:
        descriptor = self.registry.get_module(module_name)
        return list(descriptor.dependencies) if descriptor else []

    def resolve_dependencies(self, module_name: str, enabled_modules: Iterable[str]) -> DependencyResolution:
        """
        Check whether a module can be enabled given the enabled set.

        Args:
            module_name: Module to enable
            enabled_modules: Modules currently enabled

        Returns:
            DependencyResolution. ``message`` is for humans only.

        Raises:
            ModuleNotFound: If the module is not registered
        """
        descriptor = self._require(module_name)
        enabled = set(enabled_modules)

        missing = [dep for dep in descriptor.dependencies if dep not in enabled]
        missing_optional = [dep for dep in descriptor.optional_dependencies if dep not in enabled]

        if missing:
            message = (
                f"Module {module_name} is missing required dependencies: "
                f"{', '.join(missing)}"
            )
        elif missing_optional:
            message = (
                f"Module {module_name} can be enabled, but optional features may be "
                f"unavailable (missing: {', '.join(missing_optional)})"
            )
        else:
            message = f"Module {module_name} can be enabled"

        return DependencyResolution(
            module_name=module_name,
            can_enable=not missing,
            missing_dependencies=missing,
            missing_optional_dependencies=missing_optional,
            message=message,
        )

    def detect_circular_dependencies(self, start_module: str) -> CircularDependencyReport:
        """
        Look for a dependency cycle reachable from ``start_module``.

        A cycle is a dependency edge back to a module on the current DFS path.
        A module reached again from a sibling branch (a diamond) is not a
        cycle. An unregistered start module is treated as an empty graph.

        Returns:
            CircularDependencyReport with the cycle in traversal order,
            e.g. ['a', 'b', 'c', 'a']
        """
        if not self.registry.has_module(start_module):
            return CircularDependencyReport(has_circular=False)

        path: List[str] = []
        on_path = set()
        finished = set()

        def visit(node: str) -> Optional[List[str]]:
            path.append(node)
            on_path.add(node)

            for dep in self._hard_dependencies(node):
                if dep in on_path:
                    return path[path.index(dep):] + [dep]
                if dep in finished:
                    continue
                cycle = visit(dep)
                if cycle:
                    return cycle

            path.pop()
            on_path.discard(node)
            finished.add(node)
            return None

        cycle = visit(start_module)
        if cycle:
            return CircularDependencyReport(has_circular=True, circular_path=cycle)
        return CircularDependencyReport(has_circular=False)

    def get_dependency_tree(self, module_name: str) -> List[str]:
        """
        Get every hard dependency reachable from a module.

        Returns:
            Unique module names in first-discovery order. Unregistered
            dependencies are listed but not expanded.

        Raises:
            ModuleNotFound: If the module is not registered
        """
        self._require(module_name)

        tree: List[str] = []
        seen = set()
        queue = [module_name]

        while queue:
            current = queue.pop(0)
            for dep in self._hard_dependencies(current):
                if dep in seen:
                    continue
                seen.add(dep)
                tree.append(dep)
                queue.append(dep)

        return tree

    def get_load_order(self, module_names: Iterable[str]) -> List[str]:
        """
        Order modules so every module follows all of its hard dependencies.

        The result covers the requested modules plus their registered
        transitive dependencies. Ordering is deterministic: roots are taken
        in input order and dependencies in declared order. Requested modules
        are always included, even when one of their dependencies is missing
        from the registry.

        Returns:
            Module names in load order
        """
        requested = []
        for name in module_names:
            if name not in requested:
                requested.append(name)

        order: List[str] = []
        placed = set()
        in_progress = set()

        def visit(node: str) -> None:
            if node in placed:
                return
            if node in in_progress:
                logger.warning(f"Circular dependency involving {node} ignored in load order")
                return

            in_progress.add(node)
            for dep in self._hard_dependencies(node):
                if not self.registry.has_module(dep) and dep not in requested:
                    continue
                visit(dep)
            in_progress.discard(node)

            placed.add(node)
            order.append(node)

        for name in requested:
            visit(name)

        return order

    def validate_dependencies(self, module_name: str) -> DependencyValidation:
        """
        Validate a module's declared dependency graph.

        Reports hard dependencies missing from the registry and any cycle
        reachable from the module.

        Raises:
            ModuleNotFound: If the module is not registered
        """
        descriptor = self._require(module_name)

        missing = [dep for dep in descriptor.dependencies if not self.registry.has_module(dep)]
        report = self.detect_circular_dependencies(module_name)

        return DependencyValidation(
            module_name=module_name,
            valid=not missing and not report.has_circular,
            missing_from_registry=missing,
            circular_dependency=report.circular_path if report.has_circular else None,
        )

    def can_disable_module(self, module_name: str, enabled_modules: Iterable[str]) -> DisableCheck:
        """
        Check whether a module can be disabled given the enabled set.

        A module cannot be disabled while any other enabled module lists it
        as a hard dependency.

        Returns:
            DisableCheck with the blocking dependents in enabled-set order
        """
        dependents = set(self.registry.get_dependent_modules(module_name))

        blocking = []
        for name in enabled_modules:
            if name != module_name and name in dependents and name not in blocking:
                blocking.append(name)

        return DisableCheck(
            module_name=module_name,
            can_disable=not blocking,
            dependent_modules=blocking,
        )
