"""
Module Loader

Loads module runtime code on demand and tracks which modules are enabled
for which tenant.

Two kinds of state are kept here:

- Process-wide: one initialized instance per module name, shared by every
  tenant, together with the routes it serves.
- Per tenant: the set of enabled modules, with who enabled each and when.

Enable requests are checked against the dependency resolver before any
state changes.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from django.utils import timezone

from .base import APIRoute, BaseModule, ModuleContext
from .exceptions import (
    ModuleDependencyMissing, ModuleDependentsEnabled, ModuleError,
    ModuleInitializationError, ModuleLoadError, ModuleNotFound, ModuleStateError,
)
from .factories import ModuleFactoryTable
from .registry import ModuleRegistry
from .resolver import DependencyResolution, DependencyResolver
from .signals import (
    module_disabled, module_enabled, module_error, module_loaded, module_unloaded,
)

logger = logging.getLogger(__name__)


@dataclass
class LoadedModule:
    """An initialized module instance and the routes it serves"""
    name: str
    instance: BaseModule
    routes: Dict[str, APIRoute] = field(default_factory=dict)
    loaded_at: datetime = field(default_factory=timezone.now)


@dataclass
class TenantModuleRecord:
    module_name: str
    enabled_by: str
    enabled_at: datetime


@dataclass
class TenantModuleState:
    tenant_id: str
    modules: Dict[str, TenantModuleRecord] = field(default_factory=dict)
    created_at: datetime = field(default_factory=timezone.now)

    def enabled_modules(self) -> List[str]:
        return list(self.modules)


@dataclass
class LoadOutcome:
    module_name: str
    module: Optional[LoadedModule] = None
    error: Optional[ModuleError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchLoadResult:
    """Per-module outcomes of a best-effort batch load, in load order"""
    outcomes: List[LoadOutcome] = field(default_factory=list)

    def add(self, outcome: LoadOutcome) -> None:
        self.outcomes.append(outcome)

    @property
    def loaded(self) -> List[str]:
        return [outcome.module_name for outcome in self.outcomes if outcome.ok]

    @property
    def failed(self) -> Dict[str, ModuleError]:
        return {
            outcome.module_name: outcome.error
            for outcome in self.outcomes
            if not outcome.ok
        }

    @property
    def loaded_modules(self) -> List[LoadedModule]:
        return [outcome.module for outcome in self.outcomes if outcome.ok]


@dataclass
class EnableResult:
    tenant_id: str
    module_name: str
    module: LoadedModule
    resolution: DependencyResolution
    already_enabled: bool = False


class ModuleLoader:
    """
    Loads modules and manages per-tenant enablement.

    Enable and disable calls for the same tenant are serialized by a
    per-tenant lock; different tenants proceed independently. First-time
    loads of a module are serialized by a per-module lock so that the
    module's ``initialize`` hook runs exactly once per process.
    """

    def __init__(
        self,
        registry: ModuleRegistry,
        factories: Optional[ModuleFactoryTable] = None,
        resolver: Optional[DependencyResolver] = None,
        core_module: Optional[str] = None,
        enforce_disable_dependents: bool = True,
        options: Optional[Dict[str, Any]] = None,
    ):
        self.registry = registry
        self.factories = factories or ModuleFactoryTable()
        self.resolver = resolver or DependencyResolver(registry)
        self.core_module = core_module
        self.enforce_disable_dependents = enforce_disable_dependents
        self.context = ModuleContext(registry=registry, loader=self, options=dict(options or {}))

        self._loaded: Dict[str, LoadedModule] = {}
        self._tenants: Dict[str, TenantModuleState] = {}
        self._lock = threading.Lock()
        self._module_locks: Dict[str, threading.Lock] = {}
        self._tenant_locks: Dict[str, threading.RLock] = {}

    # Locks

    def _module_lock(self, module_name: str) -> threading.Lock:
        with self._lock:
            lock = self._module_locks.get(module_name)
            if lock is None:
                lock = self._module_locks[module_name] = threading.Lock()
            return lock

    def tenant_lock(self, tenant_id: str) -> threading.RLock:
        """Reentrant lock guarding a tenant's module state"""
        with self._lock:
            lock = self._tenant_locks.get(tenant_id)
            if lock is None:
                lock = self._tenant_locks[tenant_id] = threading.RLock()
            return lock

    def _get_or_create_state(self, tenant_id: str) -> TenantModuleState:
        state = self._tenants.get(tenant_id)
        if state is None:
            state = self._tenants[tenant_id] = TenantModuleState(tenant_id=tenant_id)
            logger.debug(f"Created module state for tenant {tenant_id}")
        return state

    # Process-wide loading

    def load_module(self, module_name: str, tenant_id: Optional[str] = None) -> LoadedModule:
        """
        Load and initialize a module's code.

        Idempotent: a module that is already loaded is returned from the
        cache without calling ``initialize`` again.

        Args:
            module_name: Module to load
            tenant_id: Tenant whose request triggered the load (optional)

        Returns:
            The loaded module

        Raises:
            ModuleNotFound: If the module is not registered
            ModuleLoadError: If the module's code cannot be located or built
            ModuleInitializationError: If the module's initialize hook fails
        """
        loaded = self._loaded.get(module_name)
        if loaded is not None:
            return loaded

        with self._module_lock(module_name):
            loaded = self._loaded.get(module_name)
            if loaded is not None:
                return loaded

            descriptor = self.registry.get_module(module_name)
            if descriptor is None:
                raise ModuleNotFound(module_name)

            factory = self.factories.get(module_name)
            if factory is None:
                module_error.send(sender=self.__class__, module_name=module_name, tenant_id=tenant_id)
                raise ModuleLoadError(module_name, f"No code unit registered for module {module_name}")

            try:
                instance = factory(descriptor)
            except Exception as e:
                logger.error(f"Failed to load module {module_name}: {e}", exc_info=True)
                module_error.send(sender=self.__class__, module_name=module_name, tenant_id=tenant_id, error=e)
                raise ModuleLoadError(module_name, f"Failed to load module {module_name}: {e}") from e

            if not isinstance(instance, BaseModule):
                raise ModuleLoadError(module_name, f"Module {module_name} must inherit from BaseModule")

            instance.context = self.context
            try:
                instance.initialize(self.context, tenant_id)
                routes = self._collect_routes(module_name, instance)
            except Exception as e:
                logger.error(f"Failed to initialize module {module_name}: {e}", exc_info=True)
                module_error.send(sender=self.__class__, module_name=module_name, tenant_id=tenant_id, error=e)
                raise ModuleInitializationError(
                    module_name, f"Failed to initialize module {module_name}: {e}"
                ) from e

            instance._initialized = True
            loaded = LoadedModule(name=module_name, instance=instance, routes=routes)
            self._loaded[module_name] = loaded

        module_loaded.send(sender=self.__class__, module_name=module_name, tenant_id=tenant_id, module=loaded)
        logger.info(f"Loaded module {module_name} v{descriptor.version}")
        return loaded

    def _collect_routes(self, module_name: str, instance: BaseModule) -> Dict[str, APIRoute]:
        routes = {}
        for route in instance.get_api_routes():
            if route.path in routes:
                logger.warning(f"Module {module_name} declares route '{route.path}' twice, keeping the last one")
            routes[route.path] = route
        return routes

    def load_modules(self, module_names: Iterable[str], tenant_id: Optional[str] = None) -> BatchLoadResult:
        """
        Load several modules in dependency order.

        Best effort: a module that fails to load is logged and recorded in
        the result, and the remaining modules are still attempted.

        Returns:
            BatchLoadResult with one outcome per module in load order
        """
        result = BatchLoadResult()

        for module_name in self.resolver.get_load_order(module_names):
            try:
                loaded = self.load_module(module_name, tenant_id)
            except ModuleError as e:
                logger.warning(f"Failed to load module {module_name}: {e}")
                result.add(LoadOutcome(module_name=module_name, error=e))
                continue
            result.add(LoadOutcome(module_name=module_name, module=loaded))

        return result

    def unload_module(self, module_name: str, tenant_id: Optional[str] = None) -> bool:
        """
        Unload a module's code.

        The module's cleanup hook runs first; its failures are logged and
        never stop the unload. When ``tenant_id`` is given, the module is
        also removed from that tenant's enabled set.

        Returns:
            True if the module was loaded
        """
        with self._module_lock(module_name):
            loaded = self._loaded.pop(module_name, None)
            if loaded is not None:
                try:
                    loaded.instance.cleanup()
                except Exception as e:
                    logger.error(f"Error cleaning up module {module_name}: {e}", exc_info=True)
                loaded.instance._initialized = False

        if tenant_id is not None:
            with self.tenant_lock(tenant_id):
                state = self._tenants.get(tenant_id)
                if state is not None:
                    state.modules.pop(module_name, None)

        if loaded is None:
            return False

        module_unloaded.send(sender=self.__class__, module_name=module_name, tenant_id=tenant_id)
        logger.info(f"Unloaded module {module_name}")
        return True

    # Tenant enablement

    def enable_module_for_tenant(
        self,
        tenant_id: str,
        module_name: str,
        enabled_by: str = 'system',
        enabled_at: Optional[datetime] = None,
    ) -> EnableResult:
        """
        Enable a module for a tenant.

        The module's hard dependencies must already be enabled for the
        tenant. Enabling a module twice is a no-op success.

        Args:
            tenant_id: Tenant enabling the module
            module_name: Module to enable
            enabled_by: Who is enabling it (user id, 'system', ...)
            enabled_at: When it was enabled, defaults to now

        Returns:
            EnableResult

        Raises:
            ModuleNotFound: If the module is not registered
            ModuleDependencyMissing: If hard dependencies are not enabled
            ModuleLoadError, ModuleInitializationError: If loading fails
        """
        with self.tenant_lock(tenant_id):
            state = self._get_or_create_state(tenant_id)
            resolution = self.resolver.resolve_dependencies(module_name, state.enabled_modules())

            if module_name in state.modules:
                loaded = self.load_module(module_name, tenant_id)
                return EnableResult(
                    tenant_id=tenant_id,
                    module_name=module_name,
                    module=loaded,
                    resolution=resolution,
                    already_enabled=True,
                )

            if not resolution.can_enable:
                logger.warning(
                    f"Cannot enable {module_name} for tenant {tenant_id}: "
                    f"missing {', '.join(resolution.missing_dependencies)}"
                )
                raise ModuleDependencyMissing(module_name, resolution.missing_dependencies)

            loaded = self.load_module(module_name, tenant_id)
            try:
                loaded.instance.enable(tenant_id)
            except Exception as e:
                logger.error(f"Module {module_name} failed to enable for tenant {tenant_id}: {e}", exc_info=True)
                raise ModuleInitializationError(
                    module_name, f"Module {module_name} failed to enable for tenant {tenant_id}: {e}"
                ) from e

            state.modules[module_name] = TenantModuleRecord(
                module_name=module_name,
                enabled_by=enabled_by,
                enabled_at=enabled_at or timezone.now(),
            )

        if resolution.missing_optional_dependencies:
            logger.info(resolution.message)
        module_enabled.send(
            sender=self.__class__, tenant_id=tenant_id, module_name=module_name, enabled_by=enabled_by
        )
        logger.info(f"Enabled module {module_name} for tenant {tenant_id}")
        return EnableResult(tenant_id=tenant_id, module_name=module_name, module=loaded, resolution=resolution)

    def disable_module_for_tenant(self, tenant_id: str, module_name: str, force: bool = False) -> bool:
        """
        Disable a module for a tenant.

        Blocked while other modules enabled for the tenant hard-depend on
        it, unless ``force`` is set or dependent checks are turned off.
        The core module can never be disabled. The module's code stays
        loaded for other tenants.

        Returns:
            True if the module was enabled and is now disabled

        Raises:
            ModuleStateError: If the module is the core module
            ModuleDependentsEnabled: If enabled modules still depend on it
        """
        if self.core_module and module_name == self.core_module:
            raise ModuleStateError(f"Cannot disable required module {module_name}")

        with self.tenant_lock(tenant_id):
            state = self._get_or_create_state(tenant_id)
            if module_name not in state.modules:
                return False

            if self.enforce_disable_dependents and not force:
                check = self.resolver.can_disable_module(module_name, state.enabled_modules())
                if not check.can_disable:
                    raise ModuleDependentsEnabled(module_name, check.dependent_modules)

            del state.modules[module_name]

            loaded = self._loaded.get(module_name)
            if loaded is not None:
                try:
                    loaded.instance.disable(tenant_id)
                except Exception as e:
                    logger.error(
                        f"Module {module_name} failed to disable for tenant {tenant_id}: {e}", exc_info=True
                    )

        module_disabled.send(sender=self.__class__, tenant_id=tenant_id, module_name=module_name)
        logger.info(f"Disabled module {module_name} for tenant {tenant_id}")
        return True

    def load_modules_for_tenant(
        self,
        tenant_id: str,
        module_names: Iterable[str],
        enabled_by: str = 'system',
        records: Optional[Dict[str, TenantModuleRecord]] = None,
    ) -> BatchLoadResult:
        """
        Provision a tenant from its declared module list.

        The core module is always included. Modules are enabled in load
        order through the dependency-checked path; a module whose
        dependencies are unmet, or that fails to load, is skipped with a
        warning and provisioning continues. Modules found in ``records``
        keep the recorded enabled_by and enabled_at.

        Returns:
            BatchLoadResult with one outcome per module in load order
        """
        effective = [self.core_module] if self.core_module else []
        for module_name in module_names:
            if module_name not in effective:
                effective.append(module_name)

        order = [name for name in self.resolver.get_load_order(effective) if name in effective]
        records = records or {}
        result = BatchLoadResult()

        with self.tenant_lock(tenant_id):
            self._get_or_create_state(tenant_id)
            for module_name in order:
                record = records.get(module_name)
                if record is not None:
                    by, at = record.enabled_by, record.enabled_at
                else:
                    by, at = enabled_by, None
                try:
                    enabled = self.enable_module_for_tenant(tenant_id, module_name, by, at)
                except ModuleDependencyMissing as e:
                    logger.warning(
                        f"Skipping module {module_name} for tenant {tenant_id}: "
                        f"missing dependencies {', '.join(e.missing)}"
                    )
                    result.add(LoadOutcome(module_name=module_name, error=e))
                    continue
                except ModuleError as e:
                    logger.warning(f"Skipping module {module_name} for tenant {tenant_id}: {e}")
                    result.add(LoadOutcome(module_name=module_name, error=e))
                    continue
                result.add(LoadOutcome(module_name=module_name, module=enabled.module))

        logger.info(
            f"Provisioned tenant {tenant_id}: {len(result.loaded)} modules enabled, "
            f"{len(result.failed)} skipped"
        )
        return result

    # Queries

    def has_tenant(self, tenant_id: str) -> bool:
        return tenant_id in self._tenants

    def get_modules_for_tenant(self, tenant_id: str) -> List[str]:
        """Get the modules enabled for a tenant, in the order they were enabled"""
        state = self._tenants.get(tenant_id)
        return state.enabled_modules() if state else []

    def get_tenant_state(self, tenant_id: str) -> Optional[TenantModuleState]:
        return self._tenants.get(tenant_id)

    def get_tenant_records(self, tenant_id: str) -> List[TenantModuleRecord]:
        state = self._tenants.get(tenant_id)
        return list(state.modules.values()) if state else []

    def is_module_loaded_for_tenant(self, tenant_id: str, module_name: str) -> bool:
        """Check if a module is enabled for a tenant and its code is loaded"""
        state = self._tenants.get(tenant_id)
        return bool(state) and module_name in state.modules and module_name in self._loaded

    def is_module_loaded(self, module_name: str) -> bool:
        return module_name in self._loaded

    def get_loaded_module(self, module_name: str) -> Optional[LoadedModule]:
        return self._loaded.get(module_name)

    def get_route(self, module_name: str, path: str) -> Optional[APIRoute]:
        """Find a route served by a loaded module"""
        loaded = self._loaded.get(module_name)
        if loaded is None:
            return None
        return loaded.routes.get(path.strip('/'))

    def get_stats(self) -> Dict[str, Any]:
        """Get loader statistics"""
        return {
            'registered_modules': len(self.registry),
            'loaded_modules': sorted(self._loaded),
            'loaded_count': len(self._loaded),
            'tenant_count': len(self._tenants),
            'tenants': {
                tenant_id: len(state.modules)
                for tenant_id, state in self._tenants.items()
            },
        }
