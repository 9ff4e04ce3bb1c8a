"""
Base Module Class

Abstract base class that all platform modules must inherit from.
Defines the interface and lifecycle hooks for modules.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

if TYPE_CHECKING:
    from .descriptor import ModuleDescriptor
    from .loader import ModuleLoader
    from .registry import ModuleRegistry


@dataclass
class ModuleContext:
    """
    Application context handed to modules when they initialize.

    Gives module code access to the registry and the loader that owns it,
    so a module can check whether optional collaborators are loaded.
    """
    registry: 'ModuleRegistry'
    loader: Optional['ModuleLoader'] = None
    options: Dict[str, Any] = field(default_factory=dict)

    def is_module_enabled(self, tenant_id: Optional[str], module_name: str) -> bool:
        """Check if another module is active for a tenant"""
        if self.loader is None or tenant_id is None:
            return False
        return self.loader.is_module_loaded_for_tenant(tenant_id, module_name)


class BaseModule(ABC):
    """
    Base class for all platform modules.

    Modules must inherit from this class and implement the required methods.
    The loader will call these methods at appropriate times in the
    module lifecycle:

    - ``initialize`` once per process, when the module code is first loaded
    - ``enable`` / ``disable`` each time a tenant turns the module on or off
    - ``cleanup`` once, when the module code is unloaded
    """

    def __init__(self, descriptor: 'ModuleDescriptor'):
        """
        Initialize the module.

        Args:
            descriptor: The module descriptor from the registry
        """
        self.descriptor = descriptor
        self.module_name = descriptor.name
        self.version = descriptor.version
        self.context: Optional[ModuleContext] = None
        self._initialized = False

    @property
    def name(self) -> str:
        """Human-readable module name"""
        return self.descriptor.display_name

    @property
    def description(self) -> str:
        return self.descriptor.description

    # Module lifecycle methods

    @abstractmethod
    def initialize(self, context: ModuleContext, tenant_id: Optional[str] = None) -> None:
        """
        Initialize the module.

        Called when the module is first loaded into the process.

        Args:
            context: The owning application context
            tenant_id: Tenant whose request triggered the load, if any
        """
        pass

    def cleanup(self) -> None:
        """
        Release module resources.

        Called when the module code is being unloaded. Failures are logged
        by the loader and never block teardown.
        """
        pass

    def enable(self, tenant_id: str) -> None:
        """
        Enable the module for a specific tenant.

        Override to perform per-tenant setup such as creating default data.

        Args:
            tenant_id: The tenant enabling the module
        """
        pass

    def disable(self, tenant_id: str) -> None:
        """
        Disable the module for a specific tenant.

        Args:
            tenant_id: The tenant disabling the module
        """
        pass

    # Module component registration

    def get_api_routes(self) -> List['APIRoute']:
        """
        Return module API routes.

        These are endpoints served for tenants that have the module enabled.

        Returns:
            List of APIRoute objects
        """
        return []

    # Module health and monitoring

    def health_check(self) -> Dict[str, Any]:
        """
        Perform a health check on the module.

        Returns:
            Health check results including:
            - status: 'healthy', 'degraded', or 'unhealthy'
            - message: Human-readable status message
        """
        return {
            'status': 'healthy' if self._initialized else 'unhealthy',
            'message': 'Module is functioning normally' if self._initialized else 'Module is not initialized',
        }

    # Utility methods

    def get_option(self, key: str, default: Any = None) -> Any:
        """Get an application option from the module context"""
        if self.context is None:
            return default
        return self.context.options.get(key, default)

    def is_initialized(self) -> bool:
        """Check if module has been initialized"""
        return self._initialized

    def __str__(self) -> str:
        """String representation of the module"""
        return f"{self.name} ({self.module_name}@{self.version})"


class APIRoute:
    """Represents an API route exposed by a module"""

    def __init__(self, path: str, view_func: Callable, methods: List[str] = None, name: str = None):
        self.path = path.strip('/')
        self.view_func = view_func
        self.methods = [method.upper() for method in (methods or ['GET'])]
        self.name = name or self.path.replace('/', '_')

    def allows(self, method: str) -> bool:
        return method.upper() in self.methods

    def __repr__(self) -> str:
        return f"APIRoute({self.path!r}, methods={self.methods})"
