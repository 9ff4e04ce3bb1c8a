"""
Module factory table.

Maps module names to the callables that build their runtime instances.
The table is filled once at startup from settings (or directly in tests),
so the loader resolves module code by name without importing anything
at request time.
"""

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from django.utils.module_loading import import_string

from .base import BaseModule

logger = logging.getLogger(__name__)

ModuleFactory = Callable[..., BaseModule]


class ModuleFactoryTable:
    """
    Registration table of module factories.

    A factory is any callable taking the module descriptor and returning a
    BaseModule instance; BaseModule subclasses qualify directly.
    """

    def __init__(self):
        self._factories: Dict[str, ModuleFactory] = {}

    def register(self, module_name: str, factory: ModuleFactory) -> None:
        """
        Register a factory for a module.

        Args:
            module_name: Module name as declared in its descriptor
            factory: Callable returning a BaseModule
        """
        if not callable(factory):
            raise TypeError(f"Factory for {module_name} must be callable")

        if module_name in self._factories:
            logger.warning(f"Factory for module {module_name} already registered, overwriting")

        self._factories[module_name] = factory
        logger.debug(f"Registered factory for module {module_name}")

    def register_from_string(self, module_name: str, factory_path: str) -> None:
        """
        Register a factory from a dotted path.

        Args:
            module_name: Module name as declared in its descriptor
            factory_path: Dotted path to a BaseModule subclass or factory
        """
        try:
            factory = import_string(factory_path)
        except ImportError as e:
            logger.error(f"Failed to import factory {factory_path} for module {module_name}: {e}")
            raise
        self.register(module_name, factory)

    def get(self, module_name: str) -> Optional[ModuleFactory]:
        return self._factories.get(module_name)

    def unregister(self, module_name: str) -> bool:
        if module_name in self._factories:
            del self._factories[module_name]
            return True
        return False

    def names(self):
        return list(self._factories)

    def __contains__(self, module_name: str) -> bool:
        return module_name in self._factories

    def __len__(self) -> int:
        return len(self._factories)

    @classmethod
    def from_mapping(cls, factories: Mapping[str, Any]) -> 'ModuleFactoryTable':
        """
        Build a table from a mapping of module name to factory or dotted path.

        Entries that cannot be imported are logged and left out, so the
        affected module fails at load time with ModuleLoadError instead of
        preventing startup.
        """
        table = cls()
        for module_name, factory in factories.items():
            try:
                if isinstance(factory, str):
                    table.register_from_string(module_name, factory)
                else:
                    table.register(module_name, factory)
            except (ImportError, TypeError) as e:
                logger.warning(f"Skipping factory for module {module_name}: {e}")
        return table

    def register_module(self, module_name: str):
        """
        Decorator for registering a module class.

        Usage:
            @factories.register_module('tasks')
            class TasksModule(BaseModule):
                ...
        """
        def decorator(module_class):
            self.register(module_name, module_class)
            return module_class
        return decorator
