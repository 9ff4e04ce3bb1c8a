"""
Module Registry

Catalog of every known module descriptor. The registry is populated once at
startup by scanning the module root directory and is read-mostly afterwards.
It is constructed explicitly by the application (see ``ModulesConfig``) and
passed to the resolver and loader; tests build their own instances.
"""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .descriptor import ModuleDescriptor
from .exceptions import ModuleValidationError
from .signals import module_registered

logger = logging.getLogger(__name__)


CONFIG_FILENAMES = ('module.yaml', 'module.yml', 'module.json')


class RegistryState(str, Enum):
    UNINITIALIZED = 'uninitialized'
    DISCOVERING = 'discovering'
    INITIALIZED = 'initialized'


class ModuleRegistry:
    """
    Central registry of module descriptors.

    Provides:
    - Descriptor registration with validation
    - O(1) lookup by module name
    - Reverse dependency queries ("who depends on me")
    - Discovery of configuration units on the filesystem
    """

    def __init__(self):
        self._modules: Dict[str, ModuleDescriptor] = {}
        self._state = RegistryState.UNINITIALIZED

    # Registration

    def register(self, descriptor: Union[ModuleDescriptor, Dict[str, Any]]) -> ModuleDescriptor:
        """
        Register a module descriptor.

        Re-registering a name overwrites the previous descriptor.

        Args:
            descriptor: A ModuleDescriptor or raw descriptor data

        Returns:
            The registered descriptor

        Raises:
            ModuleValidationError: If the descriptor data is invalid
        """
        if not isinstance(descriptor, ModuleDescriptor):
            descriptor = ModuleDescriptor.from_dict(descriptor)

        if descriptor.name in self._modules:
            logger.warning(f"Module {descriptor.name} already registered, overwriting")

        self._modules[descriptor.name] = descriptor
        module_registered.send(sender=self.__class__, registry=self, descriptor=descriptor)

        logger.info(f"Registered module {descriptor.name} v{descriptor.version}")
        return descriptor

    # Lookup

    def get_module(self, name: str) -> Optional[ModuleDescriptor]:
        """
        Get a module descriptor by name.

        Returns:
            The descriptor or None if not registered
        """
        return self._modules.get(name)

    def has_module(self, name: str) -> bool:
        return name in self._modules

    def get_dependent_modules(self, name: str) -> List[str]:
        """
        Get every registered module that hard-depends on ``name``.

        Returns:
            Module names in registration order
        """
        return [
            descriptor.name
            for descriptor in self._modules.values()
            if descriptor.depends_on(name)
        ]

    def all_modules(self) -> List[ModuleDescriptor]:
        return list(self._modules.values())

    def module_names(self) -> List[str]:
        return list(self._modules)

    def __contains__(self, name: str) -> bool:
        return self.has_module(name)

    def __len__(self) -> int:
        return len(self._modules)

    # Discovery

    def discover(self, modules_root: Union[str, Path]) -> List[ModuleDescriptor]:
        """
        Discover and register modules under ``modules_root``.

        Each subdirectory holding a configuration unit (module.yaml,
        module.yml or module.json) is one module. Directories without a
        configuration unit, and units that fail to parse or validate, are
        skipped with a warning.

        Returns:
            Descriptors registered by this scan
        """
        root = Path(modules_root)
        if not root.exists() or not root.is_dir():
            logger.warning(f"Module root does not exist: {root}")
            return []

        discovered = []
        for item in sorted(root.iterdir()):
            if not item.is_dir() or item.name.startswith(('.', '__')):
                continue

            config_path = self._find_config(item)
            if config_path is None:
                logger.warning(f"No module configuration found in {item}, skipping")
                continue

            try:
                data = self._read_config(config_path)
                descriptor = self.register(data)
            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.warning(f"Failed to read module configuration {config_path}: {e}")
                continue
            except ModuleValidationError as e:
                logger.warning(f"Skipping invalid module configuration {config_path}: {e}")
                continue

            discovered.append(descriptor)

        logger.info(f"Discovered {len(discovered)} modules in {root}")
        return discovered

    def _find_config(self, module_dir: Path) -> Optional[Path]:
        for filename in CONFIG_FILENAMES:
            candidate = module_dir / filename
            if candidate.is_file():
                return candidate
        return None

    def _read_config(self, config_path: Path) -> Dict[str, Any]:
        """Load a configuration unit from YAML or JSON."""
        with open(config_path, 'r') as f:
            if config_path.suffix == '.json':
                data = json.load(f)
            else:
                data = yaml.safe_load(f)

        # Configuration may nest the descriptor under a 'module' key
        if isinstance(data, dict) and isinstance(data.get('module'), dict):
            data = data['module']
        return data

    # Lifecycle

    @property
    def state(self) -> RegistryState:
        return self._state

    @property
    def is_initialized(self) -> bool:
        return self._state == RegistryState.INITIALIZED

    def initialize(self, modules_root: Optional[Union[str, Path]] = None) -> None:
        """
        Discover modules and latch the registry as initialized.

        Calling this again after initialization is a no-op.
        """
        if self.is_initialized:
            logger.warning("Module registry already initialized, ignoring")
            return

        self._state = RegistryState.DISCOVERING
        try:
            if modules_root is not None:
                self.discover(modules_root)
        except Exception:
            self._state = RegistryState.UNINITIALIZED
            raise
        self.mark_initialized()

    def mark_initialized(self) -> None:
        if self.is_initialized:
            logger.warning("Module registry already initialized, ignoring")
            return
        self._state = RegistryState.INITIALIZED
        logger.info(f"Module registry initialized with {len(self._modules)} modules")

    def clear(self) -> None:
        """Remove every descriptor and reset state (for testing)"""
        self._modules.clear()
        self._state = RegistryState.UNINITIALIZED
