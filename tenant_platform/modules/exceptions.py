"""
Module System Exceptions

Custom exceptions for the module system.
"""

from typing import Dict, Iterable, List, Optional


class ModuleError(Exception):
    """Base exception for module system errors"""
    pass


class ModuleNotFound(ModuleError):
    """Raised when a module name is not present in the registry"""

    def __init__(self, module_name: str, message: Optional[str] = None):
        self.module_name = module_name
        super().__init__(message or f"Module {module_name} not found in registry")


class ModuleValidationError(ModuleError):
    """Raised when a module descriptor fails validation"""

    def __init__(self, errors: Dict[str, str], module_name: Optional[str] = None):
        self.errors = dict(errors)
        self.module_name = module_name
        details = '; '.join(f"{field}: {message}" for field, message in self.errors.items())
        prefix = f"Invalid descriptor for module {module_name}" if module_name else "Invalid module descriptor"
        super().__init__(f"{prefix}: {details}")

    @property
    def fields(self) -> List[str]:
        """Names of the offending descriptor fields"""
        return list(self.errors)


class ModuleLoadError(ModuleError):
    """Raised when a module's code unit cannot be located or constructed"""

    def __init__(self, module_name: str, message: str):
        self.module_name = module_name
        super().__init__(message)


class ModuleInitializationError(ModuleError):
    """Raised when a module's own initialization hook fails"""

    def __init__(self, module_name: str, message: str):
        self.module_name = module_name
        super().__init__(message)


class ModuleStateError(ModuleError):
    """Raised when module is in an invalid state for the requested operation"""
    pass


class DependencyError(ModuleError):
    """Base exception for dependency-related errors"""
    pass


class ModuleDependencyMissing(DependencyError):
    """Raised when a module cannot be enabled because hard dependencies are not enabled"""

    def __init__(self, module_name: str, missing: Iterable[str]):
        self.module_name = module_name
        self.missing = list(missing)
        super().__init__(
            f"Missing required dependencies for {module_name}: {', '.join(self.missing)}"
        )


class ModuleDependentsEnabled(DependencyError):
    """Raised when a module cannot be disabled because enabled modules depend on it"""

    def __init__(self, module_name: str, dependents: Iterable[str]):
        self.module_name = module_name
        self.dependents = list(dependents)
        super().__init__(
            f"Cannot disable {module_name}: required by {', '.join(self.dependents)}"
        )
