"""
Module Descriptor

Static declaration of a module's identity and its dependency edges.
Descriptors are built from a module's configuration unit (module.yaml or
module.json) or from a plain dictionary, and are immutable once created.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Tuple

from django.utils import timezone

from .exceptions import ModuleValidationError


MODULE_NAME_PATTERN = re.compile(r'^[a-z0-9-]+$')

REQUIRED_FIELDS = ('name', 'displayName', 'version', 'description')
LIST_FIELDS = ('dependencies', 'optionalDependencies', 'permissions')

# snake_case spellings accepted in configuration files
FIELD_ALIASES = {
    'display_name': 'displayName',
    'optional_dependencies': 'optionalDependencies',
    'route_prefix': 'routePrefix',
}


def normalize_descriptor_data(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Map snake_case keys onto the camelCase names used by configuration units."""
    normalized = {}
    for key, value in data.items():
        normalized[FIELD_ALIASES.get(key, key)] = value
    return normalized


def validate_descriptor_data(data: Mapping[str, Any]) -> Dict[str, str]:
    """
    Validate raw descriptor data.

    Args:
        data: Descriptor dictionary (camelCase or snake_case keys)

    Returns:
        Dictionary mapping each offending field to an error message
        (empty if the data is valid)
    """
    if not isinstance(data, Mapping):
        return {'descriptor': 'Descriptor must be a mapping'}

    data = normalize_descriptor_data(data)
    errors = {}

    for field_name in REQUIRED_FIELDS:
        value = data.get(field_name)
        if not isinstance(value, str) or not value.strip():
            errors[field_name] = 'This field is required and must be a non-empty string'

    name = data.get('name')
    if 'name' not in errors and not MODULE_NAME_PATTERN.fullmatch(name):
        errors['name'] = 'Module name must match ^[a-z0-9-]+$'

    for field_name in LIST_FIELDS:
        value = data.get(field_name)
        if value is None:
            continue
        if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
            errors[field_name] = 'Must be a list of strings'

    route_prefix = data.get('routePrefix')
    if route_prefix is not None and not isinstance(route_prefix, str):
        errors['routePrefix'] = 'Must be a string'

    return errors


def _unique(items) -> Tuple[str, ...]:
    seen = []
    for item in items or ():
        if item not in seen:
            seen.append(item)
    return tuple(seen)


@dataclass(frozen=True)
class ModuleDescriptor:
    """
    Immutable declaration of a module.

    ``dependencies`` are hard edges: every one must be enabled before this
    module may be enabled. ``optional_dependencies`` only unlock extra
    behaviour and never block enablement.
    """

    name: str
    display_name: str
    version: str
    description: str
    dependencies: Tuple[str, ...] = ()
    optional_dependencies: Tuple[str, ...] = ()
    route_prefix: Optional[str] = None
    permissions: Tuple[str, ...] = ()
    registered_at: datetime = field(default_factory=timezone.now, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ModuleDescriptor':
        """
        Build a descriptor from raw data.

        Raises:
            ModuleValidationError: If the data is malformed
        """
        errors = validate_descriptor_data(data)
        if errors:
            name = data.get('name') if isinstance(data, Mapping) else None
            raise ModuleValidationError(errors, module_name=name if isinstance(name, str) else None)

        data = normalize_descriptor_data(data)
        return cls(
            name=data['name'],
            display_name=data['displayName'],
            version=data['version'],
            description=data['description'],
            dependencies=_unique(data.get('dependencies')),
            optional_dependencies=_unique(data.get('optionalDependencies')),
            route_prefix=data.get('routePrefix'),
            permissions=_unique(data.get('permissions')),
        )

    def depends_on(self, module_name: str) -> bool:
        """Check whether ``module_name`` is a hard dependency"""
        return module_name in self.dependencies

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'displayName': self.display_name,
            'version': self.version,
            'description': self.description,
            'dependencies': list(self.dependencies),
            'optionalDependencies': list(self.optional_dependencies),
            'routePrefix': self.route_prefix,
            'permissions': list(self.permissions),
            'registeredAt': self.registered_at.isoformat(),
        }

    def __str__(self) -> str:
        return f"{self.display_name} ({self.name}@{self.version})"
