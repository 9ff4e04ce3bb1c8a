"""
Module guards.

Read-only checks of whether a tenant has a module enabled, for use by
request handling code. Nothing here changes tenant state.
"""

from typing import Iterable, Optional

from rest_framework import permissions
from rest_framework.request import Request

from .services import get_module_service


TENANT_HEADER = 'HTTP_X_TENANT_ID'


def is_module_enabled(enabled_modules: Iterable[str], module_name: str) -> bool:
    return module_name in set(enabled_modules)


def any_module_enabled(enabled_modules: Iterable[str], module_names: Iterable[str]) -> bool:
    enabled = set(enabled_modules)
    return any(name in enabled for name in module_names)


def all_modules_enabled(enabled_modules: Iterable[str], module_names: Iterable[str]) -> bool:
    enabled = set(enabled_modules)
    return all(name in enabled for name in module_names)


def get_request_tenant(request: Request, view) -> Optional[str]:
    """Tenant id from the URL (``tenant_id`` kwarg) or the X-Tenant-ID header"""
    tenant_id = getattr(view, 'kwargs', {}).get('tenant_id')
    if tenant_id:
        return tenant_id
    return request.META.get(TENANT_HEADER) or None


class RequiresModules(permissions.BasePermission):
    """
    Permission that requires modules to be enabled for the request's tenant.

    Usage:
        class PayrollView(APIView):
            permission_classes = [IsAuthenticated, requires_modules('payroll')]
    """

    required_modules = ()
    match = 'all'
    message = 'Module not enabled for this tenant'

    def has_permission(self, request: Request, view) -> bool:
        tenant_id = get_request_tenant(request, view)
        if not tenant_id:
            return False

        service = get_module_service()
        service.ensure_tenant(tenant_id)
        enabled = service.loader.get_modules_for_tenant(tenant_id)
        enabled = [name for name in enabled if service.loader.is_module_loaded(name)]

        if self.match == 'any':
            return any_module_enabled(enabled, self.required_modules)
        return all_modules_enabled(enabled, self.required_modules)


def requires_modules(*module_names: str, match: str = 'all'):
    """
    Build a permission class requiring modules for the request's tenant.

    Args:
        module_names: Modules to check
        match: 'all' (every module enabled) or 'any' (at least one)
    """
    if match not in ('all', 'any'):
        raise ValueError("match must be 'all' or 'any'")

    return type(
        'RequiresModules',
        (RequiresModules,),
        {'required_modules': tuple(module_names), 'match': match},
    )
