"""
Module management service.

Keeps the loader's in-memory tenant state and the persisted TenantModule
rows in step. The HTTP API and the management command both go through
this service; the loader itself never touches the database.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from django.apps import apps
from django.db import DatabaseError, transaction

from .exceptions import ModuleError
from .loader import EnableResult, ModuleLoader, TenantModuleRecord
from .models import TenantModule

logger = logging.getLogger(__name__)


@dataclass
class BulkEnableResult:
    enabled: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)


@dataclass
class ModuleAccess:
    has_access: bool
    reason: str = ''


class ModuleManagementService:
    """
    Enables and disables modules for tenants and persists the result.
    """

    def __init__(self, loader: ModuleLoader):
        self.loader = loader
        self.registry = loader.registry
        self.resolver = loader.resolver

    def ensure_tenant(self, tenant_id: str) -> None:
        """
        Provision the loader from stored state the first time a tenant is seen.

        The core module is added during provisioning and persisted with the
        rest. Stored modules keep who enabled them and when. Stored modules
        that cannot be enabled stay stored and are reported in the log.
        Other callers for the same tenant wait until provisioning is done.
        """
        with self.loader.tenant_lock(tenant_id):
            if self.loader.has_tenant(tenant_id):
                return

            rows = list(TenantModule.objects.for_tenant(tenant_id).order_by('enabled_at', 'id'))
            records = {
                row.module_name: TenantModuleRecord(
                    module_name=row.module_name,
                    enabled_by=row.enabled_by,
                    enabled_at=row.enabled_at,
                )
                for row in rows
            }
            result = self.loader.load_modules_for_tenant(
                tenant_id, [row.module_name for row in rows], records=records
            )
            for module_name, error in result.failed.items():
                logger.warning(f"Stored module {module_name} not active for tenant {tenant_id}: {error}")

            for record in self.loader.get_tenant_records(tenant_id):
                TenantModule.objects.get_or_create(
                    tenant_id=tenant_id,
                    module_name=record.module_name,
                    defaults={'enabled_by': record.enabled_by, 'enabled_at': record.enabled_at},
                )

    def enable_module(self, tenant_id: str, module_name: str, enabled_by: str = 'system') -> EnableResult:
        """
        Enable a module for a tenant and persist it.

        Raises:
            ModuleNotFound, ModuleDependencyMissing, ModuleLoadError,
            ModuleInitializationError: See ModuleLoader.enable_module_for_tenant
        """
        self.ensure_tenant(tenant_id)
        result = self.loader.enable_module_for_tenant(tenant_id, module_name, enabled_by)
        if result.already_enabled:
            return result

        try:
            with transaction.atomic():
                TenantModule.objects.get_or_create(
                    tenant_id=tenant_id,
                    module_name=module_name,
                    defaults={'enabled_by': enabled_by},
                )
        except DatabaseError:
            logger.error(f"Failed to persist module {module_name} for tenant {tenant_id}, reverting")
            self.loader.disable_module_for_tenant(tenant_id, module_name, force=True)
            raise

        return result

    def enable_modules(
        self,
        tenant_id: str,
        module_names: Iterable[str],
        enabled_by: str = 'system',
    ) -> BulkEnableResult:
        """
        Enable several modules in dependency order.

        Best effort: failures are collected and the rest are still enabled.
        """
        requested = list(module_names)
        order = [name for name in self.resolver.get_load_order(requested) if name in requested]
        result = BulkEnableResult()

        for module_name in order:
            try:
                self.enable_module(tenant_id, module_name, enabled_by)
            except ModuleError as e:
                result.failed[module_name] = str(e)
                continue
            result.enabled.append(module_name)

        logger.info(
            f"Bulk enable for tenant {tenant_id} completed: "
            f"{len(result.enabled)} enabled, {len(result.failed)} failed"
        )
        return result

    def disable_module(self, tenant_id: str, module_name: str, force: bool = False) -> bool:
        """
        Disable a module for a tenant and remove it from storage.

        Raises:
            ModuleStateError, ModuleDependentsEnabled: See
                ModuleLoader.disable_module_for_tenant
        """
        self.ensure_tenant(tenant_id)
        changed = self.loader.disable_module_for_tenant(tenant_id, module_name, force=force)

        with transaction.atomic():
            TenantModule.objects.filter(tenant_id=tenant_id, module_name=module_name).delete()

        return changed

    def get_tenant_modules(self, tenant_id: str) -> List[Dict[str, Any]]:
        """
        Get every registered module with its status for a tenant.
        """
        self.ensure_tenant(tenant_id)

        records = {record.module_name: record for record in self.loader.get_tenant_records(tenant_id)}
        enabled = list(records)

        modules = []
        for descriptor in self.registry.all_modules():
            record = records.get(descriptor.name)
            resolution = self.resolver.resolve_dependencies(descriptor.name, enabled)
            modules.append({
                'name': descriptor.name,
                'display_name': descriptor.display_name,
                'version': descriptor.version,
                'description': descriptor.description,
                'dependencies': list(descriptor.dependencies),
                'optional_dependencies': list(descriptor.optional_dependencies),
                'required': descriptor.name == self.loader.core_module,
                'enabled': record is not None,
                'loaded': self.loader.is_module_loaded(descriptor.name),
                'enabled_by': record.enabled_by if record else None,
                'enabled_at': record.enabled_at if record else None,
                'can_enable': resolution.can_enable,
                'missing_dependencies': resolution.missing_dependencies,
            })
        return modules

    def check_module_access(self, tenant_id: str, module_name: str) -> ModuleAccess:
        """Check whether a tenant may use a module right now"""
        if not self.registry.has_module(module_name):
            return ModuleAccess(has_access=False, reason='Module not found')

        self.ensure_tenant(tenant_id)
        if not self.loader.is_module_loaded_for_tenant(tenant_id, module_name):
            return ModuleAccess(has_access=False, reason='Module not enabled')

        return ModuleAccess(has_access=True)


def get_module_service() -> ModuleManagementService:
    """Build a management service around the application's loader"""
    return ModuleManagementService(apps.get_app_config('tenant_modules').loader)
