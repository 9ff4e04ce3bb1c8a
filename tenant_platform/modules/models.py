"""
Module System Models

Persisted tenant module state. The loader keeps the live enabled set in
memory; TenantModule rows are the tenant's stored module list that the
loader is provisioned from after a restart.
"""

from django.db import models
from django.utils import timezone


class TenantModuleQuerySet(models.QuerySet):
    def for_tenant(self, tenant_id):
        return self.filter(tenant_id=tenant_id)

    def module_names(self, tenant_id):
        return list(
            self.for_tenant(tenant_id)
            .order_by('enabled_at', 'id')
            .values_list('module_name', flat=True)
        )


class TenantModule(models.Model):
    """
    A module enabled for a tenant.
    """
    tenant_id = models.CharField(max_length=100, db_index=True)
    module_name = models.CharField(max_length=100)

    enabled_by = models.CharField(
        max_length=150,
        default='system',
        help_text="User or process that enabled the module"
    )
    enabled_at = models.DateTimeField(default=timezone.now)

    objects = TenantModuleQuerySet.as_manager()

    class Meta:
        db_table = 'platform_tenant_modules'
        unique_together = [('tenant_id', 'module_name')]
        ordering = ['tenant_id', 'enabled_at']

    def __str__(self):
        return f"{self.module_name} for {self.tenant_id}"
