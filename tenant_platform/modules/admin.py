"""
Module System Admin Configuration
"""

from django.apps import apps
from django.contrib import admin
from django.utils.html import format_html

from .models import TenantModule


@admin.register(TenantModule)
class TenantModuleAdmin(admin.ModelAdmin):
    """
    Read-only view of stored tenant modules.

    Enabling and disabling goes through the API or the tenant_modules
    command so that dependency checks run and the loader stays in step.
    """
    list_display = [
        'tenant_id', 'module_name', 'version', 'loaded_badge',
        'enabled_by', 'enabled_at'
    ]
    list_filter = ['module_name', 'enabled_at']
    search_fields = ['tenant_id', 'module_name', 'enabled_by']
    readonly_fields = ['tenant_id', 'module_name', 'enabled_by', 'enabled_at']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def version(self, obj):
        descriptor = apps.get_app_config('tenant_modules').registry.get_module(obj.module_name)
        return descriptor.version if descriptor else '-'
    version.short_description = 'Version'

    def loaded_badge(self, obj):
        loader = apps.get_app_config('tenant_modules').loader
        if loader.is_module_loaded_for_tenant(obj.tenant_id, obj.module_name):
            return format_html('<span style="color: green;">✓ Active</span>')
        if loader.has_tenant(obj.tenant_id):
            return format_html('<span style="color: red;">✗ Not active</span>')
        return format_html('<span style="color: gray;">- Not provisioned</span>')
    loaded_badge.short_description = 'Active'
