"""
Module System Serializers
"""

from rest_framework import serializers

from .descriptor import MODULE_NAME_PATTERN


class ModuleDescriptorSerializer(serializers.Serializer):
    """Serializer for module descriptors"""
    name = serializers.CharField()
    display_name = serializers.CharField()
    version = serializers.CharField()
    description = serializers.CharField()
    dependencies = serializers.ListField(child=serializers.CharField())
    optional_dependencies = serializers.ListField(child=serializers.CharField())
    route_prefix = serializers.CharField(allow_null=True)
    permissions = serializers.ListField(child=serializers.CharField())
    registered_at = serializers.DateTimeField()


class DependencyValidationSerializer(serializers.Serializer):
    valid = serializers.BooleanField()
    missing_from_registry = serializers.ListField(child=serializers.CharField())
    circular_dependency = serializers.ListField(child=serializers.CharField(), allow_null=True)


class TenantModuleStatusSerializer(serializers.Serializer):
    """Serializer for a module's status within a tenant"""
    name = serializers.CharField()
    display_name = serializers.CharField()
    version = serializers.CharField()
    description = serializers.CharField()
    dependencies = serializers.ListField(child=serializers.CharField())
    optional_dependencies = serializers.ListField(child=serializers.CharField())
    required = serializers.BooleanField()
    enabled = serializers.BooleanField()
    loaded = serializers.BooleanField()
    enabled_by = serializers.CharField(allow_null=True)
    enabled_at = serializers.DateTimeField(allow_null=True)
    can_enable = serializers.BooleanField()
    missing_dependencies = serializers.ListField(child=serializers.CharField())


class EnableModuleSerializer(serializers.Serializer):
    """Input for enabling a module for a tenant"""
    module_name = serializers.CharField(max_length=100, trim_whitespace=False)

    def validate_module_name(self, value):
        if not MODULE_NAME_PATTERN.fullmatch(value):
            raise serializers.ValidationError(
                "Module name may only contain lowercase letters, digits and hyphens"
            )
        return value
