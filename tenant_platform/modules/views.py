"""
Module System Views
"""

import logging

from django.apps import apps
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .exceptions import (
    ModuleDependencyMissing,
    ModuleDependentsEnabled,
    ModuleInitializationError,
    ModuleLoadError,
    ModuleNotFound,
    ModuleStateError,
)
from .serializers import (
    DependencyValidationSerializer,
    EnableModuleSerializer,
    ModuleDescriptorSerializer,
    TenantModuleStatusSerializer,
)
from .services import ModuleManagementService

logger = logging.getLogger(__name__)


class ModuleSystemMixin:
    """Access to the application's module system from a view"""

    @property
    def loader(self):
        return apps.get_app_config('tenant_modules').loader

    @property
    def registry(self):
        return self.loader.registry

    @property
    def resolver(self):
        return self.loader.resolver

    def get_service(self) -> ModuleManagementService:
        return ModuleManagementService(self.loader)


class ModuleRegistryView(ModuleSystemMixin, APIView):
    """
    List every registered module.
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        serializer = ModuleDescriptorSerializer(self.registry.all_modules(), many=True)
        return Response({
            'initialized': self.registry.is_initialized,
            'count': len(self.registry),
            'modules': serializer.data,
        })


class ModuleDetailView(ModuleSystemMixin, APIView):
    """
    Show a module's descriptor and dependency diagnostics.
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, module_name):
        descriptor = self.registry.get_module(module_name)
        if descriptor is None:
            return Response(
                {'error': f"Module {module_name} not found"},
                status=status.HTTP_404_NOT_FOUND
            )

        validation = self.resolver.validate_dependencies(module_name)
        return Response({
            'module': ModuleDescriptorSerializer(descriptor).data,
            'validation': DependencyValidationSerializer(validation).data,
            'dependency_tree': self.resolver.get_dependency_tree(module_name),
            'dependents': self.registry.get_dependent_modules(module_name),
            'loaded': self.loader.is_module_loaded(module_name),
        })


class LoadOrderView(ModuleSystemMixin, APIView):
    """
    Compute the load order for a comma-separated list of modules.
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        raw = request.query_params.get('modules', '')
        module_names = [name.strip() for name in raw.split(',') if name.strip()]
        if not module_names:
            return Response(
                {'error': 'modules query parameter is required'},
                status=status.HTTP_400_BAD_REQUEST
            )

        return Response({
            'requested': module_names,
            'load_order': self.resolver.get_load_order(module_names),
        })


class ModuleStatsView(ModuleSystemMixin, APIView):
    permission_classes = [permissions.IsAdminUser]

    def get(self, request):
        return Response(self.loader.get_stats())


class TenantModuleListView(ModuleSystemMixin, APIView):
    """
    List a tenant's modules, or enable a module for the tenant.
    """

    def get_permissions(self):
        if self.request.method in permissions.SAFE_METHODS:
            return [permissions.IsAuthenticated()]
        return [permissions.IsAdminUser()]

    def get(self, request, tenant_id):
        modules = self.get_service().get_tenant_modules(tenant_id)
        serializer = TenantModuleStatusSerializer(modules, many=True)
        return Response({'tenant_id': tenant_id, 'modules': serializer.data})

    def post(self, request, tenant_id):
        serializer = EnableModuleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        module_name = serializer.validated_data['module_name']

        try:
            result = self.get_service().enable_module(
                tenant_id, module_name, enabled_by=request.user.get_username()
            )
        except ModuleNotFound as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except ModuleDependencyMissing as e:
            return Response(
                {'error': str(e), 'missing_dependencies': e.missing},
                status=status.HTTP_400_BAD_REQUEST
            )
        except (ModuleLoadError, ModuleInitializationError) as e:
            logger.error(f"Failed to enable module {module_name} for tenant {tenant_id}: {e}")
            return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)

        return Response(
            {
                'tenant_id': tenant_id,
                'module_name': module_name,
                'already_enabled': result.already_enabled,
                'missing_optional_dependencies': result.resolution.missing_optional_dependencies,
                'message': result.resolution.message,
            },
            status=status.HTTP_200_OK if result.already_enabled else status.HTTP_201_CREATED
        )


class TenantModuleDetailView(ModuleSystemMixin, APIView):
    """
    Disable a module for a tenant.
    """
    permission_classes = [permissions.IsAdminUser]

    def delete(self, request, tenant_id, module_name):
        force = request.query_params.get('force', '').lower() in ('1', 'true', 'yes')

        try:
            changed = self.get_service().disable_module(tenant_id, module_name, force=force)
        except ModuleDependentsEnabled as e:
            return Response(
                {'error': str(e), 'dependent_modules': e.dependents},
                status=status.HTTP_409_CONFLICT
            )
        except ModuleStateError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            'tenant_id': tenant_id,
            'module_name': module_name,
            'disabled': changed,
        })


class ModuleRouteView(ModuleSystemMixin, APIView):
    """
    Dispatch a request to a route served by a tenant's enabled module.
    """
    permission_classes = [permissions.IsAuthenticated]

    def dispatch_route(self, request, tenant_id, module_name, path=''):
        access = self.get_service().check_module_access(tenant_id, module_name)
        if not access.has_access:
            return Response(
                {'error': access.reason, 'module_name': module_name},
                status=status.HTTP_403_FORBIDDEN
            )

        route = self.loader.get_route(module_name, path)
        if route is None:
            return Response(
                {'error': f"Route '{path}' not found in module {module_name}"},
                status=status.HTTP_404_NOT_FOUND
            )
        if not route.allows(request.method):
            return Response(status=status.HTTP_405_METHOD_NOT_ALLOWED)

        return route.view_func(request, tenant_id=tenant_id)

    def get(self, request, tenant_id, module_name, path=''):
        return self.dispatch_route(request, tenant_id, module_name, path)

    def post(self, request, tenant_id, module_name, path=''):
        return self.dispatch_route(request, tenant_id, module_name, path)
