"""
Module System URLs
"""

from django.urls import path

from .views import (
    LoadOrderView,
    ModuleDetailView,
    ModuleRegistryView,
    ModuleRouteView,
    ModuleStatsView,
    TenantModuleDetailView,
    TenantModuleListView,
)

app_name = 'modules'

urlpatterns = [
    path('registry/', ModuleRegistryView.as_view(), name='registry'),
    path('registry/load-order/', LoadOrderView.as_view(), name='load-order'),
    path('registry/<slug:module_name>/', ModuleDetailView.as_view(), name='module-detail'),
    path('stats/', ModuleStatsView.as_view(), name='stats'),
    path('tenants/<str:tenant_id>/modules/', TenantModuleListView.as_view(), name='tenant-modules'),
    path(
        'tenants/<str:tenant_id>/modules/<slug:module_name>/',
        TenantModuleDetailView.as_view(),
        name='tenant-module-detail'
    ),
    path(
        'tenants/<str:tenant_id>/m/<slug:module_name>/',
        ModuleRouteView.as_view(),
        name='module-root'
    ),
    path(
        'tenants/<str:tenant_id>/m/<slug:module_name>/<path:path>',
        ModuleRouteView.as_view(),
        name='module-route'
    ),
]
