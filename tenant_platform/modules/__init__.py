"""
Tenant Module System

Registry, dependency resolver and loader that let each tenant enable its own
set of feature modules at runtime.

Key components:
- ModuleRegistry: catalog of module descriptors
- DependencyResolver: graph checks over the registry
- ModuleLoader: loads module code and tracks per-tenant enablement
- ModuleManagementService: persists tenant enablement

The application's instances are built in ModulesConfig.ready() and are
reachable through ``apps.get_app_config('tenant_modules')``.
"""
