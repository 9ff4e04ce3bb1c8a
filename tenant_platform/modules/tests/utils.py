"""
Shared fixtures for module system tests
"""

from rest_framework.response import Response

from tenant_platform.modules.base import APIRoute, BaseModule
from tenant_platform.modules.factories import ModuleFactoryTable
from tenant_platform.modules.loader import ModuleLoader
from tenant_platform.modules.registry import ModuleRegistry


def descriptor_data(name, dependencies=None, optional=None, **extra):
    """Minimal valid descriptor data for ``name``"""
    data = {
        'name': name,
        'displayName': name.replace('-', ' ').title(),
        'version': '1.0.0',
        'description': f"The {name} module",
        'dependencies': list(dependencies or []),
        'optionalDependencies': list(optional or []),
    }
    data.update(extra)
    return data


def build_registry(graph, optional=None):
    """
    Build an initialized registry from ``{name: [hard deps]}``.

    ``optional`` maps names to optional dependencies.
    """
    optional = optional or {}
    registry = ModuleRegistry()
    for name, dependencies in graph.items():
        registry.register(descriptor_data(name, dependencies, optional.get(name)))
    registry.mark_initialized()
    return registry


# hr-core is the core module; payroll needs email-service, tasks only wants it
HR_GRAPH = {
    'hr-core': [],
    'email-service': [],
    'tasks': ['hr-core'],
    'leave': ['hr-core'],
    'payroll': ['hr-core', 'email-service'],
}
HR_OPTIONAL = {'tasks': ['email-service']}


class RecordingModule(BaseModule):
    """Module that records lifecycle calls"""

    def __init__(self, descriptor):
        super().__init__(descriptor)
        self.calls = []

    def initialize(self, context, tenant_id=None):
        self.calls.append(('initialize', tenant_id))

    def cleanup(self):
        self.calls.append(('cleanup',))

    def enable(self, tenant_id):
        self.calls.append(('enable', tenant_id))

    def disable(self, tenant_id):
        self.calls.append(('disable', tenant_id))

    def get_api_routes(self):
        return [APIRoute('ping', self.ping, methods=['GET'])]

    def ping(self, request, tenant_id):
        return Response({'module': self.module_name, 'tenant_id': tenant_id})


class FailingInitModule(RecordingModule):
    def initialize(self, context, tenant_id=None):
        raise RuntimeError('database unavailable')


class FailingCleanupModule(RecordingModule):
    def cleanup(self):
        raise RuntimeError('cleanup exploded')


class FailingEnableModule(RecordingModule):
    def enable(self, tenant_id):
        raise RuntimeError('tenant setup failed')


def build_loader(graph=None, optional=None, factories=None, core_module='hr-core', **kwargs):
    """
    Build a loader over ``graph`` where every module uses RecordingModule
    unless ``factories`` says otherwise.
    """
    registry = build_registry(HR_GRAPH if graph is None else graph, HR_OPTIONAL if optional is None else optional)
    table = ModuleFactoryTable()
    overrides = factories or {}
    for name in registry.module_names():
        table.register(name, overrides.get(name, RecordingModule))
    return ModuleLoader(registry, factories=table, core_module=core_module, **kwargs)
