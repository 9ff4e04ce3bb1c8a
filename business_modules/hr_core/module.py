"""
HR Core Module

The core module every tenant has enabled. Other HR modules hard-depend on it
for the employee directory.
"""

import logging

from rest_framework.response import Response

from tenant_platform.modules.base import APIRoute, BaseModule

logger = logging.getLogger(__name__)


class HRCoreModule(BaseModule):
    """Employee directory shared by the HR modules"""

    def initialize(self, context, tenant_id=None):
        self.directories = {}
        logger.info(f"HR Core initialized (version {self.version})")

    def cleanup(self):
        self.directories.clear()

    def enable(self, tenant_id):
        self.directories.setdefault(tenant_id, {'departments': ['General']})

    def disable(self, tenant_id):
        self.directories.pop(tenant_id, None)

    def get_api_routes(self):
        return [
            APIRoute('', self.overview_view, name='hr_overview'),
            APIRoute('status', self.status_view, name='hr_status'),
            APIRoute('departments', self.departments_view, methods=['GET', 'POST']),
        ]

    def overview_view(self, request, tenant_id):
        directory = self.directories.get(tenant_id, {'departments': []})
        return Response({
            'module': self.module_name,
            'tenant_id': tenant_id,
            'department_count': len(directory['departments']),
        })

    def status_view(self, request, tenant_id):
        return Response({
            'module': self.module_name,
            'version': self.version,
            'tenant_id': tenant_id,
        })

    def departments_view(self, request, tenant_id):
        directory = self.directories.setdefault(tenant_id, {'departments': ['General']})
        if request.method == 'POST':
            name = request.data.get('name')
            if name and name not in directory['departments']:
                directory['departments'].append(name)
        return Response({'departments': directory['departments']})
