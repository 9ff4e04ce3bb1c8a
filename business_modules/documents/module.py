from rest_framework.response import Response

from tenant_platform.modules.base import APIRoute, BaseModule


class DocumentsModule(BaseModule):
    """Document storage per tenant, with email sharing when available"""

    def initialize(self, context, tenant_id=None):
        self.folders = {}

    def enable(self, tenant_id):
        self.folders.setdefault(tenant_id, ['Contracts', 'Policies'])

    def get_api_routes(self):
        return [APIRoute('folders', self.folders_view)]

    def folders_view(self, request, tenant_id):
        return Response({
            'folders': self.folders.get(tenant_id, []),
            'sharing_enabled': self.context.is_module_enabled(tenant_id, 'email-service'),
        })
