from rest_framework.response import Response

from tenant_platform.modules.base import APIRoute, BaseModule


DEFAULT_ALLOWANCE_DAYS = 25


class LeaveModule(BaseModule):
    """Leave balances per tenant"""

    def initialize(self, context, tenant_id=None):
        self.allowance = self.get_option('leave_allowance_days', DEFAULT_ALLOWANCE_DAYS)
        self.policies = {}

    def enable(self, tenant_id):
        self.policies[tenant_id] = {'allowance_days': self.allowance}

    def disable(self, tenant_id):
        self.policies.pop(tenant_id, None)

    def get_api_routes(self):
        return [APIRoute('policy', self.policy_view)]

    def policy_view(self, request, tenant_id):
        return Response(self.policies.get(tenant_id, {'allowance_days': self.allowance}))
