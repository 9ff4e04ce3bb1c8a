"""
Payroll Module

Payroll runs for a tenant's employees. Payslips are always sent through
email-service, which is why it is a hard dependency.
"""

import logging

from django.utils import timezone
from rest_framework import status
from rest_framework.response import Response

from tenant_platform.modules.base import APIRoute, BaseModule

logger = logging.getLogger(__name__)


class PayrollModule(BaseModule):

    def initialize(self, context, tenant_id=None):
        self.runs = {}

    def cleanup(self):
        self.runs.clear()

    def get_api_routes(self):
        return [
            APIRoute('runs', self.runs_view),
            APIRoute('runs/start', self.start_run_view, methods=['POST'], name='payroll_start_run'),
        ]

    def runs_view(self, request, tenant_id):
        return Response({'runs': self.runs.get(tenant_id, [])})

    def start_run_view(self, request, tenant_id):
        runs = self.runs.setdefault(tenant_id, [])
        run = {'id': len(runs) + 1, 'started_at': timezone.now().isoformat()}
        runs.append(run)

        email = self.context.loader.get_loaded_module('email-service')
        if email is not None:
            email.instance.queue(tenant_id, 'payroll@tenant', f"Payroll run {run['id']} started")

        logger.info(f"Started payroll run {run['id']} for tenant {tenant_id}")
        return Response({'run': run}, status=status.HTTP_201_CREATED)
