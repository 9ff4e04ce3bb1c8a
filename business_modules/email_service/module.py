import logging

from django.conf import settings
from rest_framework.response import Response

from tenant_platform.modules.base import APIRoute, BaseModule

logger = logging.getLogger(__name__)


class EmailServiceModule(BaseModule):
    """
    Queues outbound notifications per tenant.

    Messages are kept in memory; delivery is left to the deployment's
    email backend.
    """

    def initialize(self, context, tenant_id=None):
        self.outbox = {}
        self.from_address = self.get_option('default_from_email') or getattr(
            settings, 'DEFAULT_FROM_EMAIL', 'noreply@localhost'
        )

    def cleanup(self):
        pending = sum(len(messages) for messages in self.outbox.values())
        if pending:
            logger.warning(f"Discarding {pending} unsent notifications")
        self.outbox.clear()

    def queue(self, tenant_id, recipient, subject):
        """Queue a notification for a tenant"""
        message = {'from': self.from_address, 'to': recipient, 'subject': subject}
        self.outbox.setdefault(tenant_id, []).append(message)
        return message

    def get_api_routes(self):
        return [APIRoute('outbox', self.outbox_view)]

    def outbox_view(self, request, tenant_id):
        return Response({'messages': self.outbox.get(tenant_id, [])})
