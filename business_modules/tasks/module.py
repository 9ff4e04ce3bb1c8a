"""
Tasks Module

Assigns tasks to employees. When the tenant also has email-service enabled,
assignees are notified by email.
"""

import logging

from rest_framework import status
from rest_framework.response import Response

from tenant_platform.modules.base import APIRoute, BaseModule

logger = logging.getLogger(__name__)


class TasksModule(BaseModule):

    def initialize(self, context, tenant_id=None):
        self.tasks = {}

    def cleanup(self):
        self.tasks.clear()

    def disable(self, tenant_id):
        self.tasks.pop(tenant_id, None)

    def get_api_routes(self):
        return [APIRoute('tasks', self.tasks_view, methods=['GET', 'POST'])]

    def notify(self, tenant_id, task):
        """Email the assignee if email-service is enabled for the tenant"""
        if not self.context.is_module_enabled(tenant_id, 'email-service'):
            return False
        email = self.context.loader.get_loaded_module('email-service').instance
        email.queue(tenant_id, task['assignee'], f"New task: {task['title']}")
        return True

    def tasks_view(self, request, tenant_id):
        tasks = self.tasks.setdefault(tenant_id, [])
        if request.method == 'GET':
            return Response({'tasks': tasks})

        title = request.data.get('title')
        assignee = request.data.get('assignee')
        if not title or not assignee:
            return Response(
                {'error': 'title and assignee are required'},
                status=status.HTTP_400_BAD_REQUEST
            )

        task = {'id': len(tasks) + 1, 'title': title, 'assignee': assignee}
        tasks.append(task)
        notified = self.notify(tenant_id, task)
        return Response({'task': task, 'notified': notified}, status=status.HTTP_201_CREATED)
