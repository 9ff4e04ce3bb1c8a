"""
Tests for module system API views
"""

from unittest.mock import patch

from django.apps import apps
from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from tenant_platform.modules.models import TenantModule

User = get_user_model()


class ModuleAPITestCase(APITestCase):
    """Base class wiring a fresh module system into the app config"""

    def setUp(self):
        app_config = apps.get_app_config('tenant_modules')
        self.registry, self.loader = app_config.build_module_system()
        patcher = patch.object(app_config, 'loader', self.loader)
        patcher.start()
        self.addCleanup(patcher.stop)

        self.user = User.objects.create_user(username='viewer', password='secret')
        self.admin = User.objects.create_user(username='admin', password='secret', is_staff=True)
        self.client.force_authenticate(user=self.admin)

    def enable(self, tenant_id, *module_names):
        for module_name in module_names:
            response = self.client.post(
                reverse('modules:tenant-modules', kwargs={'tenant_id': tenant_id}),
                {'module_name': module_name},
                format='json'
            )
            self.assertIn(response.status_code, (status.HTTP_200_OK, status.HTTP_201_CREATED), response.data)


class RegistryViewsTestCase(ModuleAPITestCase):
    """Test registry inspection endpoints"""

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)
        response = self.client.get(reverse('modules:registry'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_modules(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.get(reverse('modules:registry'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['initialized'])
        self.assertEqual(response.data['count'], 6)
        names = [module['name'] for module in response.data['modules']]
        self.assertEqual(names, ['documents', 'email-service', 'hr-core', 'leave', 'payroll', 'tasks'])

    def test_module_detail(self):
        response = self.client.get(reverse('modules:module-detail', kwargs={'module_name': 'payroll'}))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['module']['display_name'], 'Payroll')
        self.assertEqual(response.data['dependency_tree'], ['hr-core', 'email-service'])
        self.assertTrue(response.data['validation']['valid'])
        self.assertEqual(response.data['dependents'], [])
        self.assertFalse(response.data['loaded'])

    def test_module_detail_dependents(self):
        response = self.client.get(reverse('modules:module-detail', kwargs={'module_name': 'hr-core'}))
        self.assertEqual(response.data['dependents'], ['documents', 'leave', 'payroll', 'tasks'])

    def test_module_detail_not_found(self):
        response = self.client.get(reverse('modules:module-detail', kwargs={'module_name': 'ghost'}))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_load_order(self):
        response = self.client.get(reverse('modules:load-order'), {'modules': 'payroll, tasks'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['requested'], ['payroll', 'tasks'])
        self.assertEqual(response.data['load_order'], ['hr-core', 'email-service', 'payroll', 'tasks'])

    def test_load_order_requires_modules(self):
        response = self.client.get(reverse('modules:load-order'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_stats_admin_only(self):
        self.client.force_authenticate(user=self.user)
        self.assertEqual(self.client.get(reverse('modules:stats')).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.admin)
        self.enable('acme', 'leave')
        response = self.client.get(reverse('modules:stats'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['registered_modules'], 6)
        self.assertEqual(response.data['loaded_modules'], ['hr-core', 'leave'])
        self.assertEqual(response.data['tenants'], {'acme': 2})


class TenantModuleViewsTestCase(ModuleAPITestCase):
    """Test enabling and disabling modules over HTTP"""

    def url(self, tenant_id='acme'):
        return reverse('modules:tenant-modules', kwargs={'tenant_id': tenant_id})

    def detail_url(self, module_name, tenant_id='acme'):
        return reverse('modules:tenant-module-detail', kwargs={'tenant_id': tenant_id, 'module_name': module_name})

    def test_list_tenant_modules(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.get(self.url())

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['tenant_id'], 'acme')
        modules = {module['name']: module for module in response.data['modules']}
        self.assertTrue(modules['hr-core']['enabled'])
        self.assertTrue(modules['hr-core']['required'])
        self.assertFalse(modules['payroll']['can_enable'])

    def test_enable_requires_staff(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.post(self.url(), {'module_name': 'tasks'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_enable_module(self):
        response = self.client.post(self.url(), {'module_name': 'tasks'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertFalse(response.data['already_enabled'])
        self.assertEqual(response.data['missing_optional_dependencies'], ['email-service'])
        self.assertEqual(
            TenantModule.objects.get(tenant_id='acme', module_name='tasks').enabled_by,
            'admin'
        )

        response = self.client.post(self.url(), {'module_name': 'tasks'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['already_enabled'])

    def test_enable_missing_dependencies(self):
        response = self.client.post(self.url(), {'module_name': 'payroll'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['missing_dependencies'], ['email-service'])

    def test_enable_unknown_module(self):
        response = self.client.post(self.url(), {'module_name': 'ghost'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_enable_invalid_name(self):
        response = self.client.post(self.url(), {'module_name': 'Bad Name'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('module_name', response.data)

    def test_enable_name_with_trailing_newline(self):
        response = self.client.post(self.url(), {'module_name': 'tasks\n'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('module_name', response.data)
        self.assertFalse(TenantModule.objects.filter(tenant_id='acme', module_name='tasks').exists())

    def test_enable_load_failure(self):
        self.loader.factories.unregister('leave')

        with self.assertLogs('tenant_platform.modules.views', level='ERROR'):
            response = self.client.post(self.url(), {'module_name': 'leave'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertFalse(TenantModule.objects.filter(module_name='leave').exists())

    def test_disable_module(self):
        self.enable('acme', 'leave')

        response = self.client.delete(self.detail_url('leave'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['disabled'])
        self.assertFalse(TenantModule.objects.filter(tenant_id='acme', module_name='leave').exists())

    def test_disable_blocked_by_dependents(self):
        self.enable('acme', 'email-service', 'payroll')

        response = self.client.delete(self.detail_url('email-service'))
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['dependent_modules'], ['payroll'])

        response = self.client.delete(self.detail_url('email-service') + '?force=true')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['disabled'])

    def test_disable_core_module(self):
        response = self.client.delete(self.detail_url('hr-core'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ModuleRouteViewTestCase(ModuleAPITestCase):
    """Test dispatching requests to module routes"""

    def route_url(self, module_name, path, tenant_id='acme'):
        return reverse(
            'modules:module-route',
            kwargs={'tenant_id': tenant_id, 'module_name': module_name, 'path': path}
        )

    def test_route_for_enabled_module(self):
        self.enable('acme', 'tasks')

        response = self.client.get(self.route_url('tasks', 'tasks'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'tasks': []})

        response = self.client.post(
            self.route_url('tasks', 'tasks'),
            {'title': 'Onboard Sam', 'assignee': 'sam@acme'},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertFalse(response.data['notified'])

    def test_optional_dependency_used_when_enabled(self):
        self.enable('acme', 'email-service', 'tasks')

        response = self.client.post(
            self.route_url('tasks', 'tasks'),
            {'title': 'Onboard Sam', 'assignee': 'sam@acme'},
            format='json'
        )
        self.assertTrue(response.data['notified'])

        response = self.client.get(self.route_url('email-service', 'outbox'))
        self.assertEqual(response.data['messages'][0]['to'], 'sam@acme')

    def test_module_not_enabled(self):
        self.enable('acme', 'leave')

        response = self.client.get(self.route_url('leave', 'policy', tenant_id='globex'))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Module not enabled')

    def test_unknown_module(self):
        response = self.client.get(self.route_url('ghost', 'anything'))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Module not found')

    def test_unknown_route(self):
        response = self.client.get(self.route_url('hr-core', 'payslips'))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_method_not_allowed(self):
        response = self.client.post(self.route_url('hr-core', 'status'), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)

    def test_module_root_route(self):
        url = reverse('modules:module-root', kwargs={'tenant_id': 'acme', 'module_name': 'hr-core'})
        self.assertTrue(url.endswith('/m/hr-core/'))

        response = self.client.get(url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'module': 'hr-core', 'tenant_id': 'acme', 'department_count': 1})

    def test_module_root_without_root_route(self):
        self.enable('acme', 'leave')

        response = self.client.get(
            reverse('modules:module-root', kwargs={'tenant_id': 'acme', 'module_name': 'leave'})
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_nested_route_path(self):
        self.enable('acme', 'email-service', 'payroll')

        response = self.client.post(self.route_url('payroll', 'runs/start'), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.get(self.route_url('payroll', 'runs'))
        self.assertEqual(len(response.data['runs']), 1)

    def test_per_tenant_module_state(self):
        self.enable('acme', 'documents', 'leave')
        self.enable('globex', 'documents')

        response = self.client.get(self.route_url('documents', 'folders'))
        self.assertEqual(response.data['folders'], ['Contracts', 'Policies'])
        self.assertFalse(response.data['sharing_enabled'])

        response = self.client.get(self.route_url('leave', 'policy'))
        self.assertEqual(response.data, {'allowance_days': 25})

        self.client.post(self.route_url('hr-core', 'departments', tenant_id='globex'), {'name': 'Sales'}, format='json')
        response = self.client.get(self.route_url('hr-core', 'departments'))
        self.assertEqual(response.data['departments'], ['General'])
