"""
Tests for the tenant_modules management command
"""

import json
from io import StringIO
from unittest.mock import patch

from django.apps import apps
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from tenant_platform.modules.models import TenantModule

from .utils import build_loader


class TenantModulesCommandTestCase(TestCase):
    """Test tenant_modules command"""

    def setUp(self):
        self.loader = build_loader()
        app_config = apps.get_app_config('tenant_modules')
        patcher = patch.object(app_config, 'loader', self.loader)
        patcher.start()
        self.addCleanup(patcher.stop)

    def run_command(self, *args, **options):
        out = StringIO()
        call_command('tenant_modules', *args, stdout=out, no_color=True, **options)
        return out.getvalue()

    def test_list(self):
        output = self.run_command('list')

        self.assertIn('payroll', output)
        self.assertIn('hr-core, email-service', output)

    def test_list_json(self):
        data = json.loads(self.run_command('list', format='json'))
        self.assertEqual([module['name'] for module in data], ['hr-core', 'email-service', 'tasks', 'leave', 'payroll'])

    def test_validate(self):
        output = self.run_command('validate')
        self.assertIn('payroll: OK', output)

    def test_validate_failure(self):
        self.loader.registry.register({
            'name': 'billing',
            'displayName': 'Billing',
            'version': '1.0.0',
            'description': 'Invoices',
            'dependencies': ['ledger'],
        })

        out = StringIO()
        with self.assertRaises(CommandError):
            call_command('tenant_modules', 'validate', stdout=out, no_color=True)
        self.assertIn('billing: missing from registry: ledger', out.getvalue())

    def test_load_order(self):
        output = self.run_command('load-order', 'payroll', 'tasks')
        self.assertEqual(
            output.splitlines(),
            ['1. hr-core', '2. email-service', '3. payroll', '4. tasks']
        )

    def test_load_order_requires_modules(self):
        with self.assertRaises(CommandError):
            self.run_command('load-order')

    def test_enable(self):
        output = self.run_command('enable', 'email-service', 'payroll', tenant='acme', by='ops')

        self.assertIn('Enabled payroll for acme', output)
        self.assertEqual(TenantModule.objects.get(tenant_id='acme', module_name='payroll').enabled_by, 'ops')

        output = self.run_command('enable', 'payroll', tenant='acme')
        self.assertIn('already enabled', output)

    def test_enable_requires_tenant(self):
        with self.assertRaises(CommandError):
            self.run_command('enable', 'payroll')

    def test_enable_missing_dependencies(self):
        with self.assertRaisesMessage(CommandError, 'enable these first: email-service'):
            self.run_command('enable', 'payroll', tenant='acme')

    def test_disable(self):
        self.run_command('enable', 'email-service', 'payroll', tenant='acme')

        with self.assertRaisesMessage(CommandError, 'use --force'):
            self.run_command('disable', 'email-service', tenant='acme')

        output = self.run_command('disable', 'email-service', tenant='acme', force=True)
        self.assertIn('Disabled email-service for acme', output)

        output = self.run_command('disable', 'email-service', tenant='acme')
        self.assertIn('was not enabled', output)

    def test_disable_core_module(self):
        with self.assertRaises(CommandError):
            self.run_command('disable', 'hr-core', tenant='acme')

    def test_tenant(self):
        self.run_command('enable', 'tasks', tenant='acme')

        output = self.run_command('tenant', tenant='acme')
        self.assertIn('tasks', output)
        self.assertIn('payroll (needs email-service)', output)

        data = json.loads(self.run_command('tenant', tenant='acme', format='json'))
        enabled = [module['name'] for module in data if module['enabled']]
        self.assertEqual(enabled, ['hr-core', 'tasks'])

    def test_stats(self):
        self.run_command('enable', 'leave', tenant='acme')

        output = self.run_command('stats')
        self.assertIn('Registered modules: 5', output)
        self.assertIn('Loaded modules: hr-core, leave', output)
        self.assertIn('Tenants: 1', output)
