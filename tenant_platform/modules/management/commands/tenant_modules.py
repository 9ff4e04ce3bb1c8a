"""
Management command for inspecting modules and managing tenant enablement.

Usage:
    python manage.py tenant_modules list
    python manage.py tenant_modules validate
    python manage.py tenant_modules load-order payroll tasks
    python manage.py tenant_modules tenant --tenant=acme
    python manage.py tenant_modules enable payroll --tenant=acme --by=admin
    python manage.py tenant_modules disable payroll --tenant=acme [--force]
    python manage.py tenant_modules stats
"""

import json

from django.apps import apps
from django.core.management.base import BaseCommand, CommandError

from tenant_platform.modules.exceptions import (
    ModuleDependencyMissing,
    ModuleDependentsEnabled,
    ModuleError,
)
from tenant_platform.modules.services import ModuleManagementService


class Command(BaseCommand):
    help = 'Inspect the module registry and enable or disable modules for tenants'

    def add_arguments(self, parser):
        parser.add_argument(
            'operation',
            type=str,
            choices=['list', 'validate', 'load-order', 'tenant', 'enable', 'disable', 'stats'],
            help='Operation to perform'
        )
        parser.add_argument(
            'modules',
            nargs='*',
            help='Module names the operation applies to'
        )
        parser.add_argument(
            '--tenant',
            type=str,
            help='Tenant identifier'
        )
        parser.add_argument(
            '--by',
            type=str,
            default='cli',
            help='Recorded as the user who enabled the module (default: cli)'
        )
        parser.add_argument(
            '--force',
            action='store_true',
            help='Disable even if enabled modules depend on it'
        )
        parser.add_argument(
            '--format',
            choices=['table', 'json'],
            default='table',
            help='Output format (default: table)'
        )

    def handle(self, *args, **options):
        self.loader = apps.get_app_config('tenant_modules').loader
        self.service = ModuleManagementService(self.loader)
        self.format = options['format']

        operation = options['operation'].replace('-', '_')
        handler = getattr(self, f'handle_{operation}')
        try:
            handler(options)
        except ModuleDependencyMissing as e:
            raise CommandError(f"{e} (enable these first: {', '.join(e.missing)})")
        except ModuleDependentsEnabled as e:
            raise CommandError(f"{e} (use --force to override)")
        except ModuleError as e:
            raise CommandError(str(e))

    def _require_tenant(self, options):
        if not options['tenant']:
            raise CommandError('--tenant is required for this operation')
        return options['tenant']

    def _require_modules(self, options):
        if not options['modules']:
            raise CommandError('At least one module name is required')
        return options['modules']

    def _write_json(self, data):
        self.stdout.write(json.dumps(data, indent=2, default=str))

    def handle_list(self, options):
        modules = self.loader.registry.all_modules()
        if self.format == 'json':
            self._write_json([descriptor.to_dict() for descriptor in modules])
            return

        if not modules:
            self.stdout.write(self.style.WARNING('No modules registered'))
            return

        self.stdout.write(f"{'NAME':<20} {'VERSION':<10} DEPENDENCIES")
        for descriptor in modules:
            deps = ', '.join(descriptor.dependencies) or '-'
            self.stdout.write(f"{descriptor.name:<20} {descriptor.version:<10} {deps}")

    def handle_validate(self, options):
        names = options['modules'] or self.loader.registry.module_names()
        results = [self.loader.resolver.validate_dependencies(name) for name in names]

        if self.format == 'json':
            self._write_json([result.__dict__ for result in results])
        else:
            for result in results:
                if result.valid:
                    self.stdout.write(self.style.SUCCESS(f"{result.module_name}: OK"))
                    continue
                problems = []
                if result.missing_from_registry:
                    problems.append(f"missing from registry: {', '.join(result.missing_from_registry)}")
                if result.circular_dependency:
                    problems.append(f"circular dependency: {' -> '.join(result.circular_dependency)}")
                self.stdout.write(self.style.ERROR(f"{result.module_name}: {'; '.join(problems)}"))

        if not all(result.valid for result in results):
            raise CommandError('Module dependency validation failed')

    def handle_load_order(self, options):
        order = self.loader.resolver.get_load_order(self._require_modules(options))
        if self.format == 'json':
            self._write_json(order)
            return
        for position, name in enumerate(order, start=1):
            self.stdout.write(f"{position}. {name}")

    def handle_tenant(self, options):
        tenant_id = self._require_tenant(options)
        modules = self.service.get_tenant_modules(tenant_id)
        if self.format == 'json':
            self._write_json(modules)
            return

        for module in modules:
            if module['enabled']:
                marker = self.style.SUCCESS('enabled ')
            else:
                marker = 'disabled'
            detail = ''
            if not module['enabled'] and module['missing_dependencies']:
                detail = f" (needs {', '.join(module['missing_dependencies'])})"
            self.stdout.write(f"{marker} {module['name']}{detail}")

    def handle_enable(self, options):
        tenant_id = self._require_tenant(options)
        for module_name in self._require_modules(options):
            result = self.service.enable_module(tenant_id, module_name, enabled_by=options['by'])
            if result.already_enabled:
                self.stdout.write(f"{module_name} already enabled for {tenant_id}")
            else:
                self.stdout.write(self.style.SUCCESS(f"Enabled {module_name} for {tenant_id}"))
            if result.resolution.missing_optional_dependencies:
                self.stdout.write(self.style.WARNING(result.resolution.message))

    def handle_disable(self, options):
        tenant_id = self._require_tenant(options)
        for module_name in self._require_modules(options):
            changed = self.service.disable_module(tenant_id, module_name, force=options['force'])
            if changed:
                self.stdout.write(self.style.SUCCESS(f"Disabled {module_name} for {tenant_id}"))
            else:
                self.stdout.write(f"{module_name} was not enabled for {tenant_id}")

    def handle_stats(self, options):
        stats = self.loader.get_stats()
        if self.format == 'json':
            self._write_json(stats)
            return
        self.stdout.write(f"Registered modules: {stats['registered_modules']}")
        self.stdout.write(f"Loaded modules: {', '.join(stats['loaded_modules']) or '-'}")
        self.stdout.write(f"Tenants: {stats['tenant_count']}")
