"""
Tests for module descriptors
"""

from django.test import SimpleTestCase

from tenant_platform.modules.descriptor import ModuleDescriptor, validate_descriptor_data
from tenant_platform.modules.exceptions import ModuleValidationError

from .utils import descriptor_data


class ModuleDescriptorTestCase(SimpleTestCase):
    """Test building descriptors from raw data"""

    def test_from_dict(self):
        descriptor = ModuleDescriptor.from_dict(
            descriptor_data('payroll', ['hr-core', 'email-service'], routePrefix='payroll')
        )

        self.assertEqual(descriptor.name, 'payroll')
        self.assertEqual(descriptor.display_name, 'Payroll')
        self.assertEqual(descriptor.dependencies, ('hr-core', 'email-service'))
        self.assertEqual(descriptor.optional_dependencies, ())
        self.assertEqual(descriptor.route_prefix, 'payroll')
        self.assertIsNotNone(descriptor.registered_at)

    def test_snake_case_keys(self):
        descriptor = ModuleDescriptor.from_dict({
            'name': 'tasks',
            'display_name': 'Tasks',
            'version': '1.0.0',
            'description': 'Task tracking',
            'optional_dependencies': ['email-service'],
        })

        self.assertEqual(descriptor.display_name, 'Tasks')
        self.assertEqual(descriptor.optional_dependencies, ('email-service',))

    def test_duplicate_dependencies_removed(self):
        descriptor = ModuleDescriptor.from_dict(
            descriptor_data('payroll', ['hr-core', 'email-service', 'hr-core'])
        )
        self.assertEqual(descriptor.dependencies, ('hr-core', 'email-service'))

    def test_missing_fields_reported(self):
        with self.assertRaises(ModuleValidationError) as ctx:
            ModuleDescriptor.from_dict({'name': 'tasks'})

        self.assertEqual(
            sorted(ctx.exception.fields),
            ['description', 'displayName', 'version']
        )
        self.assertEqual(ctx.exception.module_name, 'tasks')

    def test_invalid_name(self):
        for name in ('Payroll', 'pay_roll', 'pay roll', '', 'payroll\n'):
            errors = validate_descriptor_data(dict(descriptor_data('x'), name=name))
            self.assertIn('name', errors, name)

    def test_dependencies_must_be_string_list(self):
        errors = validate_descriptor_data(dict(descriptor_data('tasks'), dependencies='hr-core'))
        self.assertIn('dependencies', errors)

        errors = validate_descriptor_data(dict(descriptor_data('tasks'), optionalDependencies=[1]))
        self.assertIn('optionalDependencies', errors)

    def test_not_a_mapping(self):
        self.assertEqual(validate_descriptor_data(['tasks']), {'descriptor': 'Descriptor must be a mapping'})

    def test_descriptor_is_immutable(self):
        descriptor = ModuleDescriptor.from_dict(descriptor_data('tasks'))
        with self.assertRaises(AttributeError):
            descriptor.name = 'other'

    def test_depends_on(self):
        descriptor = ModuleDescriptor.from_dict(
            descriptor_data('tasks', ['hr-core'], optional=['email-service'])
        )
        self.assertTrue(descriptor.depends_on('hr-core'))
        self.assertFalse(descriptor.depends_on('email-service'))

    def test_to_dict(self):
        descriptor = ModuleDescriptor.from_dict(descriptor_data('tasks', ['hr-core']))
        data = descriptor.to_dict()

        self.assertEqual(data['displayName'], 'Tasks')
        self.assertEqual(data['dependencies'], ['hr-core'])
        self.assertIn('registeredAt', data)
        self.assertEqual(str(descriptor), 'Tasks (tasks@1.0.0)')
