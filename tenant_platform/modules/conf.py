"""
Module system settings.

All settings live in the ``TENANT_MODULES`` dict in Django settings::

    TENANT_MODULES = {
        'MODULES_ROOT': BASE_DIR / 'business_modules',
        'CORE_MODULE': 'hr-core',
        'AUTO_DISCOVER': True,
        'ENFORCE_DISABLE_DEPENDENTS': True,
        'FACTORIES': {'hr-core': 'business_modules.hr_core.module.HRCoreModule'},
    }

Values are read from ``django.conf.settings`` on every access so that
``override_settings`` works in tests.
"""

from django.conf import settings


DEFAULTS = {
    'MODULES_ROOT': None,
    'CORE_MODULE': 'hr-core',
    'AUTO_DISCOVER': True,
    'ENFORCE_DISABLE_DEPENDENTS': True,
    'FACTORIES': {},
}


class ModuleSettings:
    def __getattr__(self, name):
        if name not in DEFAULTS:
            raise AttributeError(f"Invalid module setting: {name}")
        user_settings = getattr(settings, 'TENANT_MODULES', {}) or {}
        return user_settings.get(name, DEFAULTS[name])


module_settings = ModuleSettings()
