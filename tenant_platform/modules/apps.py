import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class ModulesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'tenant_platform.modules'
    label = 'tenant_modules'
    verbose_name = 'Tenant Modules'

    registry = None
    loader = None

    def ready(self):
        self.registry, self.loader = self.build_module_system()

    def build_module_system(self):
        """
        Compose the registry, factory table and loader from settings.

        This is the only place the module system's long-lived objects are
        created; everything else receives them from here.
        """
        from .conf import module_settings
        from .factories import ModuleFactoryTable
        from .loader import ModuleLoader
        from .registry import ModuleRegistry

        registry = ModuleRegistry()
        if module_settings.AUTO_DISCOVER and module_settings.MODULES_ROOT:
            registry.initialize(module_settings.MODULES_ROOT)
        else:
            registry.mark_initialized()

        loader = ModuleLoader(
            registry,
            factories=ModuleFactoryTable.from_mapping(module_settings.FACTORIES),
            core_module=module_settings.CORE_MODULE,
            enforce_disable_dependents=module_settings.ENFORCE_DISABLE_DEPENDENTS,
        )

        if module_settings.CORE_MODULE and not registry.has_module(module_settings.CORE_MODULE):
            logger.warning(f"Core module {module_settings.CORE_MODULE} is not registered")

        return registry, loader
