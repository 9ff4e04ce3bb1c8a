"""
Module System Signals

Django signals for module lifecycle events.
"""

from django.dispatch import Signal

# Registry signals
module_registered = Signal()  # When a descriptor is registered (or overwritten)

# Module runtime signals
module_loaded = Signal()      # When a module's code is loaded into memory
module_unloaded = Signal()    # When a module's code is unloaded from memory
module_error = Signal()       # When a module fails to load or initialize

# Tenant signals
module_enabled = Signal()     # When a module is enabled for a tenant
module_disabled = Signal()    # When a module is disabled for a tenant
