"""
Tenant Platform

Django project hosting the tenant module system: a registry of pluggable
feature modules, dependency resolution between them, and per-tenant
enablement with on-demand loading.
"""

__version__ = '1.0.0'
