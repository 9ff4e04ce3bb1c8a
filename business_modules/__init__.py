"""
Business modules shipped with the platform.

Each subdirectory is one module: a ``module.yaml`` declaring its identity and
dependencies, and a ``module.py`` holding its BaseModule subclass.
"""
