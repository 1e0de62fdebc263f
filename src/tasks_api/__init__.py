"""
Tasks service package.

An admin-only registry of patient tasks served over HTTP with FastAPI.
Build the application with ``tasks_api.main.create_app`` or run the
service with ``python -m tasks_api``.
"""

__version__ = "0.1.0"
