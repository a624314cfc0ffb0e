# classdesk/routes/v1/__init__.py
"""Version 1 API routers, mounted under ``settings.api_prefix``."""

from . import attendance, classes, fees, reports, schedules

__all__ = ["attendance", "classes", "fees", "reports", "schedules"]
