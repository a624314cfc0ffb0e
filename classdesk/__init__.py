"""classdesk: class scheduling, enrollment and reporting backend."""

__version__ = "1.0.0"
