"""Trust calendar: day-status resolver and admin calendar store."""

__version__ = "1.0.0"
