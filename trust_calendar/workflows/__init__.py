"""Workflows module."""
from .calendar_admin import CalendarAdminWorkflow, CalendarValidationError
from .month_view import MonthView, MonthViewBuilder

__all__ = ['CalendarAdminWorkflow', 'CalendarValidationError', 'MonthView', 'MonthViewBuilder']
