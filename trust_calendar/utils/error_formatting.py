"""
Error UX & Messaging Module

Turns calendar exceptions into user-facing messages with recovery
guidance (what the admin console showed as error toasts).
"""

from typing import Any, Dict, Optional, Tuple
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
import sqlite3


# ============================================================
# Error Severity Levels
# ============================================================

class ErrorSeverity(Enum):
    """Error severity classification for presentation."""

    INFO = "info"           # Informational (no action needed)
    WARNING = "warning"     # Caution (optional action)
    ERROR = "error"         # Error (action required)
    CRITICAL = "critical"   # Critical (system-level issue)


# ============================================================
# Error Context
# ============================================================

@dataclass
class ErrorContext:
    """
    Structured error context for user-friendly messaging.

    Attributes:
        message: User-friendly error description
        severity: Error severity level
        technical_details: Technical error info (for logs/debugging)
        context: Additional context (operation, date)
        recovery_steps: List of recovery actions the user can take
        error_code: Optional error code for support
    """
    message: str
    severity: ErrorSeverity
    technical_details: str
    context: Dict[str, Any] = field(default_factory=dict)
    recovery_steps: list = field(default_factory=list)
    error_code: Optional[str] = None

    def format_for_display(self, include_technical: bool = False) -> str:
        """Format error for terminal/dialog display."""
        lines = [self.message]

        if self.context:
            lines.append("")
            lines.append("Details:")
            for key, value in self.context.items():
                if value is not None:
                    lines.append(f"  • {key}: {value}")

        if self.recovery_steps:
            lines.append("")
            lines.append("Suggested actions:")
            for i, step in enumerate(self.recovery_steps, 1):
                lines.append(f"  {i}. {step}")

        if include_technical and self.technical_details:
            lines.append("")
            lines.append("Technical details:")
            lines.append(f"  {self.technical_details}")

        if self.error_code:
            lines.append("")
            lines.append(f"Error code: {self.error_code}")

        return "\n".join(lines)

    def format_for_log(self) -> str:
        """Format error for structured logging."""
        context_str = ", ".join(f"{k}={v}" for k, v in self.context.items() if v is not None)
        return f"[{self.severity.value.upper()}] {self.message} | Context: {context_str} | Technical: {self.technical_details}"


# ============================================================
# Error Formatter
# ============================================================

class ErrorFormatter:
    """Transforms calendar exceptions into ErrorContext objects."""

    @staticmethod
    def format_admin_error(
        exc: Exception,
        operation: str,
        day: Optional[date] = None,
        additional_context: Optional[Dict[str, Any]] = None,
    ) -> ErrorContext:
        """
        Format errors raised by calendar admin operations.

        Args:
            exc: The exception raised
            operation: Operation that failed (e.g. "mark_holiday")
            day: Date involved, if any
            additional_context: Extra context data

        Returns:
            ErrorContext with user-friendly message and recovery steps
        """
        from ..repositories import BusinessRuleError, DuplicateKeyError, NotFoundError, RepositoryError
        from ..workflows.calendar_admin import CalendarValidationError

        context: Dict[str, Any] = {"Operation": operation}
        if day is not None:
            context["Date"] = day.isoformat()
        if additional_context:
            context.update(additional_context)
        technical = f"{type(exc).__name__}: {exc}"

        if isinstance(exc, CalendarValidationError):
            return ErrorContext(
                message=f"Validation error: {exc}",
                severity=ErrorSeverity.WARNING,
                technical_details=technical,
                context=context,
                recovery_steps=["Fill in the required fields and retry"],
                error_code="CAL_001",
            )

        if isinstance(exc, NotFoundError):
            return ErrorContext(
                message=f"Not found: {exc}",
                severity=ErrorSeverity.WARNING,
                technical_details=technical,
                context=context,
                recovery_steps=["Check the identifier against the festival list"],
                error_code="CAL_002",
            )

        if isinstance(exc, DuplicateKeyError):
            return ErrorContext(
                message=f"Already exists: {exc}",
                severity=ErrorSeverity.ERROR,
                technical_details=technical,
                context=context,
                recovery_steps=["Edit the existing record instead of creating a new one"],
                error_code="CAL_003",
            )

        if isinstance(exc, BusinessRuleError):
            return ErrorContext(
                message=f"Invalid data: {exc}",
                severity=ErrorSeverity.ERROR,
                technical_details=technical,
                context=context,
                recovery_steps=["Check dates (YYYY-MM-DD) and required fields"],
                error_code="CAL_004",
            )

        if isinstance(exc, RepositoryError):
            return ErrorContext(
                message=f"Could not save the change: {exc}",
                severity=ErrorSeverity.ERROR,
                technical_details=technical,
                context=context,
                recovery_steps=["Retry the operation", "Run 'python -m trust_calendar.db verify'"],
                error_code="CAL_999",
            )

        if isinstance(exc, sqlite3.Error):
            return ErrorContext(
                message="Database error",
                severity=ErrorSeverity.CRITICAL,
                technical_details=technical,
                context=context,
                recovery_steps=[
                    "Close other instances of the application",
                    "Restore the latest backup from data/backups/ if the problem persists",
                ],
                error_code="DB_001",
            )

        if isinstance(exc, ValueError):
            return ErrorContext(
                message=f"Invalid value: {exc}",
                severity=ErrorSeverity.WARNING,
                technical_details=technical,
                context=context,
                recovery_steps=["Dates use YYYY-MM-DD, months use YYYY-MM"],
                error_code="CAL_005",
            )

        return ErrorContext(
            message=f"Unexpected error during {operation}",
            severity=ErrorSeverity.ERROR,
            technical_details=technical,
            context=context,
            recovery_steps=["Retry the operation", "If the error persists, check the log file"],
            error_code="CAL_UNKNOWN",
        )


def validate_date_format(date_str: str) -> Tuple[bool, str]:
    """
    Validate a YYYY-MM-DD string.

    Returns:
        (is_valid, error_message)
    """
    if not date_str or not date_str.strip():
        return False, "Date is required"
    try:
        date.fromisoformat(date_str.strip())
    except ValueError:
        return False, f"Invalid date '{date_str}' (expected YYYY-MM-DD)"
    return True, ""
