"""Error Hierarchy — typed, categorized exceptions for all DocPanel failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Configuration errors (no credential, no document) never reach the provider
    - to_response() produces REST envelope; to_stream_event() produces the stream error event
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with DocPanelError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - Tool failures are not exceptions at the stream level: to_tool_result() folds
      them into the tool-call-done payload
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    CONTENT_SOURCE = "content_source"
    EXTERNAL_API = "external_api"
    TOOL = "tool"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    session_id: str | None = None
    document_type: str | None = None
    tool_name: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class DocPanelError(Exception):
    """Base exception for all DocPanel errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "session_id": self.context.session_id,
                    "document_type": self.context.document_type,
                    "tool_name": self.context.tool_name,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }

    def to_stream_event(self) -> dict:
        """Convert to the stream-level error event."""
        return {
            "type": "error",
            "data": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "severity": self.severity.value,
                "recoverable": self.severity in (
                    ErrorSeverity.INFO, ErrorSeverity.WARNING,
                ),
            },
        }

    def to_tool_result(self) -> dict:
        """Convert to an error marker carried inside tool-call-done."""
        return {
            "status": "error",
            "error_code": self.code,
            "message": self.message,
        }


# ─── Configuration Errors ───────────────────────────────────────

class CredentialMissingError(DocPanelError):
    """No usable credential resolved for the requested provider."""
    def __init__(self, provider: str, context: ErrorContext | None = None):
        super().__init__(
            f"No credentials configured for {provider}. Add an API key or "
            "connect an account in Settings.",
            "CREDENTIAL_MISSING", ErrorCategory.CONFIGURATION,
            ErrorSeverity.ERROR, context, 401,
        )
        self.provider = provider


class DocumentNotLoadedError(DocPanelError):
    """Document type requires loaded content but none resolved."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "No PDF is loaded. Open a document first.",
            "DOCUMENT_NOT_LOADED", ErrorCategory.CONFIGURATION,
            ErrorSeverity.ERROR, context, 409,
        )


class UnsupportedDocumentTypeError(DocPanelError):
    """No registry entry for the requested document type."""
    def __init__(self, document_type: str, context: ErrorContext | None = None):
        super().__init__(
            f"Unsupported document type '{document_type}'",
            "UNSUPPORTED_DOCUMENT_TYPE", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.document_type = document_type


# ─── Content Source Errors ──────────────────────────────────────

class ContextLoadError(DocPanelError):
    """Content source could not produce pages for a locator."""
    def __init__(
        self, source_locator: str, reason: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Could not load document '{source_locator}': {reason}",
            "CONTEXT_LOAD_FAILED", ErrorCategory.CONTENT_SOURCE,
            ErrorSeverity.WARNING, context, 422,
        )
        self.source_locator = source_locator


# ─── Tool Errors ────────────────────────────────────────────────

class ToolValidationError(DocPanelError):
    """Tool input or target validation failed."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.TOOL,
            ErrorSeverity.WARNING, context, 400,
        )
        self.field = field


# ─── Provider Errors ────────────────────────────────────────────

class ProviderAPIError(DocPanelError):
    """Model provider call failed (transport or provider-side)."""
    def __init__(
        self,
        message: str,
        api_error_type: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Model provider error ({api_error_type}): {message}",
            "PROVIDER_API_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.api_error_type = api_error_type


class AgentStepLimitError(DocPanelError):
    """Model kept requesting tools past the configured turn budget."""
    def __init__(self, max_steps: int, context: ErrorContext | None = None):
        super().__init__(
            f"Agent stopped after {max_steps} steps without a final answer",
            "AGENT_STEP_LIMIT", ErrorCategory.INTERNAL,
            ErrorSeverity.ERROR, context, 500,
        )
        self.max_steps = max_steps
