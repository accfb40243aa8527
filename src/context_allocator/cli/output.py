"""JSON output helpers for the CLI.

This module is the sole output mechanism for the CLI. It wraps the
canonical response helpers from context_allocator.core.responses so CLI
output follows the response-v2 schema.
"""

import json
import sys
from dataclasses import asdict
from typing import Any, Mapping, NoReturn, Sequence

from context_allocator.cli.logging import generate_request_id, get_request_id, set_request_id
from context_allocator.core.errors import ContextAllocatorError
from context_allocator.core.responses import (
    ToolResponse,
    error_from_exception,
    error_response,
    success_response,
)


def _ensure_request_id() -> str:
    request_id = get_request_id()
    if request_id:
        return request_id
    request_id = generate_request_id()
    set_request_id(request_id)
    return request_id


def emit(data: Any) -> None:
    """Emit minified JSON to stdout."""
    print(json.dumps(data, separators=(",", ":"), default=str))


def _emit_failure(response: ToolResponse) -> NoReturn:
    response.meta.setdefault("request_id", _ensure_request_id())
    print(json.dumps(asdict(response), separators=(",", ":"), default=str), file=sys.stderr)
    sys.exit(1)


def emit_error(
    message: str,
    code: str = "INTERNAL_ERROR",
    *,
    error_type: str = "internal",
    remediation: str | None = None,
    details: Mapping[str, Any] | None = None,
) -> NoReturn:
    """Emit error JSON to stderr and exit with code 1.

    Args:
        message: Human-readable error description.
        code: Error code in SCREAMING_SNAKE_CASE (e.g., VALIDATION_ERROR, NOT_FOUND).
        error_type: Error category (validation, not_found, internal).
        remediation: Actionable guidance for resolving the error.
        details: Optional additional error context.

    Raises:
        SystemExit: Always exits with code 1.
    """
    _emit_failure(
        error_response(
            message,
            error_code=code,
            error_type=error_type,
            remediation=remediation,
            details=details,
            request_id=_ensure_request_id(),
        )
    )


def emit_exception(exc: ContextAllocatorError) -> NoReturn:
    """Emit the error envelope for a context-allocator exception and exit 1."""
    _emit_failure(error_from_exception(exc))


def emit_success(
    data: Any,
    *,
    warnings: Sequence[str] | None = None,
    meta: Mapping[str, Any] | None = None,
) -> None:
    """Emit a success envelope to stdout.

    Non-dict data is wrapped under a ``result`` key.
    """
    payload = data if isinstance(data, dict) else {"result": data}
    response = success_response(
        data=payload,
        warnings=warnings,
        meta=meta,
        request_id=_ensure_request_id(),
    )
    emit(asdict(response))
