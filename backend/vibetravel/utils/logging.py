"""Structured error logging for generation and persistence failures."""

import logging
import traceback
from typing import Any
from uuid import UUID

from backend.vibetravel.db.repositories import ErrorLogSink

logger = logging.getLogger(__name__)


class StructuredErrorLogger:
    """Structured logger for application and generation errors.

    Every entry goes to the standard logger. When a sink is configured the
    entry is also persisted; a failing sink is logged and never replaces the
    error being reported.
    """

    def __init__(self, sink: ErrorLogSink | None = None) -> None:
        self._sink = sink

    async def log_app_error(
        self,
        message: str,
        severity: str = "error",
        *,
        user_id: UUID | None = None,
        plan_id: UUID | None = None,
        payload: dict[str, Any] | None = None,
        exc: BaseException | None = None,
    ) -> None:
        """Log an application error with structured context.

        Args:
            message: Human readable summary
            severity: "error" or "warning"
            user_id: Acting user, if known
            plan_id: Affected plan, if any
            payload: Request data needed for manual reconciliation
            exc: Exception that caused the error
        """
        log_data: dict[str, Any] = {
            "severity": severity,
            "user_id": str(user_id) if user_id else None,
            "plan_id": str(plan_id) if plan_id else None,
            "payload": payload,
        }

        if exc is not None:
            log_data["error_type"] = type(exc).__name__

        level = logging.WARNING if severity == "warning" else logging.ERROR
        logger.log(level, message, extra={"structured": log_data})

        if self._sink is None:
            return

        stack_trace = (
            "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
            if exc is not None
            else None
        )

        try:
            await self._sink.record_app_error(
                severity=severity,
                message=message,
                user_id=user_id,
                plan_id=plan_id,
                stack_trace=stack_trace,
                payload=payload,
            )
        except Exception as e:
            logger.warning(
                f"Failed to persist app error log: {e}",
                extra={"structured": {"original_message": message}},
            )

    async def log_llm_error(
        self,
        message: str,
        *,
        user_id: UUID | None = None,
        request_payload: dict[str, Any] | None = None,
        response_payload: dict[str, Any] | None = None,
    ) -> None:
        """Log a failed generation request with its payloads."""
        logger.warning(
            f"Generation error: {message}",
            extra={
                "structured": {
                    "user_id": str(user_id) if user_id else None,
                    "request": request_payload,
                    "response": response_payload,
                }
            },
        )

        if self._sink is None:
            return

        try:
            await self._sink.record_llm_error(
                message=message,
                user_id=user_id,
                request_payload=request_payload,
                response_payload=response_payload,
            )
        except Exception as e:
            logger.warning(
                f"Failed to persist LLM error log: {e}",
                extra={"structured": {"original_message": message}},
            )
