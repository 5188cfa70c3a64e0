"""
Logging Utilities

Structured logging with request context for Via API callers.
Human-readable console output plus JSON lines for log files.
"""
import contextvars
import json
import logging
import time
import uuid
from datetime import datetime, UTC
from typing import Dict, Any, Optional

# Request context shared across async calls
log_context: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar('log_context', default={})

# LogRecord attributes that are not caller-supplied extras
_RECORD_ATTRIBUTES = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'taskName', 'getMessage', 'exc_info',
    'exc_text', 'stack_info', 'message', 'asctime'
}


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured file logging."""

    def format(self, record) -> str:
        """Format log record as a JSON line with context information."""
        log_obj: Dict[str, Any] = {
            'timestamp': datetime.now(UTC).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'function': record.funcName,
            'line': record.lineno
        }

        if record.exc_info:
            log_obj['exception'] = {
                'type': record.exc_info[0].__name__ if record.exc_info[0] else 'Unknown',
                'message': str(record.exc_info[1]) if record.exc_info[1] else 'No message',
                'traceback': self.formatException(record.exc_info)
            }

        context = log_context.get({})
        if context:
            log_obj['context'] = context.copy()
            if 'trace_id' in context:
                log_obj['trace_id'] = context['trace_id']

        extra_data = {}
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRIBUTES:
                continue
            try:
                json.dumps(value)
                extra_data[key] = value
            except (TypeError, ValueError):
                extra_data[key] = str(value)

        if extra_data:
            log_obj['extra'] = extra_data

        return json.dumps(log_obj, ensure_ascii=False)


class ContextualLogger:
    """Logger wrapper that adds operation timing and keyword extras."""

    def __init__(self, logger_name: str):
        self.logger = logging.getLogger(logger_name)
        self._start_time: Optional[float] = None

    def start_operation(self, operation_name: Optional[str] = None) -> str:
        """
        Start timing an operation and put a new trace ID into the log context.

        Returns:
            8 character trace ID for this operation
        """
        self._start_time = time.time()
        trace_id = uuid.uuid4().hex[:8]

        context = log_context.get({}).copy()
        context['trace_id'] = trace_id
        if operation_name:
            context['operation'] = operation_name
        log_context.set(context)

        return trace_id

    def end_operation(self, trace_id: str, operation_result: str = "completed") -> None:
        """Log the total duration of the operation started with trace_id."""
        if self._start_time is None:
            self.warning("end_operation called without corresponding start_operation")
            return

        duration_ms = int((time.time() - self._start_time) * 1000)
        self._start_time = None

        self.info(f"Operation {operation_result}",
                  trace_id=trace_id,
                  final_duration_ms=duration_ms,
                  operation_result=operation_result)

        context = log_context.get({}).copy()
        context.pop('operation', None)
        if context.get('trace_id') == trace_id:
            context.pop('trace_id', None)
        log_context.set(context)

    def _with_duration(self, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        if self._start_time is not None:
            kwargs['duration_ms'] = int((time.time() - self._start_time) * 1000)
        return kwargs

    def info(self, message: str, **kwargs):
        self.logger.info(message, extra=self._with_duration(kwargs))

    def warning(self, message: str, **kwargs):
        self.logger.warning(message, extra=self._with_duration(kwargs))

    def error(self, message: str, error: Optional[Exception] = None, **kwargs):
        """
        Log error message with exception information.

        Args:
            message: Error message
            error: Optional exception; its kind and status_code are recorded when present
            **kwargs: Additional context
        """
        kwargs = self._with_duration(kwargs)
        if error is None:
            self.logger.error(message, extra=kwargs)
            return

        kwargs['error'] = {'type': type(error).__name__, 'message': str(error)}
        kind = getattr(error, 'kind', None)
        if kind is not None:
            kwargs['error']['kind'] = str(getattr(kind, 'value', kind))
        status_code = getattr(error, 'status_code', None)
        if status_code is not None:
            kwargs['error']['status_code'] = status_code
        self.logger.error(message, exc_info=error, extra=kwargs)


def set_request_context(
    account: Optional[str] = None,
    base_url: Optional[str] = None,
    email: Optional[str] = None,
    endpoint: Optional[str] = None
):
    """Merge the given Via request values into the logging context."""
    context = log_context.get({}).copy()

    if account:
        context['account'] = account
    if base_url:
        context['base_url'] = base_url
    if email:
        context['email'] = email
    if endpoint:
        context['endpoint'] = endpoint

    log_context.set(context)


def clear_context():
    """Clear the current logging context."""
    log_context.set({})


def get_contextual_logger(logger_name: str) -> ContextualLogger:
    return ContextualLogger(logger_name)
