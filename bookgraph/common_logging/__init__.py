"""
Common Logging Module for bookgraph

Every record handled by the bookgraph handler is tagged with the service
name, its version and the GraphQL operation being executed in the current
task (``-`` outside of one).
"""

import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

# Set by the operation logging extension for the duration of an operation
current_operation: ContextVar[Optional[str]] = ContextVar("bookgraph_operation", default=None)


class JSONFormatter(logging.Formatter):
    """One JSON object per line"""

    def format(self, record):
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'operation': getattr(record, 'operation', '-'),
            'service': getattr(record, 'service', None),
            'version': getattr(record, 'version', None),
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class StructuredFormatter(logging.Formatter):
    """Human readable single-line format"""

    def __init__(self):
        super().__init__(
            fmt='%(asctime)s - %(name)s - %(levelname)s - [%(operation)s] - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )


class OperationFilter(logging.Filter):
    """Add the current GraphQL operation to log records"""

    def filter(self, record):
        record.operation = current_operation.get() or '-'
        return True


class ServiceFilter(logging.Filter):
    """Add service info to log records"""

    def __init__(self, service_name: str = "bookgraph", version: str = "0.1.0"):
        super().__init__()
        self.service_name = service_name
        self.version = version

    def filter(self, record):
        record.service = self.service_name
        record.version = self.version
        return True


__all__ = [
    'JSONFormatter',
    'OperationFilter',
    'ServiceFilter',
    'StructuredFormatter',
    'current_operation',
]
