"""
Logging setup for the Sixi commander, with an in-memory log buffer
"""

import logging
from collections import deque
from datetime import datetime
from typing import Any, Dict, List, Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class LogBufferHandler(logging.Handler):
    """
    Logging handler that keeps the most recent records in a circular buffer
    so the commander (or a test) can inspect what happened during a session
    """

    def __init__(self, buffer_size: int = 1000):
        super().__init__()
        self.buffer_size = buffer_size
        self.logs = deque(maxlen=buffer_size)

    def emit(self, record: logging.LogRecord):
        """Called by logging system for each log message"""
        try:
            self.logs.append({
                "timestamp": datetime.fromtimestamp(record.created).isoformat(),
                "level": record.levelname,
                "source": record.name,
                "message": self.format(record),
                "function": record.funcName,
                "line": record.lineno,
            })
        except Exception:
            self.handleError(record)

    def get_logs(self,
                 level: Optional[str] = None,
                 source: Optional[str] = None,
                 limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Get filtered logs from buffer"""
        logs_list = list(self.logs)

        if level:
            logs_list = [log for log in logs_list if log['level'] == level.upper()]

        if source:
            logs_list = [log for log in logs_list if source in log['source']]

        if limit:
            logs_list = logs_list[-limit:]

        return logs_list

    def clear_logs(self):
        """Clear the log buffer"""
        self.logs.clear()


# Global instance
_buffer_handler = None


def get_buffer_handler(buffer_size: int = 1000) -> LogBufferHandler:
    """Get or create the global log buffer handler"""
    global _buffer_handler
    if _buffer_handler is None:
        _buffer_handler = LogBufferHandler(buffer_size)
    return _buffer_handler


def setup_logging(config: Dict[str, Any], service_name: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger and the service logger.

    The global level goes on the root logger and the per-service level on
    the service logger. Handlers pass the more verbose of the two.

    Args:
        config: Logging configuration dict with keys:
            - level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            - <service_name>: Per-service config dict with 'level' key (optional)
            - buffer_size: Number of records kept by the log buffer
            - keep_buffer: Whether to attach the log buffer handler
            - file_output: Optional file path for file logging
        service_name: Optional service name to read service-specific config (e.g., 'commander')

    Returns:
        The service logger (or the root logger when no service is named)
    """
    global_name = config.get('level', 'INFO')
    service_level_name = global_name
    if service_name and isinstance(config.get(service_name), dict):
        service_level_name = config[service_name].get('level', global_name)
    global_level = getattr(logging, str(global_name).upper())
    service_level = getattr(logging, str(service_level_name).upper())
    handler_level = min(global_level, service_level)
    buffer_size = config.get('buffer_size', 1000)
    keep_buffer = config.get('keep_buffer', False)
    file_output = config.get('file_output')

    root_logger = logging.getLogger()
    root_logger.setLevel(global_level)

    # Clear existing handlers
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(handler_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if keep_buffer:
        buffer_handler = get_buffer_handler(buffer_size)
        buffer_handler.setLevel(handler_level)
        buffer_handler.setFormatter(formatter)
        root_logger.addHandler(buffer_handler)

    if file_output:
        file_handler = logging.FileHandler(file_output)
        file_handler.setLevel(handler_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    service_logger = logging.getLogger(service_name) if service_name else root_logger
    service_logger.setLevel(service_level)
    return service_logger
