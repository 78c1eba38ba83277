"""工具模块"""

from .exceptions import (
    UptimeMonitorError, ConfigError, TargetListError, AlertError,
    AlertConfigError, AlertSendError, SchedulerError, ErrorCode
)
from .log_manager import LogManager, LogLevel, get_logger, configure_logging, log_manager

__all__ = [
    'UptimeMonitorError', 'ConfigError', 'TargetListError', 'AlertError',
    'AlertConfigError', 'AlertSendError', 'SchedulerError', 'ErrorCode',
    'LogManager', 'LogLevel', 'get_logger', 'configure_logging', 'log_manager'
]
