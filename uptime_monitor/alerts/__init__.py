"""告警模块"""

from .base import BaseAlerter
from .debouncer import AlertDebouncer
from .email_alerter import EmailAlerter

__all__ = [
    'BaseAlerter',
    'AlertDebouncer',
    'EmailAlerter'
]
