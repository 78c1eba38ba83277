"""探测客户端模块"""

from .base import BaseProbeClient
from .http_probe import HttpProbeClient

__all__ = ['BaseProbeClient', 'HttpProbeClient']
