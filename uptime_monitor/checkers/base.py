"""探测客户端基类"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
from ..models.probe import ProbeResult
from ..utils.log_manager import get_logger


class BaseProbeClient(ABC):
    """探测客户端抽象基类"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        初始化探测客户端

        Args:
            config: 探测配置参数
        """
        self.config = config or {}
        self.client_type = self.__class__.__name__.replace('ProbeClient', '').lower()
        self.logger = get_logger(f'checker.{self.client_type}')

    @abstractmethod
    async def probe(self, url: str) -> ProbeResult:
        """
        对指定 URL 执行一次探测，不做任何重试

        Args:
            url: 目标地址

        Returns:
            ProbeResult: 探测结果
        """
        pass

    def get_timeout(self) -> float:
        """
        获取超时时间配置

        Returns:
            float: 超时时间（秒）
        """
        return self.config.get('timeout', 10)
