"""HTTP 探测客户端"""

import asyncio
import time
from typing import Dict, Any, Optional

import aiohttp

from .base import BaseProbeClient
from ..models.probe import ProbeResult, ProbeOutcome

DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (X11; Linux x86_64; rv:10.0) Gecko/20100101 Firefox/10.0'
)

# 携带 Location 头时才视为重定向，304 等其余 3xx 按普通响应处理
REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


class HttpProbeClient(BaseProbeClient):
    """HTTP 探测客户端

    发送单次 GET 请求并分类结果：
    - 状态码 < 400 为健康
    - 状态码 >= 400 为不健康
    - 传输层失败为探测失败；重定向不跟随，一律视为探测失败
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.user_agent = self.config.get('user_agent', DEFAULT_USER_AGENT)

    async def probe(self, url: str) -> ProbeResult:
        """
        探测指定 URL

        Args:
            url: 目标地址

        Returns:
            ProbeResult: 探测结果，传输层异常不会向外抛出
        """
        start_time = time.time()
        status_code = None
        error_message = None
        outcome = ProbeOutcome.PROBE_ERROR

        try:
            timeout = aiohttp.ClientTimeout(total=self.get_timeout())
            headers = {'User-Agent': self.user_agent}

            async with aiohttp.ClientSession(timeout=timeout, headers=headers) as session:
                async with session.get(url, allow_redirects=False) as response:
                    status_code = response.status

                    location = response.headers.get('Location')
                    if status_code in REDIRECT_STATUSES and location:
                        error_message = f"拒绝跟随重定向: {status_code} -> {location}"
                    elif status_code >= 400:
                        outcome = ProbeOutcome.UNHEALTHY
                        error_message = f"HTTP状态码异常: {status_code}"
                    else:
                        outcome = ProbeOutcome.HEALTHY

        except asyncio.TimeoutError:
            error_message = "HTTP请求超时"
        except aiohttp.ClientError as e:
            error_message = f"HTTP客户端错误: {e}"
        except ValueError as e:
            # 无效 URL
            error_message = f"无效的URL: {e}"

        response_time = time.time() - start_time

        if outcome is ProbeOutcome.PROBE_ERROR:
            self.logger.warning(f"探测 {url} 失败: {error_message}")
        else:
            self.logger.debug(
                f"探测 {url} 完成: 状态码={status_code}, 响应时间={response_time:.3f}s")

        return ProbeResult(
            url=url,
            outcome=outcome,
            response_time=response_time,
            status_code=status_code,
            error_message=error_message
        )
