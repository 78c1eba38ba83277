"""交叉验证模块

主目标探测不健康后，在限定时间窗口内轮询备用目标，
收集证据以区分"主目标抖动"和"整体宕机"。
"""

import asyncio
import time
from typing import Callable, Sequence, Tuple, Awaitable

from ..checkers.base import BaseProbeClient
from ..models.probe import CrossCheckEvidence, Verdict
from ..utils.log_manager import get_logger


class CrossCheckEvaluator:
    """交叉验证器

    窗口是截止时间而不是取消信号：截止后不再发起新的探测，
    但已发出的探测会运行到其自身超时为止。
    """

    def __init__(self, probe_client: BaseProbeClient,
                 window: float = 30.0,
                 pass_delay: float = 1.0,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        """初始化交叉验证器

        Args:
            probe_client: 探测客户端
            window: 评估窗口（秒）
            pass_delay: 两轮探测之间的等待时间（秒）
            clock: 单调时钟
            sleep: 异步等待函数
        """
        self.probe_client = probe_client
        self.window = window
        self.pass_delay = pass_delay
        self._clock = clock
        self._sleep = sleep
        self.logger = get_logger('cross_check')

    async def cross_check(self, fallback_urls: Sequence[str]) -> Tuple[CrossCheckEvidence, Verdict]:
        """对备用目标执行交叉验证

        Args:
            fallback_urls: 备用目标列表（不含主目标）

        Returns:
            (证据, 结论)
        """
        evidence = CrossCheckEvidence()
        deadline = self._clock() + self.window
        pending = list(fallback_urls)
        pass_number = 0

        while pending and self._clock() < deadline:
            pass_number += 1
            self.logger.debug(f"第 {pass_number} 轮交叉验证，待检查 {len(pending)} 个目标")

            for url in list(pending):
                if self._clock() >= deadline:
                    break

                try:
                    result = await self.probe_client.probe(url)
                except Exception as e:
                    # 未能得到结果的目标留到下一轮
                    self.logger.error(f"探测备用目标 {url} 时发生异常: {e}")
                    continue

                evidence.record(result)
                pending.remove(url)

                if result.is_healthy:
                    self.logger.info(f"备用目标 {url} 健康")
                else:
                    self.logger.info(
                        f"备用目标 {url} 不健康: {result.error_message or result.outcome.value}")

            if pending:
                remaining = deadline - self._clock()
                if remaining <= 0:
                    break
                await self._sleep(min(self.pass_delay, remaining))

        if pending:
            self.logger.warning(
                f"{self.window:g} 秒交叉验证窗口已结束，{len(pending)} 个备用目标未检查")

        verdict = evidence.verdict()
        self.logger.info(
            f"交叉验证完成: 已检查 {evidence.checked_count} 个，"
            f"不健康 {evidence.unhealthy_count} 个，结论={verdict.value}")

        return evidence, verdict
