"""交叉验证器测试"""

from typing import Dict, List, Optional

import pytest

from uptime_monitor.checkers.base import BaseProbeClient
from uptime_monitor.models.probe import ProbeOutcome, ProbeResult, Verdict
from uptime_monitor.services.cross_check import CrossCheckEvaluator


class FakeClock:
    """可手动推进的时钟"""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float):
        self.now += seconds


class MockProbeClient(BaseProbeClient):
    """模拟探测客户端"""

    def __init__(self, outcomes: Dict[str, ProbeOutcome],
                 clock: Optional[FakeClock] = None,
                 probe_duration: float = 0.0,
                 failures: Optional[Dict[str, int]] = None):
        super().__init__()
        self.outcomes = outcomes
        self.clock = clock
        self.probe_duration = probe_duration
        self.failures = dict(failures or {})
        self.probed: List[str] = []

    async def probe(self, url: str) -> ProbeResult:
        self.probed.append(url)
        if self.clock:
            self.clock.now += self.probe_duration
        if self.failures.get(url, 0) > 0:
            self.failures[url] -= 1
            raise RuntimeError("unexpected failure")
        return ProbeResult(url=url, outcome=self.outcomes[url], response_time=self.probe_duration)


class TestCrossCheckEvaluator:
    """交叉验证器测试类"""

    def setup_method(self):
        """测试前准备"""
        self.clock = FakeClock()

    def make_evaluator(self, client, window=30.0, pass_delay=1.0):
        return CrossCheckEvaluator(client, window=window, pass_delay=pass_delay,
                                   clock=self.clock, sleep=self.clock.sleep)

    @pytest.mark.asyncio
    async def test_all_fallbacks_unhealthy(self):
        """测试所有备用目标都不健康判定为整体宕机"""
        client = MockProbeClient({
            'http://b': ProbeOutcome.UNHEALTHY,
            'http://c': ProbeOutcome.UNHEALTHY,
        })
        evidence, verdict = await self.make_evaluator(client).cross_check(['http://b', 'http://c'])

        assert verdict is Verdict.FLEET_DOWN
        assert evidence.checked_count == 2
        assert evidence.observations == {'http://b': True, 'http://c': True}
        assert client.probed == ['http://b', 'http://c']

    @pytest.mark.asyncio
    async def test_healthy_fallback_means_primary_flaky(self):
        """测试存在健康的备用目标判定为主目标抖动"""
        client = MockProbeClient({
            'http://b': ProbeOutcome.HEALTHY,
            'http://c': ProbeOutcome.UNHEALTHY,
        })
        evidence, verdict = await self.make_evaluator(client).cross_check(['http://b', 'http://c'])

        assert verdict is Verdict.PRIMARY_FLAKY
        assert evidence.observations == {'http://b': False, 'http://c': True}

    @pytest.mark.asyncio
    async def test_probe_error_counts_as_unhealthy(self):
        """测试探测失败计入不健康证据"""
        client = MockProbeClient({
            'http://b': ProbeOutcome.PROBE_ERROR,
            'http://c': ProbeOutcome.UNHEALTHY,
        })
        evidence, verdict = await self.make_evaluator(client).cross_check(['http://b', 'http://c'])

        assert verdict is Verdict.FLEET_DOWN
        assert evidence.unhealthy_count == 2

    @pytest.mark.asyncio
    async def test_each_fallback_probed_once(self):
        """测试每个备用目标都检查过后即结束，不会占满整个窗口"""
        client = MockProbeClient({
            'http://b': ProbeOutcome.UNHEALTHY,
            'http://c': ProbeOutcome.HEALTHY,
        }, clock=self.clock, probe_duration=0.5)
        await self.make_evaluator(client).cross_check(['http://b', 'http://c'])

        assert client.probed == ['http://b', 'http://c']
        assert self.clock.now == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_window_bounds_evaluation(self):
        """测试窗口截止后不再发起新的探测"""
        urls = [f'http://fallback-{i}' for i in range(5)]
        client = MockProbeClient({url: ProbeOutcome.UNHEALTHY for url in urls},
                                 clock=self.clock, probe_duration=12.0)
        evidence, verdict = await self.make_evaluator(client).cross_check(urls)

        # 0s、12s、24s 发起三次探测，36s 时窗口已结束
        assert client.probed == urls[:3]
        assert evidence.checked_count == 3
        assert verdict is Verdict.FLEET_DOWN
        assert self.clock.now <= 30.0 + 12.0

    @pytest.mark.asyncio
    async def test_window_expired_before_any_probe(self):
        """测试窗口内没有检查任何目标时无法得出结论"""
        client = MockProbeClient({'http://b': ProbeOutcome.UNHEALTHY})
        evidence, verdict = await self.make_evaluator(client, window=0).cross_check(['http://b'])

        assert client.probed == []
        assert evidence.checked_count == 0
        assert verdict is Verdict.INCONCLUSIVE

    @pytest.mark.asyncio
    async def test_failed_probe_retried_next_pass(self):
        """测试未得到结果的目标在下一轮重新探测"""
        client = MockProbeClient({
            'http://b': ProbeOutcome.UNHEALTHY,
            'http://c': ProbeOutcome.UNHEALTHY,
        }, clock=self.clock, probe_duration=0.1, failures={'http://c': 1})
        evidence, verdict = await self.make_evaluator(client, pass_delay=2.0).cross_check(
            ['http://b', 'http://c'])

        assert client.probed == ['http://b', 'http://c', 'http://c']
        assert evidence.checked_count == 2
        assert verdict is Verdict.FLEET_DOWN
        assert self.clock.now == pytest.approx(2.3)

    @pytest.mark.asyncio
    async def test_fresh_evidence_per_invocation(self):
        """测试每次调用都使用新的证据"""
        client = MockProbeClient({'http://b': ProbeOutcome.UNHEALTHY})
        evaluator = self.make_evaluator(client)

        first, _ = await evaluator.cross_check(['http://b'])
        second, _ = await evaluator.cross_check(['http://b'])

        assert first is not second
        assert second.checked_count == 1
