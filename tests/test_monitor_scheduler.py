"""监控调度器测试模块"""

import asyncio

import pytest

from uptime_monitor.services.monitor_scheduler import MonitorScheduler
from uptime_monitor.utils.exceptions import SchedulerError


class TestMonitorScheduler:
    """监控调度器测试类"""

    def setup_method(self):
        """测试前准备"""
        self.scheduler = MonitorScheduler()

    def test_init(self):
        """测试初始化"""
        assert self.scheduler.jobs == {}
        assert self.scheduler.running_tasks == {}
        assert not self.scheduler.is_running

    def test_add_job_invalid_interval(self):
        """测试无效的执行间隔"""
        with pytest.raises(SchedulerError):
            self.scheduler.add_job('probe', 0, lambda: None)

    def test_add_job_duplicate(self):
        """测试重复的任务名"""
        self.scheduler.add_job('probe', 10, lambda: None)
        with pytest.raises(SchedulerError):
            self.scheduler.add_job('probe', 10, lambda: None)

    @pytest.mark.asyncio
    async def test_periodic_execution(self):
        """测试按周期重复执行"""
        calls = []

        async def job():
            calls.append('probe')

        self.scheduler.add_job('probe', 0.02, job, run_immediately=True)
        await self.scheduler.start()
        await asyncio.sleep(0.1)
        await self.scheduler.stop()

        assert len(calls) >= 2
        assert self.scheduler.jobs['probe'].run_count == len(calls)

    @pytest.mark.asyncio
    async def test_period_measured_from_start_time(self):
        """测试任务耗时不会拉长执行周期"""
        loop = asyncio.get_running_loop()
        start_times = []

        async def slow_job():
            start_times.append(loop.time())
            await asyncio.sleep(0.3)

        self.scheduler.add_job('probe', 0.5, slow_job, run_immediately=True)
        await self.scheduler.start()
        await asyncio.sleep(1.25)
        await self.scheduler.stop()

        assert len(start_times) == 3
        gaps = [later - earlier for earlier, later in zip(start_times, start_times[1:])]
        assert all(gap == pytest.approx(0.5, abs=0.1) for gap in gaps)

    @pytest.mark.asyncio
    async def test_overrun_skips_missed_periods(self):
        """测试执行耗时超过周期时对齐到下一个周期点"""
        loop = asyncio.get_running_loop()
        start_times = []

        async def overrunning_job():
            start_times.append(loop.time())
            if len(start_times) == 1:
                await asyncio.sleep(0.5)

        self.scheduler.add_job('probe', 0.2, overrunning_job, run_immediately=True)
        await self.scheduler.start()
        await asyncio.sleep(0.7)
        await self.scheduler.stop()

        assert len(start_times) == 2
        assert start_times[1] - start_times[0] == pytest.approx(0.6, abs=0.1)

    @pytest.mark.asyncio
    async def test_run_immediately(self):
        """测试启动时立即执行与延迟执行"""
        immediate = []
        delayed = []

        self.scheduler.add_job('probe', 10, lambda: immediate.append(1), run_immediately=True)
        self.scheduler.add_job('reset', 10, lambda: delayed.append(1))
        await self.scheduler.start()
        await asyncio.sleep(0.05)
        await self.scheduler.stop()

        assert immediate == [1]
        assert delayed == []

    @pytest.mark.asyncio
    async def test_job_error_does_not_stop_schedule(self):
        """测试单个周期异常不影响后续周期"""
        async def failing_job():
            raise RuntimeError("boom")

        self.scheduler.add_job('probe', 0.02, failing_job, run_immediately=True)
        await self.scheduler.start()
        await asyncio.sleep(0.1)
        await self.scheduler.stop()

        job = self.scheduler.jobs['probe']
        assert job.run_count >= 2
        assert job.error_count == job.run_count

    @pytest.mark.asyncio
    async def test_jobs_are_independent(self):
        """测试两个周期任务互不影响"""
        probe_calls = []
        reset_calls = []

        async def slow_probe():
            probe_calls.append(1)
            await asyncio.sleep(1)

        self.scheduler.add_job('probe', 0.01, slow_probe, run_immediately=True)
        self.scheduler.add_job('reset', 0.02, lambda: reset_calls.append(1))
        await self.scheduler.start()
        await asyncio.sleep(0.1)
        await self.scheduler.stop()

        assert probe_calls == [1]
        assert len(reset_calls) >= 2

    @pytest.mark.asyncio
    async def test_stop_cancels_tasks(self):
        """测试停止时取消所有任务"""
        self.scheduler.add_job('probe', 10, lambda: None)
        await self.scheduler.start()
        tasks = list(self.scheduler.running_tasks.values())

        await self.scheduler.stop()

        assert not self.scheduler.is_running
        assert self.scheduler.running_tasks == {}
        assert all(task.done() for task in tasks)

    @pytest.mark.asyncio
    async def test_get_scheduler_stats(self):
        """测试统计信息"""
        self.scheduler.add_job('probe', 300, lambda: None, run_immediately=True)
        await self.scheduler.start()
        await asyncio.sleep(0.01)
        stats = self.scheduler.get_scheduler_stats()
        await self.scheduler.stop()

        assert stats['is_running'] is True
        assert stats['jobs']['probe']['interval'] == 300
        assert stats['jobs']['probe']['run_count'] == 1
        assert stats['jobs']['probe']['last_run_time'] is not None
