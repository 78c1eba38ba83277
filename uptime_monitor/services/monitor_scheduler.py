"""监控调度器模块

以固定周期运行若干相互独立的异步任务，每个任务可随调度器一起停止。
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Any, Optional, Callable, Awaitable, Union

from ..utils.exceptions import SchedulerError
from ..utils.log_manager import get_logger

JobFunc = Callable[[], Union[Awaitable[Any], Any]]


@dataclass
class PeriodicJob:
    """周期任务定义"""
    name: str
    interval: float
    func: JobFunc
    run_immediately: bool = False
    run_count: int = 0
    error_count: int = 0
    last_run_time: Optional[datetime] = None


class MonitorScheduler:
    """监控调度器

    每个周期任务运行在独立的 asyncio 任务中。单个周期内的异常会被捕获并记录，
    不会影响后续周期的执行。
    """

    def __init__(self):
        self.jobs: Dict[str, PeriodicJob] = {}
        self.running_tasks: Dict[str, asyncio.Task] = {}
        self.is_running = False
        self.logger = get_logger('scheduler')

    def add_job(self, name: str, interval: float, func: JobFunc,
                run_immediately: bool = False) -> PeriodicJob:
        """注册周期任务

        Args:
            name: 任务名称
            interval: 执行间隔（秒）
            func: 任务函数，可以是协程函数
            run_immediately: 启动时是否立即执行一次

        Raises:
            SchedulerError: 间隔无效或任务名重复
        """
        if interval <= 0:
            raise SchedulerError(f"任务 {name} 的执行间隔必须为正数", task_name=name)
        if name in self.jobs:
            raise SchedulerError(f"任务 {name} 已存在", task_name=name)

        job = PeriodicJob(name=name, interval=interval, func=func,
                          run_immediately=run_immediately)
        self.jobs[name] = job
        self.logger.info(f"注册周期任务 {name}: 间隔={interval:g}s, 立即执行={run_immediately}")

        if self.is_running:
            self._spawn(job)
        return job

    async def start(self):
        """启动所有周期任务"""
        if self.is_running:
            self.logger.warning("监控调度器已经在运行")
            return

        self.is_running = True
        for job in self.jobs.values():
            self._spawn(job)

        self.logger.info(f"监控调度器已启动，共 {len(self.jobs)} 个周期任务")

    async def stop(self):
        """停止所有周期任务"""
        if not self.is_running:
            return

        self.is_running = False
        self.logger.info("正在停止监控调度器...")

        tasks = list(self.running_tasks.values())
        for task in tasks:
            if not task.done():
                task.cancel()

        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        self.running_tasks.clear()
        self.logger.info("监控调度器已停止")

    def _spawn(self, job: PeriodicJob):
        task = asyncio.create_task(self._job_loop(job), name=f'job-{job.name}')
        self.running_tasks[job.name] = task

    async def _job_loop(self, job: PeriodicJob):
        """单个任务的调度循环

        下次执行时间以上次开始时间为基准推算，任务耗时不会累积为周期漂移。
        """
        loop = asyncio.get_running_loop()
        next_run = loop.time()
        if not job.run_immediately:
            next_run += job.interval
            await asyncio.sleep(job.interval)

        while self.is_running:
            await self.run_job(job)

            next_run += job.interval
            now = loop.time()
            if next_run < now:
                # 执行耗时超过周期，跳过已错过的时间点
                missed = int((now - next_run) // job.interval) + 1
                next_run += missed * job.interval
                self.logger.warning(f"周期任务 {job.name} 执行耗时超过周期，跳过 {missed} 次执行")

            await asyncio.sleep(next_run - now)

    async def run_job(self, job: PeriodicJob):
        """执行一次任务，异常只记录不抛出"""
        job.last_run_time = datetime.now()
        job.run_count += 1
        self.logger.debug(f"执行周期任务: {job.name} (第 {job.run_count} 次)")

        try:
            result = job.func()
            if asyncio.iscoroutine(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as e:
            job.error_count += 1
            self.logger.error(f"周期任务 {job.name} 执行异常: {e}", exc_info=True)

    def get_scheduler_stats(self) -> Dict[str, Any]:
        """获取调度器统计信息"""
        return {
            'is_running': self.is_running,
            'jobs': {
                name: {
                    'interval': job.interval,
                    'run_count': job.run_count,
                    'error_count': job.error_count,
                    'last_run_time': job.last_run_time.isoformat() if job.last_run_time else None,
                }
                for name, job in self.jobs.items()
            }
        }
