#!/usr/bin/env python3
"""
可用性监控系统主应用程序入口

集成所有组件，实现应用程序启动和优雅关闭，
添加信号处理和异常捕获。
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Optional, Dict, Any

from uptime_monitor.alerts.debouncer import AlertDebouncer
from uptime_monitor.alerts.email_alerter import EmailAlerter
from uptime_monitor.checkers.http_probe import HttpProbeClient
from uptime_monitor.services.config_manager import ConfigManager
from uptime_monitor.services.cross_check import CrossCheckEvaluator
from uptime_monitor.services.liveness_server import LivenessServer
from uptime_monitor.services.monitor_scheduler import MonitorScheduler
from uptime_monitor.services.target_registry import TargetRegistry
from uptime_monitor.services.uptime_monitor import UptimeMonitor
from uptime_monitor.models.probe import Verdict
from uptime_monitor.utils.exceptions import ErrorCode, UptimeMonitorError
from uptime_monitor.utils.log_manager import log_manager, get_logger

# 版本信息
__version__ = "1.0.0"

PROBE_JOB = 'uptime-probe'
RESET_JOB = 'alert-reset'


class UptimeMonitorApp:
    """可用性监控系统主应用程序类"""

    def __init__(self, targets_path: str, config_path: Optional[str] = None,
                 env_file: Optional[str] = '.env',
                 log_overrides: Optional[Dict[str, Any]] = None):
        """初始化应用程序

        Args:
            targets_path: 目标列表文件路径
            config_path: YAML 配置文件路径
            env_file: .env 文件路径
            log_overrides: 命令行传入的日志配置覆盖项
        """
        self.targets_path = targets_path
        self.config_path = config_path
        self.env_file = env_file
        self.log_overrides = log_overrides or {}
        self.logger: Optional[logging.Logger] = None
        self.is_running = False
        self.shutdown_event = asyncio.Event()

        # 核心组件
        self.config_manager: Optional[ConfigManager] = None
        self.registry: Optional[TargetRegistry] = None
        self.alerter: Optional[EmailAlerter] = None
        self.monitor: Optional[UptimeMonitor] = None
        self.scheduler: Optional[MonitorScheduler] = None
        self.liveness_server: Optional[LivenessServer] = None

    async def initialize(self):
        """初始化应用程序组件

        Raises:
            ConfigError: 配置无效
            TargetListError: 目标列表不可读或为空
        """
        self.config_manager = ConfigManager(self.config_path, self.env_file)
        self.config_manager.load_config()
        global_config = self.config_manager.get_global_config()
        mail_config = self.config_manager.get_mail_config()

        self._configure_logging(global_config)
        self.logger = get_logger('main')
        self.logger.info("开始初始化可用性监控系统")

        self.registry = TargetRegistry.load(self.targets_path)

        probe_client = HttpProbeClient({'timeout': global_config['probe_timeout']})
        evaluator = CrossCheckEvaluator(
            probe_client,
            window=global_config['cross_check_window'],
            pass_delay=global_config['cross_check_pass_delay']
        )
        self.alerter = EmailAlerter('email', mail_config)
        debouncer = AlertDebouncer(self.alerter)

        self.monitor = UptimeMonitor(
            self.registry, probe_client, evaluator, debouncer,
            subject=mail_config['subject'],
            body_template=mail_config['body_template']
        )

        self.scheduler = MonitorScheduler()
        self.scheduler.add_job(PROBE_JOB, global_config['probe_interval'],
                               self.monitor.run_probe_cycle, run_immediately=True)
        self.scheduler.add_job(RESET_JOB, global_config['reset_interval'],
                               self.monitor.reset_alert_gate)

        self.liveness_server = LivenessServer(global_config['liveness_host'],
                                              global_config['liveness_port'])

        self.logger.info("应用程序组件初始化完成")

    def _configure_logging(self, global_config: Dict[str, Any]):
        """配置日志系统，命令行参数优先于配置文件"""
        log_config = {
            'log_level': global_config.get('log_level', 'INFO'),
            'enable_console': True,
        }

        if global_config.get('log_file'):
            log_config['log_file'] = global_config['log_file']
            log_config['max_file_size'] = global_config.get('max_log_size',
                                                            10 * 1024 * 1024)
            log_config['backup_count'] = global_config.get('log_backup_count', 5)

        log_config.update(self.log_overrides)
        log_manager.configure(log_config)

    async def start(self):
        """启动应用程序并等待关闭信号"""
        if self.scheduler is None:
            raise UptimeMonitorError("应用程序尚未初始化",
                                     ErrorCode.INITIALIZATION_ERROR, recoverable=False)

        if self.is_running:
            self.logger.warning("应用程序已经在运行")
            return

        try:
            self.is_running = True
            self.logger.info("启动可用性监控系统")

            await self.liveness_server.start()
            await self.scheduler.start()

            self.logger.info("可用性监控系统启动完成")

            await self.shutdown_event.wait()

        except Exception as e:
            self.logger.error(f"应用程序运行异常: {e}", exc_info=True)
            raise
        finally:
            await self.stop()

    async def stop(self):
        """停止应用程序"""
        if not self.is_running:
            return

        self.logger.info("正在停止可用性监控系统...")
        self.is_running = False

        try:
            if self.scheduler:
                await self.scheduler.stop()

            if self.liveness_server:
                await self.liveness_server.stop()

            self.logger.info("可用性监控系统已停止")

        except Exception as e:
            self.logger.error(f"停止应用程序时发生异常: {e}", exc_info=True)

    def shutdown(self):
        """触发应用程序关闭"""
        if self.logger:
            self.logger.info("收到关闭信号")
        self.shutdown_event.set()

    def get_status(self) -> Dict[str, Any]:
        """获取应用程序状态"""
        status = {
            'is_running': self.is_running,
            'targets_path': self.targets_path,
        }

        if self.registry:
            status['targets'] = list(self.registry.urls)
            status['primary'] = self.registry.primary
            status['fallback_count'] = len(self.registry.fallbacks)

        if self.alerter:
            status['alerter'] = self.alerter.get_config_summary()

        if self.monitor:
            status['alert_gate_open'] = self.monitor.debouncer.is_open

        if self.scheduler:
            status['scheduler_stats'] = self.scheduler.get_scheduler_stats()

        return status


def create_argument_parser() -> argparse.ArgumentParser:
    """创建命令行参数解析器"""
    parser = argparse.ArgumentParser(
        prog='uptime-monitor',
        description='可用性监控系统 - 探测主目标，交叉验证备用目标，整体宕机时发送邮件告警',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例用法:
  %(prog)s -f urls.txt                          # 使用目标列表启动监控
  %(prog)s -f urls.txt --config settings.yaml   # 指定调优配置文件
  %(prog)s -f urls.txt --check-once             # 执行一次探测周期后退出

邮件配置通过环境变量（或 .env 文件）提供:
  FROM, PASSWORD, TO, SMTPHOST, SMTPPORT, EMAILBODY(可选), EMAILSUBJECT(可选)
        """
    )

    parser.add_argument(
        '-f', '--file',
        dest='targets_file',
        help='目标列表文件路径，每行一个URL，第一行为主目标'
    )

    parser.add_argument(
        '--version', '-v',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--config',
        help='YAML调优配置文件路径'
    )

    parser.add_argument(
        '--env-file',
        default='.env',
        help='环境变量文件路径（默认: .env）'
    )

    parser.add_argument(
        '--check-once',
        action='store_true',
        help='执行一次探测周期后退出'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='设置日志级别（覆盖配置文件设置）'
    )

    parser.add_argument(
        '--log-file',
        help='日志文件路径（覆盖配置文件设置）'
    )

    return parser


async def check_once(app: UptimeMonitorApp) -> bool:
    """执行一次探测周期

    Returns:
        未判定为整体宕机时返回 True
    """
    report = await app.monitor.run_probe_cycle()
    primary = report.primary
    print(f"主目标 {primary.url}: {primary.outcome.value}"
          f" (状态码: {primary.status_code}, 响应时间: {primary.response_time:.3f}s)")

    if report.verdict is not None:
        print(f"交叉验证结论: {report.verdict.value}, "
              f"已检查 {report.evidence.checked_count} 个，"
              f"不健康 {report.evidence.unhealthy_count} 个")

    return report.verdict is not Verdict.FLEET_DOWN


async def main():
    """主函数"""
    parser = create_argument_parser()
    args = parser.parse_args()

    if not args.targets_file:
        parser.print_help()
        sys.exit(1)

    log_overrides = {}
    if args.log_level:
        log_overrides['log_level'] = args.log_level
    if args.log_file:
        log_overrides['log_file'] = args.log_file

    app = UptimeMonitorApp(args.targets_file, args.config, args.env_file, log_overrides)

    try:
        await app.initialize()
    except UptimeMonitorError as e:
        print(f"启动失败: {e.format_error()}", file=sys.stderr)
        sys.exit(1)

    if args.check_once:
        success = await check_once(app)
        sys.exit(0 if success else 1)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, app.shutdown)
        except NotImplementedError:
            # Windows 事件循环不支持
            signal.signal(sig, lambda signum, frame: app.shutdown())

    print(f"可用性监控系统 v{__version__} 已启动")
    print(f"目标列表: {args.targets_file}")
    print("按 Ctrl+C 停止程序")

    try:
        await app.start()
    except KeyboardInterrupt:
        print("\n用户中断程序")
    finally:
        await app.stop()
        log_manager.cleanup()


def run():
    """控制台脚本入口"""
    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())

    asyncio.run(main())


if __name__ == "__main__":
    run()
