"""可用性监控核心

持有只读的目标列表和独占的告警闸门，供调度器的两个周期任务调用。
"""

from datetime import datetime
from typing import Dict, Any, Optional

from .config_manager import DEFAULT_BODY_TEMPLATE, DEFAULT_SUBJECT
from .cross_check import CrossCheckEvaluator
from .target_registry import TargetRegistry
from ..alerts.debouncer import AlertDebouncer
from ..checkers.base import BaseProbeClient
from ..models.probe import (
    AlertMessage, CrossCheckEvidence, CycleReport, ProbeOutcome, Verdict
)
from ..utils.log_manager import get_logger


class UptimeMonitor:
    """可用性监控器"""

    def __init__(self, registry: TargetRegistry,
                 probe_client: BaseProbeClient,
                 evaluator: CrossCheckEvaluator,
                 debouncer: AlertDebouncer,
                 subject: str = DEFAULT_SUBJECT,
                 body_template: str = DEFAULT_BODY_TEMPLATE):
        self.registry = registry
        self.probe_client = probe_client
        self.evaluator = evaluator
        self.debouncer = debouncer
        self.subject = subject
        self.body_template = body_template
        self.last_report: Optional[CycleReport] = None
        self.logger = get_logger('monitor')

    async def run_probe_cycle(self) -> CycleReport:
        """执行一次探测周期

        主目标健康则结束；不健康且存在备用目标时执行交叉验证，
        结论为整体宕机时尝试发送告警。

        Returns:
            CycleReport: 本周期汇总
        """
        primary_url = self.registry.primary
        result = await self.probe_client.probe(primary_url)
        report = CycleReport(primary=result)
        self.last_report = report

        if result.outcome is ProbeOutcome.HEALTHY:
            self.logger.info(f"主目标 {primary_url} 健康 (状态码: {result.status_code})")
            return report

        if result.outcome is ProbeOutcome.PROBE_ERROR:
            self.logger.warning(f"主目标 {primary_url} 探测失败: {result.error_message}")
            return report

        if not self.registry.fallbacks:
            # 仅配置了主目标时无法交叉验证，不升级为告警
            self.logger.warning(
                f"主目标 {primary_url} 不健康 (状态码: {result.status_code})，"
                f"未配置备用目标，不发送告警")
            return report

        self.logger.info(f"主目标 {primary_url} 不健康，开始检查备用目标以确认服务状态")
        evidence, verdict = await self.evaluator.cross_check(self.registry.fallbacks)
        report.evidence = evidence
        report.verdict = verdict

        if verdict is Verdict.FLEET_DOWN:
            self.logger.error("所有已检查的目标均不健康，判定服务整体宕机")
            message = self.build_alert_message(evidence)
            report.alert_sent = await self.debouncer.try_alert(message)
        elif verdict is Verdict.PRIMARY_FLAKY:
            self.logger.warning(f"服务仍在运行，可能是主目标 {primary_url} 存在问题")
        else:
            self.logger.warning("交叉验证窗口内未检查到任何备用目标，无法得出结论")

        return report

    def reset_alert_gate(self) -> None:
        self.debouncer.reset()

    def build_alert_message(self, evidence: CrossCheckEvidence) -> AlertMessage:
        """根据交叉验证证据构建告警消息"""
        template_vars = {
            'primary_url': self.registry.primary,
            'timestamp': datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
            'checked_count': evidence.checked_count,
            'unhealthy_count': evidence.unhealthy_count,
            'unhealthy_targets': '\n'.join(evidence.unhealthy_targets),
        }

        return AlertMessage(
            subject=self._render_template(self.subject, template_vars),
            body=self._render_template(self.body_template, template_vars),
            metadata=template_vars
        )

    @staticmethod
    def _render_template(template_str: str, template_vars: Dict[str, Any]) -> str:
        # 使用 {{variable}} 语法进行字符串替换
        rendered = template_str
        for key, value in template_vars.items():
            rendered = rendered.replace(f'{{{{{key}}}}}', str(value))
        return rendered
