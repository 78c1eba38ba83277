"""探测与交叉验证相关的数据模型"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional, List


class ProbeOutcome(Enum):
    """单次探测结果分类"""
    HEALTHY = "healthy"          # HTTP 状态码 < 400
    UNHEALTHY = "unhealthy"      # HTTP 状态码 >= 400
    PROBE_ERROR = "probe_error"  # 传输层失败：超时、DNS、连接拒绝、重定向被拒


class Verdict(Enum):
    """交叉验证结论"""
    PRIMARY_FLAKY = "primary_flaky"
    FLEET_DOWN = "fleet_down"
    INCONCLUSIVE = "inconclusive"


@dataclass
class ProbeResult:
    """单次探测结果"""
    url: str
    outcome: ProbeOutcome
    response_time: float
    status_code: Optional[int] = None
    error_message: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def is_healthy(self) -> bool:
        return self.outcome is ProbeOutcome.HEALTHY


@dataclass
class CrossCheckEvidence:
    """交叉验证证据

    每次交叉验证新建，验证结束即丢弃，不在多次调用间共享。
    """
    observations: Dict[str, bool] = field(default_factory=dict)  # URL -> 是否观察到不健康
    checked_count: int = 0

    def record(self, result: ProbeResult) -> None:
        # 探测失败同样计为不健康
        self.observations[result.url] = not result.is_healthy
        self.checked_count += 1

    @property
    def unhealthy_count(self) -> int:
        return sum(1 for unhealthy in self.observations.values() if unhealthy)

    @property
    def unhealthy_targets(self) -> List[str]:
        return [url for url, unhealthy in self.observations.items() if unhealthy]

    def verdict(self) -> Verdict:
        """根据证据给出结论：所有已到达的备用目标都不健康才判定为整体宕机"""
        if self.checked_count == 0:
            return Verdict.INCONCLUSIVE
        if self.unhealthy_count == len(self.observations):
            return Verdict.FLEET_DOWN
        return Verdict.PRIMARY_FLAKY


@dataclass
class CycleReport:
    """一次探测周期的汇总"""
    primary: ProbeResult
    evidence: Optional[CrossCheckEvidence] = None
    verdict: Optional[Verdict] = None
    alert_sent: bool = False


@dataclass
class AlertMessage:
    """告警消息模型"""
    subject: str
    body: str
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)
