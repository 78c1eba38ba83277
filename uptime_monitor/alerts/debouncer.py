"""告警去抖动

每个冷却窗口内最多发送一次告警。闸门只有开/关两种状态，
关闭后只能由调度器的周期性重置重新打开，探测成功不会打开闸门。
"""

import threading
from typing import Optional

from .base import BaseAlerter
from ..models.probe import AlertMessage
from ..utils.exceptions import AlertSendError
from ..utils.log_manager import get_logger


class AlertDebouncer:
    """告警去抖动闸门"""

    def __init__(self, alerter: BaseAlerter):
        """
        Args:
            alerter: 实际发送告警的告警器
        """
        self.alerter = alerter
        self.sent = 0  # 0 表示可以发送，大于 0 表示当前窗口已发送
        self._lock = threading.Lock()
        self.last_error: Optional[AlertSendError] = None
        self.logger = get_logger('debouncer')

    @property
    def is_open(self) -> bool:
        return self.sent == 0

    async def try_alert(self, message: AlertMessage) -> bool:
        """
        闸门打开时发送告警并关闭闸门

        发送失败时闸门保持关闭：本窗口的发送机会已被占用。

        Args:
            message: 告警消息

        Returns:
            bool: 告警是否成功发送
        """
        with self._lock:
            if self.sent > 0:
                self.logger.info("当前窗口已发送过告警，跳过本次告警")
                return False
            self.sent += 1

        try:
            await self.alerter.send_alert(message)
        except AlertSendError as e:
            self.last_error = e
            self.logger.error(f"告警发送失败，本窗口内不再重试: {e.format_error()}")
            return False

        self.last_error = None
        self.logger.info("告警已发送，当前窗口内告警已禁用")
        return True

    def reset(self) -> None:
        """重新打开闸门"""
        with self._lock:
            was_closed = self.sent > 0
            self.sent = 0

        if was_closed:
            self.logger.info("告警闸门已重置，可以再次发送告警")
        else:
            self.logger.debug("告警闸门已处于打开状态")
