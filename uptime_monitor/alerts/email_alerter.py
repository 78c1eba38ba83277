"""邮件告警器实现"""

from email.mime.text import MIMEText
from typing import Dict, Any

import aiosmtplib

from .base import BaseAlerter
from ..models.probe import AlertMessage
from ..utils.config_validator import EMAIL_PATTERN
from ..utils.exceptions import AlertConfigError, AlertSendError
from ..utils.log_manager import get_logger

SMTPS_PORT = 465


class EmailAlerter(BaseAlerter):
    """邮件告警器，通过SMTP协议发送单个收件人的告警邮件

    不做重试：发送失败直接抛出 AlertSendError，由调用方决定如何处理。
    """

    def __init__(self, name: str, config: Dict[str, Any]):
        """
        初始化邮件告警器

        Args:
            name: 告警器名称
            config: 告警器配置，包含 smtp_server、smtp_port、from_email、
                password、to_email
        """
        super().__init__(name, config)
        self.logger = get_logger(f'alerter.email.{self.name}')

        self.smtp_server = config.get('smtp_server', '')
        self.smtp_port = config.get('smtp_port', 587)
        self.from_email = config.get('from_email', '')
        self.password = config.get('password', '')
        self.to_email = config.get('to_email', '')

        if not self.validate_config():
            raise AlertConfigError(f"邮件告警器配置无效: {name}", alert_name=name)

    def validate_config(self) -> bool:
        """
        验证配置参数是否有效

        Returns:
            bool: 配置是否有效
        """
        if not self.smtp_server:
            self.logger.error(f"邮件告警器 {self.name} 缺少SMTP服务器配置")
            return False

        if not self.password:
            self.logger.error(f"邮件告警器 {self.name} 缺少密码配置")
            return False

        for email in (self.from_email, self.to_email):
            if not email or not EMAIL_PATTERN.match(email):
                self.logger.error(f"邮件告警器 {self.name} 邮箱格式无效: {email!r}")
                return False

        if not isinstance(self.smtp_port, int) or self.smtp_port <= 0:
            self.logger.error(f"邮件告警器 {self.name} SMTP端口无效: {self.smtp_port}")
            return False

        return True

    async def send_alert(self, message: AlertMessage) -> None:
        """
        发送告警邮件

        Args:
            message: 告警消息对象

        Raises:
            AlertSendError: SMTP 发送失败
        """
        await self.send(self.from_email, self.to_email, message.subject, message.body)

    async def send(self, from_addr: str, to_addr: str, subject: str, body: str) -> None:
        """
        通过SMTP中继发送一封纯文本邮件

        Args:
            from_addr: 发件人
            to_addr: 收件人
            subject: 主题
            body: 正文

        Raises:
            AlertSendError: SMTP 发送失败
        """
        email_msg = MIMEText(body, 'plain', 'utf-8')
        email_msg['From'] = from_addr
        email_msg['To'] = to_addr
        email_msg['Subject'] = subject

        # 465 端口使用隐式TLS，其余端口在服务器支持时升级STARTTLS
        smtp_kwargs = {
            'hostname': self.smtp_server,
            'port': self.smtp_port,
            'timeout': self.get_timeout(),
            'use_tls': self.smtp_port == SMTPS_PORT,
        }

        try:
            await aiosmtplib.send(
                email_msg,
                sender=from_addr,
                recipients=[to_addr],
                username=from_addr,
                password=self.password,
                **smtp_kwargs
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            self.logger.error(f"SMTP发送失败: {e}")
            raise AlertSendError(f"SMTP发送失败: {e}", alert_name=self.name, cause=e)

        self.logger.info(f"邮件告警发送成功: {from_addr} -> {to_addr}")

    def get_config_summary(self) -> Dict[str, Any]:
        """
        获取配置摘要（不含密码）

        Returns:
            Dict[str, Any]: 配置摘要
        """
        return {
            'name': self.name,
            'type': 'email',
            'smtp_server': self.smtp_server,
            'smtp_port': self.smtp_port,
            'from_email': self.from_email,
            'to_email': self.to_email,
            'timeout': self.get_timeout(),
        }
