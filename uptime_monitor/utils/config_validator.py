"""配置验证工具"""

import re
from typing import Dict, Any

from .exceptions import ConfigError

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


class ConfigValidator:
    """配置验证器"""

    POSITIVE_INT_FIELDS = (
        'probe_interval',
        'reset_interval',
        'cross_check_window',
        'probe_timeout',
    )

    @staticmethod
    def validate_global_config(global_config: Dict[str, Any]) -> None:
        """
        验证全局配置

        Args:
            global_config: 全局配置

        Raises:
            ConfigError: 配置验证失败
        """
        if not isinstance(global_config, dict):
            raise ConfigError("全局配置必须是字典类型")

        for field in ConfigValidator.POSITIVE_INT_FIELDS:
            value = global_config.get(field)
            if value is not None:
                if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                    raise ConfigError(f"{field} 必须是正整数")

        pass_delay = global_config.get('cross_check_pass_delay')
        if pass_delay is not None:
            if not isinstance(pass_delay, (int, float)) or pass_delay < 0:
                raise ConfigError("cross_check_pass_delay 必须是非负数")

        port = global_config.get('liveness_port')
        if port is not None:
            ConfigValidator.validate_port('liveness_port', port)

        log_level = global_config.get('log_level')
        if log_level is not None:
            valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
            if log_level not in valid_levels:
                raise ConfigError(f"log_level 必须是以下值之一: {valid_levels}")

    @staticmethod
    def validate_mail_config(mail_config: Dict[str, Any]) -> None:
        """
        验证邮件告警配置

        Args:
            mail_config: 从环境变量解析出的邮件配置

        Raises:
            ConfigError: 配置验证失败
        """
        required_fields = {
            'from_email': 'FROM',
            'password': 'PASSWORD',
            'to_email': 'TO',
            'smtp_server': 'SMTPHOST',
            'smtp_port': 'SMTPPORT',
        }
        for field, env_name in required_fields.items():
            if not mail_config.get(field):
                raise ConfigError(f"缺少必需的环境变量: {env_name}")

        for field in ('from_email', 'to_email'):
            if not EMAIL_PATTERN.match(mail_config[field]):
                raise ConfigError(f"邮箱格式无效: {mail_config[field]}")

        ConfigValidator.validate_port('SMTPPORT', mail_config['smtp_port'])

    @staticmethod
    def validate_port(name: str, port: Any) -> None:
        if not isinstance(port, int) or isinstance(port, bool) or not (0 < port < 65536):
            raise ConfigError(f"{name} 必须是 1-65535 之间的整数: {port}")
