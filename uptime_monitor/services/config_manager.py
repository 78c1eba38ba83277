"""配置管理器

启动时一次性解析配置：
- 邮件相关配置与凭据来自进程环境变量（可先从 .env 文件加载）
- 调优参数来自可选的 YAML 配置文件的 global 节
"""

import os
from typing import Dict, Any, Optional

import yaml
from dotenv import load_dotenv

from ..utils.config_validator import ConfigValidator
from ..utils.exceptions import ConfigError, ErrorCode
from ..utils.log_manager import get_logger

DEFAULT_GLOBAL_CONFIG: Dict[str, Any] = {
    'probe_interval': 300,
    'reset_interval': 900,
    'cross_check_window': 30,
    'cross_check_pass_delay': 1,
    'probe_timeout': 10,
    'liveness_host': '0.0.0.0',
    'liveness_port': 8000,
    'log_level': 'INFO',
}

DEFAULT_SUBJECT = 'Service Outage Detected'

DEFAULT_BODY_TEMPLATE = """Primary target {{primary_url}} is down.

Detected at: {{timestamp}}
Fallback targets checked: {{checked_count}}
Fallback targets unhealthy: {{unhealthy_count}}
{{unhealthy_targets}}
"""

# 环境变量名 -> 邮件配置键
MAIL_ENV_VARS = {
    'FROM': 'from_email',
    'PASSWORD': 'password',
    'TO': 'to_email',
    'SMTPHOST': 'smtp_server',
    'SMTPPORT': 'smtp_port',
    'EMAILBODY': 'body_template',
    'EMAILSUBJECT': 'subject',
}


class ConfigManager:
    """配置管理器"""

    def __init__(self, config_path: Optional[str] = None, env_file: Optional[str] = '.env'):
        """
        初始化配置管理器

        Args:
            config_path: YAML 配置文件路径，None 表示全部使用默认值
            env_file: .env 文件路径，None 表示只读取进程环境变量
        """
        self.config_path = config_path
        self.env_file = env_file
        self.config: Dict[str, Any] = {}
        self.logger = get_logger('config_manager')

    def load_config(self) -> Dict[str, Any]:
        """
        加载并验证全部配置

        Returns:
            Dict[str, Any]: 包含 global 和 mail 两个节的配置字典

        Raises:
            ConfigError: 配置加载或验证失败
        """
        global_config = dict(DEFAULT_GLOBAL_CONFIG)
        global_config.update(self._load_yaml())
        ConfigValidator.validate_global_config(global_config)

        mail_config = self._load_mail_config()
        ConfigValidator.validate_mail_config(mail_config)

        self.config = {'global': global_config, 'mail': mail_config}
        self.logger.info(
            f"配置加载完成: 探测间隔={global_config['probe_interval']}s, "
            f"重置间隔={global_config['reset_interval']}s, "
            f"SMTP={mail_config['smtp_server']}:{mail_config['smtp_port']}")
        return self.config

    def _load_yaml(self) -> Dict[str, Any]:
        if not self.config_path:
            return {}

        self.logger.info(f"开始加载配置文件: {self.config_path}")

        try:
            with open(self.config_path, 'r', encoding='utf-8') as file:
                config = yaml.safe_load(file)
        except FileNotFoundError:
            raise ConfigError(f"配置文件不存在: {self.config_path}",
                              error_code=ErrorCode.CONFIG_FILE_NOT_FOUND,
                              config_path=self.config_path)
        except PermissionError:
            raise ConfigError(f"没有权限读取配置文件: {self.config_path}",
                              config_path=self.config_path)
        except yaml.YAMLError as e:
            raise ConfigError(f"YAML格式错误: {e}",
                              error_code=ErrorCode.CONFIG_PARSE_ERROR,
                              config_path=self.config_path)

        if config is None:
            return {}

        if not isinstance(config, dict):
            raise ConfigError("配置文件根节点必须是字典类型", config_path=self.config_path)

        global_config = config.get('global', {})
        if not isinstance(global_config, dict):
            raise ConfigError("global配置必须是字典类型", config_path=self.config_path)

        return global_config

    def _load_mail_config(self) -> Dict[str, Any]:
        if self.env_file:
            if os.path.exists(self.env_file):
                load_dotenv(self.env_file)
                self.logger.info(f"已加载环境变量文件: {self.env_file}")
            else:
                self.logger.warning(f"环境变量文件不存在，仅使用进程环境变量: {self.env_file}")

        mail_config: Dict[str, Any] = {
            key: os.getenv(env_name, '') for env_name, key in MAIL_ENV_VARS.items()
        }
        mail_config['subject'] = mail_config['subject'] or DEFAULT_SUBJECT
        mail_config['body_template'] = mail_config['body_template'] or DEFAULT_BODY_TEMPLATE

        port = mail_config['smtp_port']
        if port:
            try:
                mail_config['smtp_port'] = int(port)
            except ValueError:
                raise ConfigError(f"SMTPPORT 必须是整数: {port}")

        return mail_config

    def get_global_config(self) -> Dict[str, Any]:
        return self.config.get('global', {})

    def get_mail_config(self) -> Dict[str, Any]:
        return self.config.get('mail', {})
