"""
配置验证服务
"""
import re
from datetime import timedelta
from typing import Any, Dict
import logging

from ..models import CheckConfig


class ConfigValidator:
    """检查配置验证器"""

    def __init__(self):
        """初始化配置验证器"""
        self.logger = logging.getLogger(__name__)

        # IRC昵称和用户名中不允许出现空白字符
        self.identity_pattern = re.compile(r'^\S+$')

    def validate(self, config: CheckConfig) -> Dict[str, Any]:
        """
        验证检查配置

        Args:
            config: 检查配置

        Returns:
            Dict[str, Any]: 验证结果，包含 is_valid、errors 和 warnings
        """
        result = {
            'is_valid': True,
            'errors': [],
            'warnings': []
        }

        if not config.host or not config.host.strip():
            result['errors'].append("host is required")

        if not 1 <= config.port <= 65535:
            result['errors'].append(f"invalid port {config.port}: must be between 1 and 65535")

        for field_name in ('nick', 'user'):
            value = getattr(config, field_name)
            if not value or not self.identity_pattern.match(value):
                result['errors'].append(f"invalid {field_name} {value!r}")

        if config.timeout <= timedelta(0):
            result['errors'].append("timeout must be greater than zero")

        min_expire = config.tls.min_remaining_validity
        if min_expire is not None and min_expire < timedelta(0):
            result['errors'].append("tls.min-expire must not be negative")

        if not config.tls.enabled:
            if min_expire:
                result['warnings'].append("tls.min-expire has no effect without tls.use")
            if config.tls.verify_peer:
                result['warnings'].append("tls.check-cert has no effect without tls.use")
        elif min_expire and not config.tls.verify_peer:
            result['warnings'].append(
                "tls.min-expire without tls.check-cert has no verified chains to inspect"
            )

        result['is_valid'] = not result['errors']

        for warning in result['warnings']:
            self.logger.warning(f"配置警告: {warning}")

        return result
