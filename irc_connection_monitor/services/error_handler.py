"""
错误处理服务
"""
import socket
import ssl
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
import logging

from ..models import ConnectionOutcome, OutcomeStatus
from .durations import format_duration


class ProbeError(Exception):
    """检查过程中所有错误的基类"""


class ConfigurationError(ProbeError):
    """配置无效"""


class ResolutionError(ProbeError):
    """主机名无法解析为指定地址族的地址"""


class ConnectError(ProbeError):
    """传输层或协议层连接失败"""


class ProbeTimeoutError(ProbeError, TimeoutError):
    """在超时时间内没有收到确认事件"""


class RegistrationTimeoutError(ProbeTimeoutError):
    """已收到事件但注册未在超时时间内完成"""

    def __init__(self, message: str, event_count: int):
        super().__init__(message)
        self.event_count = event_count


class CertificateExpiringError(ProbeError):
    """证书剩余有效期低于阈值"""

    def __init__(self, remaining: timedelta):
        super().__init__(f"tls cert expires in {format_duration(remaining)}")
        self.remaining = remaining


class CertificateInspectionError(ProbeError):
    """无法获取或解析证书链"""


class OutcomeErrorHandler:
    """将检查错误转换为监控结果"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def to_outcome(self, error: Exception, extra: Optional[str] = None) -> ConnectionOutcome:
        """
        将异常转换为检查结果

        Args:
            error: 检查过程中抛出的异常
            extra: 已收集的附加信息

        Returns:
            ConnectionOutcome: 证书即将过期为 WARNING，其余均为 CRITICAL
        """
        status = OutcomeStatus.CRITICAL
        if isinstance(error, CertificateExpiringError):
            status = OutcomeStatus.WARNING

        error_info = self.describe(error)
        self.logger.debug(
            f"{error_info['error_type']}: {error_info['error_message']}，"
            f"建议: {error_info['suggested_action']}"
        )

        return ConnectionOutcome(status=status, extra=extra, error=error)

    def describe(self, error: Exception) -> Dict[str, Any]:
        """
        生成错误描述信息

        Args:
            error: 异常对象

        Returns:
            Dict[str, Any]: 错误类型、消息、严重级别、时间和建议处理方案
        """
        return {
            'error_type': type(error).__name__,
            'error_message': str(error),
            'severity': 'warning' if isinstance(error, CertificateExpiringError) else 'critical',
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'suggested_action': self._get_suggested_action(error)
        }

    def _root_cause(self, error: BaseException) -> BaseException:
        """沿异常链找到最初的异常"""
        cause = error
        seen = {id(cause)}
        while True:
            inner = cause.__cause__ or cause.__context__
            if inner is None or id(inner) in seen:
                return cause
            seen.add(id(inner))
            cause = inner

    def _get_suggested_action(self, error: Exception) -> str:
        """
        获取错误的建议处理方案

        Args:
            error: 异常对象

        Returns:
            str: 建议的处理方案
        """
        cause = self._root_cause(error)
        error_message = str(error).lower()

        if isinstance(error, ConfigurationError):
            return "检查命令行参数"
        elif isinstance(error, ResolutionError):
            return "检查主机名是否正确，DNS服务器是否可用，是否存在对应地址族的记录"
        elif isinstance(error, RegistrationTimeoutError):
            return "服务器已响应但未完成注册，检查昵称、密码以及服务器的ident/DNS查询"
        elif isinstance(error, ProbeTimeoutError):
            return "检查网络连接，考虑增加超时时间"
        elif isinstance(error, CertificateExpiringError):
            return "尽快更新服务器证书"
        elif isinstance(error, CertificateInspectionError):
            return "检查服务器TLS配置，确认启用了证书校验"
        elif isinstance(cause, ConnectionRefusedError):
            return "检查目标服务器是否运行，端口是否正确"
        elif isinstance(cause, ssl.SSLError):
            if 'certificate verify failed' in error_message:
                return "证书验证失败，可能是自签名证书或证书链问题"
            return "SSL握手失败，检查服务器是否在该端口启用了TLS"
        elif isinstance(cause, socket.timeout):
            return "连接超时，检查防火墙和网络配置"
        elif 'network is unreachable' in error_message:
            return "网络不可达，检查网络连接和路由"
        else:
            return "检查网络连接和服务器状态"
