"""
数据模型定义
"""
import threading
from dataclasses import dataclass, field, replace
from datetime import timedelta
from enum import Enum
from typing import Optional


class AddressFamily(Enum):
    """地址族偏好"""
    UNSET = "unset"
    V4_ONLY = "v4-only"
    V6_ONLY = "v6-only"

    @classmethod
    def from_flags(cls, v4: bool, v6: bool) -> "AddressFamily":
        """同时指定 -4 和 -6 等同于未指定"""
        if v4 and not v6:
            return cls.V4_ONLY
        if v6 and not v4:
            return cls.V6_ONLY
        return cls.UNSET


@dataclass(frozen=True)
class TLSPolicy:
    """TLS传输策略"""
    enabled: bool = False
    verify_peer: bool = False
    min_remaining_validity: Optional[timedelta] = None

    @property
    def expiry_check_enabled(self) -> bool:
        """是否需要检查证书剩余有效期"""
        return (
            self.enabled
            and self.min_remaining_validity is not None
            and self.min_remaining_validity > timedelta(0)
        )


@dataclass(frozen=True)
class CheckConfig:
    """单次检查的输入配置"""
    host: str
    port: int = 6667
    nick: str = "nagios-check"
    user: str = "nagios"
    password: Optional[str] = None
    family: AddressFamily = AddressFamily.UNSET
    tls: TLSPolicy = field(default_factory=TLSPolicy)
    require_registration: bool = False
    timeout: timedelta = timedelta(seconds=30)
    debug: bool = False
    address: Optional[str] = None

    @property
    def connect_address(self) -> str:
        """实际连接的地址（解析后的地址优先）"""
        return self.address or self.host

    def with_address(self, address: str) -> "CheckConfig":
        return replace(self, address=address)


@dataclass(frozen=True)
class SessionConfig:
    """传递给IRC客户端的会话配置"""
    server: str
    port: int
    nick: str
    user: str
    password: Optional[str] = None
    use_tls: bool = False
    tls_server_name: Optional[str] = None
    verify_peer: bool = False


class OutcomeStatus(Enum):
    """检查结果状态，值为进程退出码"""
    SUCCESS = 0
    WARNING = 1
    CRITICAL = 2


@dataclass(frozen=True)
class ConnectionOutcome:
    """单次检查的最终结果"""
    status: OutcomeStatus
    extra: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def exit_code(self) -> int:
        return self.status.value

    def render(self) -> str:
        """
        生成监控系统使用的单行输出

        Returns:
            str: 例如 "OK (cert expires in 100h0m0s)" 或 "CRITICAL: TIMEOUT 30s"
        """
        if self.status is OutcomeStatus.SUCCESS:
            return "OK" + (f" {self.extra}" if self.extra else "")
        return f"{self.status.name}: {self.error}"


@dataclass(frozen=True)
class CertificateExpiryResult:
    """证书剩余有效期计算结果"""
    min_remaining: Optional[timedelta]
    certificates_checked: int = 0


class EventCounter:
    """线程安全的事件计数器"""

    def __init__(self):
        self._lock = threading.Lock()
        self._value = 0

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value
