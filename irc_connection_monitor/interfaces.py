"""
服务接口定义
"""
from abc import ABC, abstractmethod
from typing import Callable, Dict, List

from .models import AddressFamily, CertificateExpiryResult, CheckConfig, ConnectionOutcome

# IRC事件名称（与 irc 库的全局事件名一致）
ALL_EVENTS = "all_events"
REGISTERED = "welcome"


class AddressResolverInterface(ABC):
    """地址解析器接口"""

    @abstractmethod
    def resolve(self, host: str, family: AddressFamily) -> str:
        """将主机名解析为指定地址族的单个地址"""
        pass


class CertificateValidatorInterface(ABC):
    """证书有效期校验器接口"""

    @abstractmethod
    def validate(self, chains: List[List[Dict]]) -> CertificateExpiryResult:
        """校验证书链的剩余有效期"""
        pass


class ProtocolClientInterface(ABC):
    """IRC协议客户端接口"""

    @abstractmethod
    def add_handler(self, event: str, handler: Callable[[str], None]):
        """注册事件处理器，处理器参数为事件类型"""
        pass

    @abstractmethod
    def connect(self):
        """建立连接并阻塞直到会话关闭"""
        pass

    @abstractmethod
    def close(self):
        """关闭会话"""
        pass

    @abstractmethod
    def tls_connection_state(self) -> List[List[Dict]]:
        """获取TLS会话中经过验证的证书链"""
        pass


class LoggerServiceInterface(ABC):
    """日志服务接口"""

    @abstractmethod
    def log_check_start(self, config: CheckConfig):
        """记录检查开始"""
        pass

    @abstractmethod
    def log_outcome(self, outcome: ConnectionOutcome):
        """记录检查结果"""
        pass

    @abstractmethod
    def log_error(self, host: str, error: Exception):
        """记录错误信息"""
        pass
