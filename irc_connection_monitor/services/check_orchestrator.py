"""
连接检查编排服务

在独立线程中发起连接，并让"失败"、"完成"和"超时"三个信号竞争，
以最先到达的信号作为本次检查的结果。
"""
import queue
import threading
import logging
from enum import Enum
from typing import Callable, List, Optional, Type

from ..interfaces import ALL_EVENTS, REGISTERED, ProtocolClientInterface
from ..models import CheckConfig, EventCounter, SessionConfig
from .certificate_validator import CertificateValidator
from .durations import format_duration, truncate_to_hour
from .error_handler import (
    CertificateInspectionError,
    ConnectError,
    ProbeError,
    ProbeTimeoutError,
    RegistrationTimeoutError,
)
from .irc_client import IRCProtocolClient


class CheckState(Enum):
    """检查状态"""
    IDLE = "idle"
    CONNECTING = "connecting"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CLOSED = "closed"


_DONE = "done"
_FAILED = "failed"


def default_client_factory(session: SessionConfig, config: CheckConfig) -> ProtocolClientInterface:
    return IRCProtocolClient(session, connect_timeout=config.timeout.total_seconds())


class CheckOrchestrator:
    """连接检查编排器"""

    def __init__(self,
                 client_factory: Optional[Callable[[SessionConfig, CheckConfig], ProtocolClientInterface]] = None,
                 validator_factory: Optional[Callable[[CheckConfig], CertificateValidator]] = None):
        """
        初始化编排器

        Args:
            client_factory: 根据会话配置创建IRC客户端
            validator_factory: 根据检查配置创建证书校验器
        """
        self.client_factory = client_factory or default_client_factory
        self.validator_factory = validator_factory or (
            lambda config: CertificateValidator(config.tls.min_remaining_validity)
        )
        self.logger = logging.getLogger(__name__)
        self.state = CheckState.IDLE

    def build_session(self, config: CheckConfig) -> SessionConfig:
        """
        根据检查配置构建会话配置

        Args:
            config: 检查配置

        Returns:
            SessionConfig: IRC客户端使用的会话配置
        """
        return SessionConfig(
            server=config.connect_address,
            port=config.port,
            nick=config.nick,
            user=config.user,
            password=config.password or None,
            use_tls=config.tls.enabled,
            tls_server_name=config.host if config.tls.enabled else None,
            verify_peer=config.tls.verify_peer if config.tls.enabled else False
        )

    def run(self, config: CheckConfig) -> str:
        """
        执行一次连接检查

        Args:
            config: 检查配置

        Returns:
            str: 附加信息（例如证书剩余有效期），没有时为空字符串

        Raises:
            ConnectError: 连接失败
            ProbeTimeoutError: 超时未收到确认事件
            RegistrationTimeoutError: 收到事件但注册未完成
            CertificateExpiringError: 证书即将过期
            CertificateInspectionError: 无法获取证书链
        """
        signals: "queue.Queue" = queue.Queue()
        counter = EventCounter()
        extra: List[str] = []
        confirmed = threading.Event()

        client = self.client_factory(self.build_session(config), config)

        confirming_event = REGISTERED if config.require_registration else ALL_EVENTS

        def count_event(event_type: str):
            counter.increment()

        def confirm(event_type: str):
            if confirmed.is_set():
                return
            confirmed.set()
            self.logger.debug(f"收到确认事件: {event_type}")

            if config.tls.expiry_check_enabled:
                try:
                    chains = client.tls_connection_state()
                    result = self.validator_factory(config).validate(chains)
                except Exception as e:
                    signals.put((_FAILED, self._as_probe_error(e, CertificateInspectionError)))
                    return

                if result.min_remaining is not None:
                    extra.append(
                        f"(cert expires in {format_duration(truncate_to_hour(result.min_remaining))})"
                    )

            client.close()
            signals.put((_DONE, None))

        client.add_handler(ALL_EVENTS, count_event)
        client.add_handler(confirming_event, confirm)

        def connect():
            try:
                client.connect()
            except Exception as e:
                signals.put((_FAILED, self._as_probe_error(e, ConnectError)))
                return
            signals.put((_DONE, None))

        self.state = CheckState.CONNECTING
        worker = threading.Thread(target=connect, name="irc-check-connect", daemon=True)
        worker.start()

        try:
            try:
                kind, error = signals.get(timeout=config.timeout.total_seconds())
            except queue.Empty:
                self.state = CheckState.TIMED_OUT
                raise self._timeout_error(config, counter.value) from None

            if kind == _FAILED:
                self.state = CheckState.FAILED
                raise error

            self.state = CheckState.COMPLETED
            return "".join(extra)
        finally:
            client.close()
            self.logger.debug(f"检查结束，状态: {self.state.value}")
            self.state = CheckState.CLOSED

    def _timeout_error(self, config: CheckConfig, event_count: int) -> ProbeTimeoutError:
        seconds = int(config.timeout.total_seconds())
        if config.require_registration and event_count > 0:
            return RegistrationTimeoutError(
                f"REGISTRATION TIMEOUT {seconds}s ({event_count} events)", event_count
            )
        return ProbeTimeoutError(f"TIMEOUT {seconds}s")

    def _as_probe_error(self, error: Exception, wrapper: Type[ProbeError]) -> ProbeError:
        """将未预期的异常包装为检查错误，保留原始异常链"""
        if isinstance(error, ProbeError):
            return error
        wrapped = wrapper(str(error) or type(error).__name__)
        wrapped.__cause__ = error
        return wrapped
