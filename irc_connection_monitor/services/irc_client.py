"""
IRC协议客户端适配器

基于 irc 库的 Reactor 实现连接、事件分发和关闭，并提供TLS会话的证书链。
"""
import socket
import ssl
import threading
import logging
from typing import Callable, Dict, List, Optional, Tuple

import irc.client
from cryptography import x509
from cryptography.x509.oid import NameOID

from ..interfaces import ALL_EVENTS, ProtocolClientInterface
from ..models import SessionConfig
from .error_handler import CertificateInspectionError, ConnectError

RAW_MESSAGES = "all_raw_messages"
# 连接断开时由 irc 库在本地产生，不是服务器发来的消息
DISCONNECT = "disconnect"


def certificate_info(der: bytes) -> Dict:
    """
    将DER编码的证书转换为证书校验器使用的字典

    Args:
        der: DER编码的证书

    Returns:
        Dict: 包含 subject 和 notAfter（UTC时间）的证书信息

    Raises:
        CertificateInspectionError: 证书无法解码
    """
    try:
        cert = x509.load_der_x509_certificate(der)
    except ValueError as e:
        raise CertificateInspectionError(f"unable to decode tls certificate: {e}") from e

    subject = tuple(
        (('commonName', attribute.value),)
        for attribute in cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    )
    return {'subject': subject, 'notAfter': cert.not_valid_after_utc}


class IRCProtocolClient(ProtocolClientInterface):
    """IRC协议客户端实现"""

    def __init__(self, session: SessionConfig, connect_timeout: Optional[float] = None,
                 poll_interval: float = 0.2):
        """
        初始化IRC客户端

        Args:
            session: 会话配置
            connect_timeout: 建立TCP连接和TLS握手的超时时间（秒）
            poll_interval: 事件循环的轮询间隔（秒）
        """
        self.session = session
        self.connect_timeout = connect_timeout
        self.poll_interval = poll_interval
        self.logger = logging.getLogger(__name__)

        self.reactor = irc.client.Reactor()
        self.connection = self.reactor.server()

        self._closed = threading.Event()
        self._close_lock = threading.Lock()
        self._close_done = False

    def add_handler(self, event: str, handler: Callable[[str], None]):
        """
        注册全局事件处理器

        Args:
            event: irc 库的事件名，"all_events" 匹配所有事件
            handler: 处理器，参数为事件类型
        """
        def dispatch(connection, irc_event):
            # 每行消息都会额外产生一个 all_raw_messages 事件，通配处理器不重复计数；
            # disconnect 不代表服务器有响应
            if event == ALL_EVENTS and irc_event.type in (RAW_MESSAGES, DISCONNECT):
                return
            handler(irc_event.type)

        self.reactor.add_global_handler(event, dispatch)

    def connect(self):
        """
        建立连接并处理事件，直到本地关闭会话

        Raises:
            ConnectError: 连接失败或服务器断开连接
        """
        host = self.session.server.strip('[]')
        self.logger.debug(f"连接 {host}:{self.session.port} (tls={self.session.use_tls})")

        try:
            self.connection.connect(
                host,
                self.session.port,
                self.session.nick,
                password=self.session.password,
                username=self.session.user,
                connect_factory=self._open_socket
            )
        except irc.client.ServerConnectionError as e:
            raise ConnectError(str(e)) from e

        try:
            while not self._closed.is_set():
                if not self.connection.is_connected():
                    if self._closed.is_set():
                        break
                    raise ConnectError("connection closed by server")
                self.reactor.process_once(timeout=self.poll_interval)
        finally:
            self._disconnect()

    def _open_socket(self, server_address: Tuple[str, int]) -> socket.socket:
        """建立TCP连接，必要时完成TLS握手"""
        sock = socket.create_connection(server_address, timeout=self.connect_timeout)
        try:
            if self.session.use_tls:
                sock = self._ssl_context().wrap_socket(
                    sock, server_hostname=self.session.tls_server_name or server_address[0]
                )
            sock.settimeout(None)
        except OSError:
            sock.close()
            raise
        return sock

    def _ssl_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        if not self.session.verify_peer:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    def close(self):
        """关闭会话（可重复调用）"""
        self._closed.set()
        self._disconnect()

    def _disconnect(self):
        # 连接建立前调用时不做任何事，由 connect() 在退出时补充关闭
        with self._close_lock:
            if self._close_done or not self.connection.is_connected():
                return
            self._close_done = True
        self.connection.disconnect("irc-check")

    def tls_connection_state(self) -> List[List[Dict]]:
        """
        获取TLS会话中经过验证的证书链

        Python 3.13 之前的 SSLSocket 没有 get_verified_chain()，只能取得对端的叶子证书。

        Returns:
            List[List[Dict]]: 证书链列表，未启用证书校验时为空

        Raises:
            CertificateInspectionError: 当前连接不是TLS连接或无法读取证书
        """
        sock = getattr(self.connection, 'socket', None)
        if not isinstance(sock, ssl.SSLSocket):
            raise CertificateInspectionError("no tls connection state available")

        # 未校验证书时没有经过验证的证书链
        if not self.session.verify_peer:
            return []

        try:
            get_verified_chain = getattr(sock, 'get_verified_chain', None)
            if get_verified_chain is not None:
                blobs = get_verified_chain() or []
            else:
                leaf = sock.getpeercert(binary_form=True)
                blobs = [leaf] if leaf else []
        except (ssl.SSLError, ValueError) as e:
            raise CertificateInspectionError(f"unable to read tls certificates: {e}") from e

        chain = [certificate_info(der) for der in blobs]
        return [chain] if chain else []
