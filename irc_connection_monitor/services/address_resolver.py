"""
地址解析服务
"""
import ipaddress
import socket
import logging
from typing import Callable, List, Optional, Union

from ..interfaces import AddressResolverInterface
from ..models import AddressFamily
from .error_handler import ResolutionError


def lookup_ip(host: str) -> List[str]:
    """
    查询主机名对应的全部地址

    Args:
        host: 主机名或地址

    Returns:
        List[str]: 地址列表，保持解析器返回的顺序并去重
    """
    addresses = []
    for _family, _type, _proto, _canonname, sockaddr in socket.getaddrinfo(host, None):
        address = sockaddr[0]
        if address not in addresses:
            addresses.append(address)
    return addresses


class AddressResolver(AddressResolverInterface):
    """地址解析器实现"""

    def __init__(self, lookup: Optional[Callable[[str], List[str]]] = None):
        """
        初始化地址解析器

        Args:
            lookup: 地址查询函数，默认使用系统解析器
        """
        self.lookup = lookup or lookup_ip
        self.logger = logging.getLogger(__name__)

    def resolve(self, host: str, family: AddressFamily) -> str:
        """
        将主机名解析为指定地址族的单个地址

        Args:
            host: 主机名
            family: 地址族偏好

        Returns:
            str: IPv4 为点分十进制，IPv6 为带方括号的形式，未指定地址族时原样返回

        Raises:
            ResolutionError: 解析失败或没有对应地址族的记录
        """
        if family is AddressFamily.UNSET:
            return host

        try:
            addresses = self.lookup(host)
        except (OSError, UnicodeError) as e:
            # 格式错误的主机名会在IDNA编码时抛出 UnicodeError
            raise ResolutionError(str(e)) from e

        self.logger.debug(f"resolved ips: {addresses}")

        for raw in addresses:
            ip = self._parse(raw)
            if ip is None:
                continue

            ipv4 = self._ipv4_form(ip)
            if family is AddressFamily.V4_ONLY and ipv4 is not None:
                return str(ipv4)
            if family is AddressFamily.V6_ONLY and ipv4 is None:
                return f"[{ip}]"

        raise ResolutionError(f"no record for {host}")

    def _parse(self, raw: str) -> Optional[Union[ipaddress.IPv4Address, ipaddress.IPv6Address]]:
        # 去掉链路本地地址的 %scope 后缀
        try:
            return ipaddress.ip_address(raw.split('%', 1)[0])
        except ValueError:
            self.logger.warning(f"跳过无效地址: {raw}")
            return None

    def _ipv4_form(self, ip) -> Optional[ipaddress.IPv4Address]:
        """返回地址的IPv4表示（含IPv4映射的IPv6地址），没有则返回None"""
        if isinstance(ip, ipaddress.IPv4Address):
            return ip
        return ip.ipv4_mapped
