"""
数据模型测试
"""
import pytest
import dataclasses
import threading
from datetime import timedelta

from irc_connection_monitor.models import (
    AddressFamily,
    CheckConfig,
    ConnectionOutcome,
    EventCounter,
    OutcomeStatus,
    TLSPolicy,
)
from irc_connection_monitor.services.error_handler import ConnectError


class TestAddressFamily:
    """地址族测试类"""

    @pytest.mark.parametrize("v4,v6,expected", [
        (False, False, AddressFamily.UNSET),
        (True, False, AddressFamily.V4_ONLY),
        (False, True, AddressFamily.V6_ONLY),
        (True, True, AddressFamily.UNSET),
    ])
    def test_from_flags(self, v4, v6, expected):
        """测试根据 -4/-6 参数确定地址族"""
        assert AddressFamily.from_flags(v4, v6) is expected


class TestTLSPolicy:
    """TLS策略测试类"""

    def test_expiry_check_disabled_by_default(self):
        """测试默认不检查证书有效期"""
        assert TLSPolicy(enabled=True).expiry_check_enabled is False

    def test_expiry_check_requires_tls(self):
        """测试证书有效期检查需要启用TLS"""
        policy = TLSPolicy(enabled=False, min_remaining_validity=timedelta(hours=720))

        assert policy.expiry_check_enabled is False

    def test_expiry_check_enabled(self):
        """测试启用证书有效期检查"""
        policy = TLSPolicy(enabled=True, min_remaining_validity=timedelta(hours=720))

        assert policy.expiry_check_enabled is True


class TestCheckConfig:
    """检查配置测试类"""

    def test_defaults(self):
        """测试默认值"""
        config = CheckConfig(host="irc.example.net")

        assert config.port == 6667
        assert config.nick == "nagios-check"
        assert config.user == "nagios"
        assert config.timeout == timedelta(seconds=30)
        assert config.family is AddressFamily.UNSET
        assert config.connect_address == "irc.example.net"

    def test_immutable(self):
        """测试配置不可修改"""
        config = CheckConfig(host="irc.example.net")

        with pytest.raises(dataclasses.FrozenInstanceError):
            config.port = 6697

    def test_with_address(self):
        """测试设置解析后的地址"""
        config = CheckConfig(host="irc.example.net")
        resolved = config.with_address("192.0.2.1")

        assert resolved.connect_address == "192.0.2.1"
        assert resolved.host == "irc.example.net"
        assert config.address is None


class TestConnectionOutcome:
    """检查结果测试类"""

    def test_render_ok(self):
        """测试成功输出"""
        assert ConnectionOutcome(OutcomeStatus.SUCCESS).render() == "OK"

    def test_render_ok_with_extra(self):
        """测试带附加信息的成功输出"""
        outcome = ConnectionOutcome(OutcomeStatus.SUCCESS, extra="(cert expires in 2000h0m0s)")

        assert outcome.render() == "OK (cert expires in 2000h0m0s)"
        assert outcome.exit_code == 0

    def test_render_critical(self):
        """测试失败输出"""
        outcome = ConnectionOutcome(OutcomeStatus.CRITICAL, error=ConnectError("connection closed by server"))

        assert outcome.render() == "CRITICAL: connection closed by server"
        assert outcome.exit_code == 2


class TestEventCounter:
    """事件计数器测试类"""

    def test_increment(self):
        """测试计数递增"""
        counter = EventCounter()

        assert counter.value == 0
        assert counter.increment() == 1
        assert counter.increment() == 2
        assert counter.value == 2

    def test_concurrent_increment(self):
        """测试多线程并发计数"""
        counter = EventCounter()

        def worker():
            for _ in range(1000):
                counter.increment()

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert counter.value == 8000
