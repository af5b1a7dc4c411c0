"""
配置验证器测试
"""
import pytest
from datetime import timedelta

from irc_connection_monitor.models import CheckConfig, TLSPolicy
from irc_connection_monitor.services.config_validator import ConfigValidator


class TestConfigValidator:
    """配置验证器测试类"""

    def setup_method(self):
        """测试前准备"""
        self.validator = ConfigValidator()

    def test_valid_default_config(self):
        """测试默认配置有效"""
        result = self.validator.validate(CheckConfig(host="irc.example.net"))

        assert result['is_valid'] is True
        assert result['errors'] == []
        assert result['warnings'] == []

    def test_missing_host(self):
        """测试缺少主机名"""
        result = self.validator.validate(CheckConfig(host="  "))

        assert result['is_valid'] is False
        assert "host is required" in result['errors']

    @pytest.mark.parametrize("port", [0, -1, 65536])
    def test_invalid_port(self, port):
        """测试端口超出范围"""
        result = self.validator.validate(CheckConfig(host="irc.example.net", port=port))

        assert result['is_valid'] is False
        assert any('port' in error for error in result['errors'])

    def test_invalid_nick(self):
        """测试昵称包含空白字符"""
        result = self.validator.validate(CheckConfig(host="irc.example.net", nick="bad nick"))

        assert result['is_valid'] is False
        assert any('nick' in error for error in result['errors'])

    def test_empty_user(self):
        """测试用户名为空"""
        result = self.validator.validate(CheckConfig(host="irc.example.net", user=""))

        assert result['is_valid'] is False
        assert any('user' in error for error in result['errors'])

    def test_non_positive_timeout(self):
        """测试超时时间必须大于零"""
        result = self.validator.validate(CheckConfig(host="irc.example.net", timeout=timedelta(0)))

        assert result['is_valid'] is False
        assert "timeout must be greater than zero" in result['errors']

    def test_negative_min_expire(self):
        """测试证书阈值不能为负"""
        config = CheckConfig(
            host="irc.example.net",
            tls=TLSPolicy(enabled=True, verify_peer=True, min_remaining_validity=timedelta(hours=-1))
        )

        result = self.validator.validate(config)

        assert result['is_valid'] is False

    def test_min_expire_without_tls_warns(self):
        """测试未启用TLS时设置证书阈值只产生警告"""
        config = CheckConfig(
            host="irc.example.net",
            tls=TLSPolicy(enabled=False, min_remaining_validity=timedelta(hours=720))
        )

        result = self.validator.validate(config)

        assert result['is_valid'] is True
        assert any('tls.min-expire' in warning for warning in result['warnings'])

    def test_check_cert_without_tls_warns(self):
        """测试未启用TLS时校验证书只产生警告"""
        config = CheckConfig(host="irc.example.net", tls=TLSPolicy(enabled=False, verify_peer=True))

        result = self.validator.validate(config)

        assert result['is_valid'] is True
        assert any('tls.check-cert' in warning for warning in result['warnings'])

    def test_min_expire_without_verification_warns(self):
        """测试不校验证书时设置阈值产生警告"""
        config = CheckConfig(
            host="irc.example.net",
            tls=TLSPolicy(enabled=True, verify_peer=False, min_remaining_validity=timedelta(hours=720))
        )

        result = self.validator.validate(config)

        assert result['is_valid'] is True
        assert len(result['warnings']) == 1
