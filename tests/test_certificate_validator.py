"""
证书有效期校验器测试
"""
import pytest
from datetime import datetime, timezone, timedelta

from irc_connection_monitor.services.certificate_validator import CertificateValidator
from irc_connection_monitor.services.error_handler import (
    CertificateExpiringError,
    CertificateInspectionError,
)

NOW = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


def make_cert(remaining: timedelta, common_name: str = "irc.example.net") -> dict:
    """构造 getpeercert() 格式的证书"""
    not_after = (NOW + remaining).strftime('%b %d %H:%M:%S %Y GMT')
    return {
        'subject': ((('commonName', common_name),),),
        'notAfter': not_after
    }


class TestCertificateValidator:
    """证书有效期校验器测试类"""

    def setup_method(self):
        """测试前准备"""
        self.validator = CertificateValidator(timedelta(hours=720), clock=lambda: NOW)

    def test_returns_true_minimum(self):
        """测试返回未截断的最小剩余有效期"""
        chains = [
            [make_cert(timedelta(hours=2000, minutes=30)), make_cert(timedelta(hours=9000))],
            [make_cert(timedelta(hours=1000, minutes=45))]
        ]

        result = self.validator.validate(chains)

        assert result.min_remaining == timedelta(hours=1000, minutes=45)
        assert result.certificates_checked == 3

    def test_first_certificate_replaces_unset(self):
        """测试第一个证书总是成为最小值"""
        result = self.validator.validate([[make_cert(timedelta(hours=5000))]])

        assert result.min_remaining == timedelta(hours=5000)

    def test_expiring_certificate_short_circuits(self):
        """测试遇到即将过期的证书立即失败"""
        chains = [
            [make_cert(timedelta(hours=9000)), make_cert(timedelta(hours=100, minutes=59))],
            [make_cert(timedelta(hours=5000))]
        ]

        with pytest.raises(CertificateExpiringError) as exc_info:
            self.validator.validate(chains)

        assert exc_info.value.remaining == timedelta(hours=100)
        assert str(exc_info.value) == "tls cert expires in 100h0m0s"

    def test_first_violation_in_traversal_order(self):
        """测试按遍历顺序报告第一个违规证书"""
        chains = [
            [make_cert(timedelta(hours=300))],
            [make_cert(timedelta(hours=10))]
        ]

        with pytest.raises(CertificateExpiringError) as exc_info:
            self.validator.validate(chains)

        assert exc_info.value.remaining == timedelta(hours=300)

    def test_expired_certificate_truncates_toward_zero(self):
        """测试已过期证书向零截断"""
        chains = [[make_cert(-timedelta(hours=5, minutes=30))]]

        with pytest.raises(CertificateExpiringError) as exc_info:
            self.validator.validate(chains)

        assert exc_info.value.remaining == timedelta(hours=-5)
        assert "-5h0m0s" in str(exc_info.value)

    def test_empty_chains(self):
        """测试没有证书链时不报错"""
        result = self.validator.validate([])

        assert result.min_remaining is None
        assert result.certificates_checked == 0

    def test_missing_not_after(self):
        """测试缺少过期时间的证书"""
        with pytest.raises(CertificateInspectionError, match="notAfter"):
            self.validator.validate([[{'subject': ()}]])

    def test_invalid_not_after(self):
        """测试无法解析的过期时间"""
        with pytest.raises(CertificateInspectionError):
            self.validator.validate([[{'notAfter': 'not a date'}]])

    def test_parse_expiry_date_with_padded_day(self):
        """测试日期中带空格填充的格式"""
        expiry_date = self.validator._parse_expiry_date({'notAfter': 'Jan  5 12:00:00 2025 GMT'})

        assert expiry_date == datetime(2025, 1, 5, 12, 0, 0, tzinfo=timezone.utc)

    def test_datetime_not_after(self):
        """测试已解码为 datetime 的过期时间"""
        chains = [[{'notAfter': NOW + timedelta(hours=2000, minutes=30)}]]

        result = self.validator.validate(chains)

        assert result.min_remaining == timedelta(hours=2000, minutes=30)

    def test_naive_datetime_not_after_is_utc(self):
        """测试不带时区的过期时间按UTC处理"""
        expiry_date = self.validator._parse_expiry_date({'notAfter': datetime(2030, 1, 1)})

        assert expiry_date == datetime(2030, 1, 1, tzinfo=timezone.utc)
