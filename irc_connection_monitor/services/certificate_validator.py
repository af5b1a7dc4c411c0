"""
证书有效期校验服务
"""
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional
import logging

from ..interfaces import CertificateValidatorInterface
from ..models import CertificateExpiryResult
from .durations import truncate_to_hour
from .error_handler import CertificateExpiringError, CertificateInspectionError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CertificateValidator(CertificateValidatorInterface):
    """证书有效期校验器"""

    def __init__(self, min_remaining_validity: timedelta,
                 clock: Optional[Callable[[], datetime]] = None):
        """
        初始化证书有效期校验器

        Args:
            min_remaining_validity: 允许的最小剩余有效期
            clock: 返回当前UTC时间的函数，默认使用系统时间
        """
        self.min_remaining_validity = min_remaining_validity
        self.clock = clock or utc_now
        self.logger = logging.getLogger(__name__)

    def validate(self, chains: List[List[Dict]]) -> CertificateExpiryResult:
        """
        计算所有证书链中证书的最小剩余有效期

        Args:
            chains: 证书链列表，每个证书为包含 notAfter 的字典（datetime 或 getpeercert() 格式的字符串）

        Returns:
            CertificateExpiryResult: 最小剩余有效期（未截断）

        Raises:
            CertificateExpiringError: 任一证书的剩余有效期低于阈值
            CertificateInspectionError: 证书中缺少有效的过期时间
        """
        now = self.clock()
        minimum = None
        checked = 0

        for chain in chains:
            for cert in chain:
                remaining = self._parse_expiry_date(cert) - now
                checked += 1

                if minimum is None or remaining < minimum:
                    minimum = remaining

                if remaining < self.min_remaining_validity:
                    self.logger.debug(
                        f"证书 {self._subject_name(cert)} 剩余有效期 {remaining} "
                        f"低于阈值 {self.min_remaining_validity}"
                    )
                    raise CertificateExpiringError(truncate_to_hour(remaining))

        if minimum is None:
            self.logger.debug("没有可校验的证书链")

        return CertificateExpiryResult(
            min_remaining=minimum,
            certificates_checked=checked
        )

    def _parse_expiry_date(self, cert: Dict) -> datetime:
        """
        解析证书过期时间

        Args:
            cert: 证书信息

        Returns:
            datetime: 过期时间（UTC）
        """
        not_after = cert.get('notAfter')
        if not not_after:
            raise CertificateInspectionError("certificate has no notAfter field")

        if isinstance(not_after, datetime):
            if not_after.tzinfo is None:
                return not_after.replace(tzinfo=timezone.utc)
            return not_after

        # 时间格式：'Dec 31 23:59:59 2024 GMT'
        try:
            expiry_date = datetime.strptime(not_after, '%b %d %H:%M:%S %Y %Z')
        except ValueError as e:
            raise CertificateInspectionError(f"invalid certificate notAfter {not_after!r}") from e

        return expiry_date.replace(tzinfo=timezone.utc)

    def _subject_name(self, cert: Dict) -> str:
        for item in cert.get('subject', ()):
            if item[0][0] == 'commonName':
                return item[0][1]
        return "unknown"
