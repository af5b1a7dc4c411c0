"""
命令行入口

解析参数、执行一次IRC连接检查，输出一行结果并以监控系统约定的退出码退出：
0 表示 OK，1 表示 WARNING（证书即将过期），2 表示 CRITICAL。
"""
import sys
from argparse import ArgumentParser, ArgumentTypeError, Namespace
from datetime import timedelta
from typing import List, Optional

from .models import AddressFamily, CheckConfig, ConnectionOutcome, OutcomeStatus, TLSPolicy
from .services.address_resolver import AddressResolver
from .services.check_orchestrator import CheckOrchestrator
from .services.config_validator import ConfigValidator
from .services.durations import format_duration, parse_duration
from .services.error_handler import ConfigurationError, OutcomeErrorHandler, ProbeError
from .services.logger import LoggerService


class IRCConnectionMonitor:
    """IRC连接监控器主类"""

    def __init__(self, logger_service: Optional[LoggerService] = None,
                 resolver: Optional[AddressResolver] = None,
                 orchestrator: Optional[CheckOrchestrator] = None,
                 validator: Optional[ConfigValidator] = None,
                 error_handler: Optional[OutcomeErrorHandler] = None):
        """初始化监控器"""
        self.logger_service = logger_service or LoggerService()
        self.resolver = resolver or AddressResolver()
        self.orchestrator = orchestrator or CheckOrchestrator()
        self.validator = validator or ConfigValidator()
        self.error_handler = error_handler or OutcomeErrorHandler()

    def _log_configuration(self, config: CheckConfig):
        """记录检查配置信息"""
        self.logger_service.log_configuration_info({
            'host': config.host,
            'port': config.port,
            'nick': config.nick,
            'user': config.user,
            'password': config.password or '',
            'family': config.family.value,
            'tls_use': config.tls.enabled,
            'tls_check_cert': config.tls.verify_peer,
            'tls_min_expire': (
                format_duration(config.tls.min_remaining_validity)
                if config.tls.min_remaining_validity else 'disabled'
            ),
            'require_registration': config.require_registration,
            'timeout': format_duration(config.timeout)
        })

    def execute(self, config: CheckConfig) -> ConnectionOutcome:
        """
        执行IRC连接检查

        Args:
            config: 检查配置

        Returns:
            ConnectionOutcome: 检查结果
        """
        self._log_configuration(config)

        try:
            validation = self.validator.validate(config)
            if not validation['is_valid']:
                raise ConfigurationError(
                    "invalid configuration: " + "; ".join(validation['errors'])
                )

            self.logger_service.log_check_start(config)

            address = self.resolver.resolve(config.host, config.family)
            self.logger_service.log_resolved_address(config.host, address)

            extra = self.orchestrator.run(config.with_address(address))
            outcome = ConnectionOutcome(status=OutcomeStatus.SUCCESS, extra=extra or None)

        except ProbeError as e:
            self.logger_service.log_error(config.host, e)
            outcome = self.error_handler.to_outcome(e)

        self.logger_service.log_outcome(outcome)
        return outcome


def duration_type(value: str) -> timedelta:
    """argparse 使用的时长类型"""
    try:
        return parse_duration(value)
    except ValueError as e:
        raise ArgumentTypeError(str(e)) from e


def build_parser() -> ArgumentParser:
    """
    构建命令行参数解析器

    Returns:
        ArgumentParser: 参数解析器
    """
    parser = ArgumentParser(
        prog="irc-check",
        description="Check that an IRC server accepts connections (Nagios compatible).",
    )
    parser.add_argument(
        "-H", "--host",
        required=True,
        help="irc server hostname or address",
    )
    parser.add_argument(
        "-p", "--port",
        type=int,
        default=6667,
        help="irc server port (default: 6667)",
    )
    parser.add_argument(
        "-n", "--nick",
        default="nagios-check",
        help="nickname to use (default: nagios-check)",
    )
    parser.add_argument(
        "-u", "--user",
        default="nagios",
        help="username (ident) to use (default: nagios)",
    )
    parser.add_argument(
        "--password",
        help="irc server password if required",
    )
    parser.add_argument(
        "-4",
        dest="ipv4",
        action="store_true",
        help="connect to the irc server via IPv4",
    )
    parser.add_argument(
        "-6",
        dest="ipv6",
        action="store_true",
        help="connect to the irc server via IPv6",
    )

    tls = parser.add_argument_group("TLS Options")
    tls.add_argument(
        "--tls.use",
        dest="tls_use",
        action="store_true",
        help="enable tls checks",
    )
    tls.add_argument(
        "--tls.check-cert",
        dest="tls_check_cert",
        action="store_true",
        help="if TLS certificate should be verified",
    )
    tls.add_argument(
        "--tls.min-expire",
        dest="tls_min_expire",
        type=duration_type,
        help="minimum time allowed before warning of an expiring certificate (e.g. 720h)",
    )

    parser.add_argument(
        "--require-registration",
        action="store_true",
        help="consider it successful ONLY if we receive RPL_WELCOME",
    )
    parser.add_argument(
        "-t", "--timeout",
        type=duration_type,
        default=timedelta(seconds=30),
        help="time before the connection attempt should be abandoned (default: 30s)",
    )
    parser.add_argument(
        "-d", "--debug",
        action="store_true",
        help="enable debug output",
    )
    return parser


def config_from_args(args: Namespace) -> CheckConfig:
    """将命令行参数转换为检查配置"""
    return CheckConfig(
        host=args.host,
        port=args.port,
        nick=args.nick,
        user=args.user,
        password=args.password,
        family=AddressFamily.from_flags(args.ipv4, args.ipv6),
        tls=TLSPolicy(
            enabled=args.tls_use,
            verify_peer=args.tls_check_cert,
            min_remaining_validity=args.tls_min_expire,
        ),
        require_registration=args.require_registration,
        timeout=args.timeout,
        debug=args.debug,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    命令行入口

    Args:
        argv: 命令行参数，默认使用 sys.argv

    Returns:
        int: 进程退出码
    """
    args = build_parser().parse_args(argv)
    config = config_from_args(args)

    monitor = IRCConnectionMonitor(logger_service=LoggerService(debug=config.debug))
    outcome = monitor.execute(config)

    print(outcome.render())
    return outcome.exit_code


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
