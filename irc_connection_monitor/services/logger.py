"""
日志服务
"""
import os
import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..interfaces import LoggerServiceInterface
from ..models import CheckConfig, ConnectionOutcome, OutcomeStatus
from .durations import format_duration

# irc 库使用的日志器名称，调试模式下输出原始协议流量
IRC_LIBRARY_LOGGER = "irc"


class LoggerService(LoggerServiceInterface):
    """日志服务实现"""

    def __init__(self, logger_name: str = "irc_connection_monitor", log_level: Optional[str] = None,
                 debug: bool = False):
        """
        初始化日志服务

        Args:
            logger_name: 日志器名称
            log_level: 日志级别，如果为None则从环境变量读取
            debug: 是否启用调试输出（同时输出IRC协议流量）
        """
        self.logger_name = logger_name
        self.debug = debug
        self.log_level = "DEBUG" if debug else (log_level or os.getenv('LOG_LEVEL', 'WARNING'))

        self.logger = logging.getLogger(logger_name)
        self._configure_logger()

        self.execution_stats = {
            'start_time': None,
            'end_time': None,
            'host': None,
            'status': None,
            'errors': []
        }

    def _configure_logger(self):
        """配置日志器"""
        level = getattr(logging, self.log_level.upper(), logging.WARNING)
        self.logger.setLevel(level)

        # 避免重复添加处理器
        if not self.logger.handlers:
            # 输出到stderr，stdout只保留检查结果
            handler = logging.StreamHandler()
            handler.setLevel(level)

            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            handler.setFormatter(formatter)

            self.logger.addHandler(handler)

        # 防止日志传播到根日志器
        self.logger.propagate = False

        if self.debug:
            irc_logger = logging.getLogger(IRC_LIBRARY_LOGGER)
            irc_logger.setLevel(logging.DEBUG)
            for handler in self.logger.handlers:
                if handler not in irc_logger.handlers:
                    irc_logger.addHandler(handler)
            irc_logger.propagate = False

    def log_check_start(self, config: CheckConfig):
        """
        记录检查开始

        Args:
            config: 检查配置
        """
        self.execution_stats['start_time'] = datetime.now(timezone.utc)
        self.execution_stats['host'] = config.host

        self.logger.info(
            f"开始IRC连接检查: {config.host}:{config.port}, "
            f"tls={config.tls.enabled}, require_registration={config.require_registration}"
        )
        self.logger.debug(f"检查开始时间: {self.execution_stats['start_time'].isoformat()}")

    def log_resolved_address(self, host: str, address: str):
        """记录解析后的连接地址"""
        if host != address:
            self.logger.info(f"{host} 解析为 {address}")

    def log_outcome(self, outcome: ConnectionOutcome):
        """
        记录检查结果

        Args:
            outcome: 检查结果
        """
        self.execution_stats['end_time'] = datetime.now(timezone.utc)
        self.execution_stats['status'] = outcome.status.name

        if outcome.status is OutcomeStatus.SUCCESS:
            self.logger.info(f"检查成功{(' ' + outcome.extra) if outcome.extra else ''}")
        elif outcome.status is OutcomeStatus.WARNING:
            self.logger.warning(f"检查警告: {outcome.error}")
        else:
            self.logger.error(f"检查失败: {outcome.error}")

        self.logger.debug(f"总执行时间: {self._duration_seconds():.2f} 秒")

    def log_error(self, host: str, error: Exception):
        """
        记录错误信息

        Args:
            host: 主机名
            error: 异常对象
        """
        error_info = {
            'host': host,
            'error_type': type(error).__name__,
            'error_message': str(error),
            'timestamp': datetime.now(timezone.utc).isoformat()
        }

        self.execution_stats['errors'].append(error_info)

        self.logger.error(f"主机 {host} 检查时发生错误: {type(error).__name__}: {str(error)}")

        # 记录详细的堆栈跟踪（调试级别）
        self.logger.debug(f"主机 {host} 错误堆栈跟踪:\n{''.join(traceback.format_exception(error))}")

    def log_configuration_info(self, config: Dict[str, Any]):
        """
        记录配置信息

        Args:
            config: 配置信息字典
        """
        safe_config = self._sanitize_config(config)

        self.logger.debug("检查配置信息:")
        for key, value in safe_config.items():
            self.logger.debug(f"  {key}: {value}")

    def _sanitize_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        清理配置信息中的敏感数据

        Args:
            config: 原始配置

        Returns:
            Dict[str, Any]: 清理后的配置
        """
        safe_config = {}
        for key, value in config.items():
            key_lower = key.lower()

            is_sensitive = (
                key_lower in {'password', 'secret', 'token', 'key'} or
                key_lower.endswith('_password') or
                key_lower.endswith('_secret') or
                key_lower.endswith('_token')
            )

            if is_sensitive and isinstance(value, str) and value:
                safe_config[key] = value[:3] + "***" if len(value) > 3 else "***"
            else:
                safe_config[key] = value

        return safe_config

    def _duration_seconds(self) -> float:
        if self.execution_stats['start_time'] and self.execution_stats['end_time']:
            return (self.execution_stats['end_time'] - self.execution_stats['start_time']).total_seconds()
        return 0

    def get_execution_summary(self) -> Dict[str, Any]:
        """
        获取执行摘要

        Returns:
            Dict[str, Any]: 执行摘要信息
        """
        start_time = self.execution_stats['start_time']
        end_time = self.execution_stats['end_time']

        return {
            'host': self.execution_stats['host'],
            'status': self.execution_stats['status'],
            'start_time': start_time.isoformat() if start_time else None,
            'end_time': end_time.isoformat() if end_time else None,
            'duration_seconds': self._duration_seconds(),
            'duration': format_duration(end_time - start_time) if start_time and end_time else None,
            'error_count': len(self.execution_stats['errors']),
            'errors': self.execution_stats['errors']
        }
