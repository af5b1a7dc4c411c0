"""
时长解析与格式化

时长字符串采用 "30s"、"720h"、"1h30m" 这样的格式。
"""
import re
from datetime import timedelta

# 每个单位对应的秒数
_UNITS = {
    'ns': 1e-9,
    'us': 1e-6,
    'µs': 1e-6,
    'ms': 1e-3,
    's': 1,
    'm': 60,
    'h': 3600,
}

_COMPONENT_PATTERN = re.compile(r'(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)')
_NUMBER_PATTERN = re.compile(r'^(\d+(?:\.\d*)?|\.\d+)$')


def parse_duration(text: str) -> timedelta:
    """
    解析时长字符串

    Args:
        text: 时长字符串，纯数字按秒处理

    Returns:
        timedelta: 解析结果

    Raises:
        ValueError: 格式无效
    """
    raw = (text or '').strip()
    if not raw:
        raise ValueError("invalid duration: empty string")

    sign = 1
    body = raw
    if body[0] in '+-':
        sign = -1 if body[0] == '-' else 1
        body = body[1:]

    if _NUMBER_PATTERN.match(body):
        return sign * timedelta(seconds=float(body))

    total = 0.0
    position = 0
    for match in _COMPONENT_PATTERN.finditer(body):
        if match.start() != position:
            break
        value, unit = match.groups()
        total += float(value) * _UNITS[unit]
        position = match.end()

    if position == 0 or position != len(body):
        raise ValueError(f"invalid duration: {text!r}")

    return timedelta(seconds=sign * total)


def truncate_to_hour(value: timedelta) -> timedelta:
    """按整小时截断（向零取整）"""
    hours = int(value.total_seconds() / 3600)
    return timedelta(hours=hours)


def format_duration(value: timedelta) -> str:
    """
    格式化时长，例如 100h0m0s、5m0s、45s

    Args:
        value: 时长，不足一秒的部分被舍弃

    Returns:
        str: 格式化后的字符串
    """
    seconds = int(value.total_seconds())
    if seconds == 0:
        return "0s"

    sign = '-' if seconds < 0 else ''
    seconds = abs(seconds)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)

    if hours:
        return f"{sign}{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{sign}{minutes}m{secs}s"
    return f"{sign}{secs}s"
