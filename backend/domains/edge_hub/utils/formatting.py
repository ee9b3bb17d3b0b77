"""
输出格式化

时间戳和数字按 JavaScript/JSON 的习惯渲染，保证各客户端看到一致的文本。
"""

from datetime import datetime, timezone
from typing import Optional, Union


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """
    ISO-8601 UTC 时间戳，毫秒精度，以 Z 结尾

    例: 2024-05-01T12:34:56.789Z
    """
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_number(value: Union[int, float]) -> str:
    """按 JSON 的方式渲染数字: 整数值的浮点数不带小数部分 (5.0 -> 5)"""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
