"""
工具函数
"""

from .formatting import format_number, utc_timestamp

__all__ = [
    "format_number",
    "utc_timestamp",
]
