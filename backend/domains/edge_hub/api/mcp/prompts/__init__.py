"""
MCP Prompt 模块
"""

from .code_prompts import CodePromptProvider

__all__ = [
    "CodePromptProvider",
]
