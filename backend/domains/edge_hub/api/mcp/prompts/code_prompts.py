"""
代码相关 Prompt

explain_code 和 debug_help 都是纯模板，生成一条 user 消息。
"""

from domains.mcp_core import (
    BasePromptProvider,
    PromptArgument,
    PromptMessage,
    PromptResult,
)


class CodePromptProvider(BasePromptProvider):
    """代码解释与调试 Prompt"""

    def __init__(self):
        super().__init__()

        self.register(
            name="explain_code",
            description="Explain how a piece of code works",
            arguments=[
                PromptArgument("code", "The code to explain"),
                PromptArgument("language", "The programming language", required=False),
            ],
            handler=self._explain_code,
        )

        self.register(
            name="debug_help",
            description="Help debug an issue",
            arguments=[
                PromptArgument("error", "The error message or description"),
                PromptArgument("context", "Additional context about the problem", required=False),
            ],
            handler=self._debug_help,
        )

    async def _explain_code(self, code: str, language: str = "") -> PromptResult:
        text = (
            f"Please explain how this {language or 'code'} works:\n\n"
            f"```{language}\n{code}\n```\n\n"
            "Break down the logic and explain what each part does."
        )
        return PromptResult(
            description="Explain how this code works",
            messages=[PromptMessage("user", text)],
        )

    async def _debug_help(self, error: str, context: str = "") -> PromptResult:
        text = f"I'm encountering this error: {error}\n\n"
        if context:
            text += f"Additional context: {context}\n\n"
        text += "Can you help me understand what's causing this issue and how to fix it?"
        return PromptResult(
            description="Help debug this issue",
            messages=[PromptMessage("user", text)],
        )
