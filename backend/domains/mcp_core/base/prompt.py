"""
MCP Prompt 定义和提供者

Prompt 是带参数的消息模板。参数一律为字符串，
get_prompt 校验后只把声明过的参数传给 handler。
"""

from abc import ABC
from typing import Any, Awaitable, Callable, Dict, List, Optional
from dataclasses import dataclass, field

from ..logging import get_logger
from .outcome import Outcome
from .schema import type_error

logger = get_logger(__name__)


@dataclass(frozen=True)
class PromptArgument:
    """Prompt 参数"""
    name: str
    description: str
    required: bool = True

    def to_mcp_format(self) -> Dict[str, Any]:
        return {"name": self.name, "description": self.description, "required": self.required}


@dataclass
class PromptDefinition:
    """prompts/list 中的一项"""
    name: str
    description: str
    arguments: List[PromptArgument] = field(default_factory=list)

    def to_mcp_format(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "arguments": [arg.to_mcp_format() for arg in self.arguments],
        }

    def validate_arguments(self, arguments: Dict[str, Any]) -> Optional[str]:
        """先查缺失的必填参数，再查类型，返回第一条错误"""
        missing = next((a.name for a in self.arguments if a.required and a.name not in arguments), None)
        if missing:
            return f"Missing required argument: {missing}"

        for arg in self.arguments:
            if arg.name in arguments:
                error = type_error(arg.name, "string", arguments[arg.name])
                if error:
                    return error
        return None


@dataclass
class PromptMessage:
    role: str  # user / assistant
    content: str

    def to_mcp_format(self) -> Dict[str, Any]:
        return {"role": self.role, "content": {"type": "text", "text": self.content}}


@dataclass
class PromptResult:
    """prompts/get 的结果，description 为空时不输出"""
    description: Optional[str]
    messages: List[PromptMessage]

    def to_mcp_format(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.description:
            payload["description"] = self.description
        payload["messages"] = [m.to_mcp_format() for m in self.messages]
        return payload


PromptHandler = Callable[..., Awaitable[PromptResult]]


@dataclass
class _RegisteredPrompt:
    definition: PromptDefinition
    handler: PromptHandler


class BasePromptProvider(ABC):
    """
    Prompt 提供者基类

    子类在 __init__ 中调用 register:

        class ReviewPrompts(BasePromptProvider):
            def __init__(self):
                super().__init__()
                self.register(
                    name="review_code",
                    description="Review a snippet",
                    arguments=[PromptArgument("code", "Code to review")],
                    handler=self._review,
                )

            async def _review(self, code: str) -> PromptResult:
                return PromptResult("Review", [PromptMessage("user", f"Review:\\n{code}")])
    """

    def __init__(self):
        self._prompts: Dict[str, _RegisteredPrompt] = {}

    def register(
        self,
        name: str,
        description: str,
        handler: PromptHandler,
        arguments: Optional[List[PromptArgument]] = None,
    ) -> None:
        self._prompts[name] = _RegisteredPrompt(
            PromptDefinition(name, description, list(arguments or [])),
            handler,
        )
        logger.debug("prompt_registered", prompt=name)

    def list_prompts(self) -> List[PromptDefinition]:
        return [p.definition for p in self._prompts.values()]

    async def get_prompt(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Outcome:
        """成功时 data 为 PromptResult"""
        prompt = self._prompts.get(name)
        if prompt is None:
            return Outcome.not_found(f"Unknown prompt: {name}")

        arguments = arguments or {}
        error = prompt.definition.validate_arguments(arguments)
        if error:
            return Outcome.invalid_argument(error)

        declared = {arg.name for arg in prompt.definition.arguments}
        try:
            result = await prompt.handler(**{k: v for k, v in arguments.items() if k in declared})
        except Exception as e:
            logger.exception("prompt_failed", prompt=name)
            return Outcome.internal(str(e) or type(e).__name__)
        return Outcome.ok(result)

    def __len__(self) -> int:
        return len(self._prompts)

    def __contains__(self, name: str) -> bool:
        return name in self._prompts


class EmptyPromptProvider(BasePromptProvider):
    """不提供任何 Prompt"""
