"""Dataclass models for chat requests and aggregated responses."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

ROLES = ("user", "assistant", "system", "tool")

DEFAULT_SLIPPAGE_SETTINGS: dict[str, float] = {
    "lpSlippage": 5,
    "swapSlippage": 5,
    "pumpSlippage": 5,
}


@dataclass(frozen=True)
class MessagePart:
    """A structured piece of a message (text, image or file reference)."""

    type: str
    text: str | None = None
    url: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MessagePart:
        return cls(type=data["type"], text=data.get("text"), url=data.get("url"))

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type}
        if self.text is not None:
            out["text"] = self.text
        if self.url is not None:
            out["url"] = self.url
        return out


@dataclass(frozen=True)
class ChatMessage:
    """One turn of a conversation. The caller owns the history list."""

    role: str
    content: str
    name: str | None = None
    parts: tuple[MessagePart, ...] | None = None

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Invalid role {self.role!r}; expected one of {', '.join(ROLES)}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ChatMessage:
        parts = data.get("parts")
        return cls(
            role=data["role"],
            content=data.get("content", ""),
            name=data.get("name"),
            parts=tuple(MessagePart.from_dict(p) for p in parts) if parts is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.name is not None:
            out["name"] = self.name
        if self.parts is not None:
            out["parts"] = [p.to_dict() for p in self.parts]
        return out


def _coerce_message(message: ChatMessage | Mapping[str, Any]) -> ChatMessage:
    if isinstance(message, ChatMessage):
        return message
    return ChatMessage.from_dict(message)


@dataclass
class RequestOptions:
    """Per-call options shared by raw_stream, chat_stream and chat."""

    vault_id: str
    messages: list[ChatMessage] = field(default_factory=list)
    user_api_key: str | None = None
    external_wallet_address: str | None = None
    slippage_settings: dict[str, float] | None = None
    safe_mode: bool | None = None
    current_path: str | None = None

    def __post_init__(self) -> None:
        self.messages = [_coerce_message(m) for m in self.messages]

    # Wire (camelCase) and Python spellings are both accepted.
    _ALIASES = {
        "vaultId": "vault_id",
        "userApiKey": "user_api_key",
        "externalWalletAddress": "external_wallet_address",
        "slippageSettings": "slippage_settings",
        "safeMode": "safe_mode",
        "currentPath": "current_path",
    }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RequestOptions:
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = cls._ALIASES.get(key, key)
            if name in cls.__dataclass_fields__:
                kwargs[name] = value
        if "vault_id" not in kwargs:
            raise ValueError("RequestOptions requires a vault_id")
        return cls(**kwargs)


@dataclass
class ToolCall:
    """A tool invocation requested by the agent."""

    tool_call_id: str | None
    tool_name: str | None
    args: Any
    raw: Any = None

    @classmethod
    def from_value(cls, value: Any) -> ToolCall:
        """Build from a streamed payload; non-object payloads keep only ``raw``."""
        if not isinstance(value, Mapping):
            return cls(tool_call_id=None, tool_name=None, args=None, raw=value)
        return cls(
            tool_call_id=value.get("toolCallId"),
            tool_name=value.get("toolName"),
            args=value.get("args"),
            raw=value,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"toolCallId": self.tool_call_id, "toolName": self.tool_name, "args": self.args}


@dataclass
class ToolResult:
    """Outcome of a tool call, correlated by ``tool_call_id``."""

    tool_call_id: str | None
    result: Any
    raw: Any = None

    @classmethod
    def from_value(cls, value: Any) -> ToolResult:
        if not isinstance(value, Mapping):
            return cls(tool_call_id=None, result=None, raw=value)
        return cls(tool_call_id=value.get("toolCallId"), result=value.get("result"), raw=value)

    def to_dict(self) -> dict[str, Any]:
        return {"toolCallId": self.tool_call_id, "result": self.result}


@dataclass
class ProcessedResponse:
    """A complete reply assembled from a finished chunk stream."""

    content: str = ""
    message_id: str | None = None
    usage: dict | None = None
    path_info: Any = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_results: list[ToolResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "messageId": self.message_id,
            "usage": self.usage,
            "pathInfo": self.path_info,
            "toolCalls": [c.to_dict() for c in self.tool_calls],
            "toolResults": [r.to_dict() for r in self.tool_results],
        }
