"""Deterministic :class:`RpcClient` stand-in returning scripted outcomes."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from rpc_sentinel.errors import CallError

Script = Union[str, BaseException]


@dataclass
class ScriptedReply:
    """One scripted answer: a raw result or an exception, after *delay* seconds."""

    outcome: Script
    delay: float = 0.0


@dataclass
class ScriptedRpcClient:
    """Replays per-URL scripted replies.

    A URL maps to a single reply (reused on every call) or a list of
    replies consumed in order, the last one repeating. Unknown URLs raise
    :class:`CallError`. Every call is recorded as ``(url, method)``.
    """

    replies: Dict[str, Union[ScriptedReply, List[ScriptedReply]]] = field(default_factory=dict)
    calls: List[Tuple[str, str]] = field(default_factory=list)
    closed: bool = False

    def script(self, url: str, outcome: Script, *, delay: float = 0.0) -> "ScriptedRpcClient":
        """Append a reply for *url*. Returns ``self`` for chaining."""
        reply = ScriptedReply(outcome, delay)
        existing = self.replies.get(url)
        if existing is None:
            self.replies[url] = [reply]
        elif isinstance(existing, list):
            existing.append(reply)
        else:
            self.replies[url] = [existing, reply]
        return self

    async def call(self, url: str, method: str, *, deadline: float = 30.0) -> str:
        self.calls.append((url, method))
        reply = self._next_reply(url)
        if reply is None:
            raise CallError(f"No scripted reply for {url}", url=url)

        if reply.delay:
            try:
                await asyncio.wait_for(asyncio.sleep(reply.delay), timeout=deadline)
            except asyncio.TimeoutError as exc:
                raise CallError(
                    f"Calling {method} exceeded the {deadline:g}s deadline",
                    url=url,
                    orig_exc=exc,
                ) from exc

        if isinstance(reply.outcome, BaseException):
            raise reply.outcome
        return reply.outcome

    async def aclose(self) -> None:
        self.closed = True

    def _next_reply(self, url: str) -> Optional[ScriptedReply]:
        entry = self.replies.get(url)
        if isinstance(entry, list):
            if not entry:
                return None
            return entry.pop(0) if len(entry) > 1 else entry[0]
        return entry
