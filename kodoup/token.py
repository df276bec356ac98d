"""Upload token sources: a static string or a provider called once."""
from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Awaitable, Callable, Union

from .errors import ConfigurationError


@dataclass(frozen=True)
class StaticToken:
    value: str

    async def resolve(self) -> str:
        if not self.value:
            raise ConfigurationError("upload token is empty")
        return self.value


@dataclass(frozen=True)
class TokenProvider:
    """Zero-argument callable returning a token or an awaitable of one."""

    func: Callable[[], Union[str, Awaitable[str]]]

    async def resolve(self) -> str:
        try:
            token = self.func()
            if inspect.isawaitable(token):
                token = await token
        except Exception as exc:
            raise ConfigurationError(f"failed to obtain upload token: {exc}") from exc
        if not isinstance(token, str) or not token:
            raise ConfigurationError("token provider returned an empty or non-string token")
        return token


TokenSource = Union[StaticToken, TokenProvider]


def token_source(token: object) -> TokenSource:
    if isinstance(token, (StaticToken, TokenProvider)):
        return token
    if isinstance(token, str):
        return StaticToken(token)
    if callable(token):
        return TokenProvider(token)
    raise ConfigurationError("token must be a string or a zero-argument callable")


__all__ = ["StaticToken", "TokenProvider", "TokenSource", "token_source"]
