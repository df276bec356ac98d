"""Configuration defaults and loaders for kodoup."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

import yaml

from .errors import ConfigurationError

DEFAULT_HOST = "http://upload.qiniu.com"
DEFAULT_CHUNK_SIZE_BYTES: int = 256 * 1024  # 256 KiB
DEFAULT_BLOCK_SIZE_BYTES: int = 4 * 1024 * 1024  # 4 MiB
MAX_BLOCK_SIZE_BYTES: int = 4 * 1024 * 1024
DEFAULT_TIMEOUT_SECONDS: float = 30.0
DEFAULT_MAX_FILE_SIZE_BYTES: int = 20 * 1024 * 1024  # 20 MiB
LOG_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

TokenLike = Union[str, Callable[[], Union[str, Awaitable[str]]]]
ProgressCallback = Callable[[int, int], Any]


@dataclass
class UploadConfig:
    """Options recognised by a single-file upload."""

    token: Optional[TokenLike] = None
    host: str = DEFAULT_HOST
    domain: str = ""
    chunk_size: int = DEFAULT_CHUNK_SIZE_BYTES
    block_size: int = DEFAULT_BLOCK_SIZE_BYTES
    get_key: Optional[Callable[[Any], str]] = None
    on_progress: Optional[ProgressCallback] = None
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    cancel_on_failure: bool = True
    mime_type: Optional[str] = None
    params: Dict[str, str] = field(default_factory=dict)

    def validate(self) -> "UploadConfig":
        if not isinstance(self.chunk_size, int) or self.chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be a positive integer, got {self.chunk_size!r}")
        if not isinstance(self.block_size, int) or self.block_size <= 0:
            raise ConfigurationError(f"block_size must be a positive integer, got {self.block_size!r}")
        if self.block_size > MAX_BLOCK_SIZE_BYTES:
            raise ConfigurationError(
                f"block_size {self.block_size} exceeds the server limit of {MAX_BLOCK_SIZE_BYTES} bytes"
            )
        if self.chunk_size > self.block_size:
            raise ConfigurationError("chunk_size must not be larger than block_size")
        if self.timeout <= 0:
            raise ConfigurationError("timeout must be positive")
        if not self.host:
            raise ConfigurationError("host is required")
        for name in self.params:
            if not name.startswith("x:"):
                raise ConfigurationError(f"custom parameter '{name}' must start with 'x:'")
        return self


@dataclass
class BatchOptions:
    """Options for uploading a selection of files."""

    accept: str = ""
    limit: int = 1
    max_size: int = DEFAULT_MAX_FILE_SIZE_BYTES
    on_start: Optional[Callable[[list], Any]] = None
    on_progress: Optional[ProgressCallback] = None
    on_success: Optional[Callable[[list], Any]] = None
    on_error: Optional[Callable[[BaseException], Any]] = None

    def validate(self) -> "BatchOptions":
        if self.limit < 1:
            raise ConfigurationError("limit must be at least 1")
        if self.max_size <= 0:
            raise ConfigurationError("max_size must be positive")
        return self


_UPLOAD_KEYS = {"host", "domain", "token", "chunk_size", "block_size", "timeout", "cancel_on_failure", "mime_type", "params"}
_BATCH_KEYS = {"accept", "limit", "max_size"}


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    with path.open("r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"{path} is not valid YAML: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"{path} must contain a mapping at the top level")
    return dict(data)


def _check_keys(section: str, data: Mapping[str, Any], allowed: set) -> None:
    unknown = set(data) - allowed
    if unknown:
        raise ConfigurationError(
            f"Unknown {section} configuration keys: " + ", ".join(sorted(unknown))
        )


def _drop_none(values: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def load_config(path: str | Path | None, **overrides: Any) -> UploadConfig:
    """Build an :class:`UploadConfig` from a YAML file and keyword overrides.

    Overrides whose value is ``None`` are ignored so that unset command line
    flags do not mask values coming from the file.
    """

    data: Dict[str, Any] = {}
    if path is not None:
        data = _load_yaml(Path(path))
        data.pop("batch", None)
        _check_keys("upload", data, _UPLOAD_KEYS)
    params = data.pop("params", None) or {}
    if not isinstance(params, Mapping):
        raise ConfigurationError("params must be a mapping of 'x:' names to values")
    config = UploadConfig(params={str(k): str(v) for k, v in params.items()}, **data)
    config = replace(config, **_drop_none(overrides))
    return config.validate()


def load_batch_options(
    path: str | Path | None,
    *,
    default_limit: Optional[int] = None,
    **overrides: Any,
) -> BatchOptions:
    """Build :class:`BatchOptions` from the ``batch`` section of a YAML file.

    *default_limit* applies when neither the file nor the overrides set ``limit``.
    """

    data: Dict[str, Any] = {}
    if path is not None:
        section = _load_yaml(Path(path)).get("batch") or {}
        if not isinstance(section, Mapping):
            raise ConfigurationError("batch configuration must be a mapping")
        _check_keys("batch", section, _BATCH_KEYS)
        data = dict(section)
    if default_limit is not None:
        data.setdefault("limit", default_limit)
    options = replace(BatchOptions(**data), **_drop_none(overrides))
    return options.validate()


__all__ = [
    "BatchOptions",
    "DEFAULT_BLOCK_SIZE_BYTES",
    "DEFAULT_CHUNK_SIZE_BYTES",
    "DEFAULT_HOST",
    "DEFAULT_MAX_FILE_SIZE_BYTES",
    "DEFAULT_TIMEOUT_SECONDS",
    "MAX_BLOCK_SIZE_BYTES",
    "UploadConfig",
    "load_batch_options",
    "load_config",
]
