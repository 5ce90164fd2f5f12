"""Settings loader for lock managers."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from lockkey.utils.env import get_bool_env, get_float_env, get_str_env

from .codec import DEFAULT_DELIMITER, validate_delimiter
from .manager import DEFAULT_NAMESPACE
from .models import LockOptions
from .store_redis import DEFAULT_REDIS_URL


_OPTION_ENV = {
    "wait_for": "LOCKKEY_WAIT_FOR",
    "ttl": "LOCKKEY_TTL",
    "poll_interval": "LOCKKEY_POLL_INTERVAL",
}


class LockSettings(BaseModel):
    redis_url: str = DEFAULT_REDIS_URL
    namespace: str = DEFAULT_NAMESPACE
    delimiter: str = DEFAULT_DELIMITER
    defaults: LockOptions = Field(default_factory=LockOptions)

    @field_validator("delimiter")
    @classmethod
    def _delimiter_is_unambiguous(cls, value: str) -> str:
        return validate_delimiter(value)

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "LockSettings":
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid lock settings: {exc}") from exc

    @classmethod
    def from_file(cls, path: Path) -> "LockSettings":
        data = yaml.safe_load(path.read_text()) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Invalid lock settings: {path} does not contain a mapping")
        return cls.from_mapping(data)

    @classmethod
    def from_env(cls) -> "LockSettings":
        data: Dict[str, Any] = {}
        redis_url = get_str_env("LOCKKEY_REDIS_URL")
        if redis_url:
            data["redis_url"] = redis_url
        namespace = get_str_env("LOCKKEY_NAMESPACE")
        if namespace:
            data["namespace"] = namespace

        defaults: Dict[str, Any] = {}
        for field, env_name in _OPTION_ENV.items():
            value = get_float_env(env_name)
            if value is not None:
                defaults[field] = value
        defaults["raise_on_timeout"] = get_bool_env("LOCKKEY_RAISE_ON_TIMEOUT", default=True)
        data["defaults"] = defaults
        return cls.from_mapping(data)
