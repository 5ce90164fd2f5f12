"""Process-wide default lock options.

Managers copy these when they are created without explicit defaults, so
changing them only affects managers built afterwards. Meant to be set once
at startup.
"""

from __future__ import annotations

from typing import Any

from .models import LockOptions


_defaults = LockOptions()


def get_default_options() -> LockOptions:
    return _defaults


def configure_defaults(**overrides: Any) -> LockOptions:
    """Merge ``overrides`` into the process defaults and return the result."""
    global _defaults
    _defaults = _defaults.merged(**overrides)
    return _defaults


def reset_default_options() -> LockOptions:
    global _defaults
    _defaults = LockOptions()
    return _defaults
