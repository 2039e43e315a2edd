"""Identity provider selection."""

from __future__ import annotations

from enum import Enum


class AuthMode(str, Enum):
    """How bearer tokens are verified."""

    CLERK = "clerk"
    LOCAL = "local"
