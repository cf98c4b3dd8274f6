from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Login profile.

    Note: plain data object, no DB access here.
    """

    user_id: str
    username: str
    password_hash: str
    full_name: str
    role: Role
    is_active: bool = True
