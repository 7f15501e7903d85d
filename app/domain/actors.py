"""Identity of the user performing an operation."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Actor:
    """Authenticated user as seen by the engine.

    Tokens are issued elsewhere; only `id`, display `name` and the moderator
    flag are needed here.
    """

    id: str
    name: str
    is_admin: bool = False
