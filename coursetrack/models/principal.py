from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated identity extracted from a validated JWT.

    Carried through the request via FastAPI's dependency system; every
    progress, bookmark and note record is keyed by ``user_id``.
    """

    user_id: str
    roles: frozenset[str]
