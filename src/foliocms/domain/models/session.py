from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AdminSession:
    identifier: str
    token: str
    issued_at: str
