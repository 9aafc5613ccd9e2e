from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ResourceGroup:
    key: str
    label: str
    tables: tuple[str, ...]
    buckets: tuple[str, ...] = ()
