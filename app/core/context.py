from __future__ import annotations

from contextvars import ContextVar
from typing import Optional

supertx_hash_ctx: ContextVar[Optional[str]] = ContextVar("supertx_hash", default=None)


def set_supertx_hash(supertx_hash: Optional[str]) -> None:
    supertx_hash_ctx.set(supertx_hash)


def get_supertx_hash() -> Optional[str]:
    return supertx_hash_ctx.get()
