"""Request-scoped tenant identity.

The tenant is carried in a context variable so that it follows a request
through every awaited call (detector -> AI strategy -> cached gateway)
without being threaded through each signature.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

_current_tenant: ContextVar[str | None] = ContextVar("current_tenant", default=None)


def current_tenant() -> str | None:
    """Return the tenant ID bound to the running task, or ``None``."""
    return _current_tenant.get()


@contextmanager
def tenant_scope(tenant_id: str | None) -> Iterator[None]:
    """Bind *tenant_id* for the duration of the ``with`` block."""
    token = _current_tenant.set(tenant_id)
    try:
        yield
    finally:
        _current_tenant.reset(token)
