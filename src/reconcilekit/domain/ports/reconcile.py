"""Port for the injected business logic."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from reconcilekit.domain.model import Resource


@runtime_checkable
class Reconciler(Protocol):
    """Callable that drives one object towards its desired state.

    Implementations may mutate ``obj.status`` in place and perform side effects
    against the store. Failure is signalled by raising; the controller retries.
    """

    def __call__(self, obj: Resource) -> None: ...


__all__ = ["Reconciler"]
