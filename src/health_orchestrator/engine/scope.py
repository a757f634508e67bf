"""Per-run resource scope shared by all probes of one run."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Iterator, Mapping
from contextlib import AbstractAsyncContextManager, AsyncExitStack, asynccontextmanager
from types import MappingProxyType
from typing import Any

from ..observability.logging import get_logger

logger = get_logger(__name__)

ResourceFactory = Callable[[], AbstractAsyncContextManager[Any]]
ScopeFactory = Callable[[], AbstractAsyncContextManager["ProbeScope"]]


class ProbeScope(Mapping[str, Any]):
    """Read-only view of the resources opened for a run."""

    def __init__(self, resources: Mapping[str, Any] | None = None) -> None:
        self._resources = MappingProxyType(dict(resources or {}))

    def __getitem__(self, name: str) -> Any:
        return self._resources[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._resources)

    def __len__(self) -> int:
        return len(self._resources)

    def __repr__(self) -> str:
        return f"ProbeScope({sorted(self._resources)!r})"


@asynccontextmanager
async def empty_scope() -> AsyncIterator[ProbeScope]:
    """Scope factory for runs that share no resources."""
    yield ProbeScope()


class ResourceScopeFactory:
    """Opens a fresh set of named resources for every run.

    Each resource factory returns an async context manager (for example
    ``httpx.AsyncClient``). All of them are entered when the run starts and
    exited together, in reverse order, once every probe has finished.
    """

    def __init__(self, resources: Mapping[str, ResourceFactory]) -> None:
        self._factories = dict(resources)

    @asynccontextmanager
    async def __call__(self) -> AsyncIterator[ProbeScope]:
        async with AsyncExitStack() as stack:
            opened: dict[str, Any] = {}
            for name, factory in self._factories.items():
                opened[name] = await stack.enter_async_context(factory())
            logger.debug("Opened health check scope", resources=list(opened))
            yield ProbeScope(opened)
        logger.debug("Released health check scope", resources=list(opened))
