"""
Per-tab controllers.

A tab scope (cookie) maps to one SessionController while the tab stays
active. The persisted fields live in the tab's store; pin, error and the
in-flight flag only exist here, like a page's in-memory state.

The registry is bounded: least recently used tabs are dropped once
TAB_REGISTRY_MAX_TABS is reached, and tabs idle for TAB_IDLE_SEC are
dropped on the next access. A dropped tab reloads from its store on the
next page load.
"""
import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple

from paygate.core.controller import SessionController
from paygate.gateway.client import GatewayClient
from paygate.observability.logging import log
from paygate.settings import settings
from paygate.store.session_repo import RedisSessionRepository, SessionRepository


class TabRegistry:
    def __init__(
        self,
        repo_factory: Optional[Callable[[str], SessionRepository]] = None,
        gateway: Optional[GatewayClient] = None,
        *,
        max_tabs: Optional[int] = None,
        idle_sec: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._repo_factory = repo_factory or RedisSessionRepository
        self._gateway = gateway
        self.max_tabs = max_tabs if max_tabs is not None else settings.TAB_REGISTRY_MAX_TABS
        self.idle_sec = idle_sec if idle_sec is not None else settings.TAB_IDLE_SEC
        self._clock = clock
        # scope -> (controller, last access), oldest access first
        self._controllers: "OrderedDict[str, Tuple[SessionController, float]]" = OrderedDict()

    def find(self, scope: str) -> Optional[SessionController]:
        """Controller of an open tab, or None. Never creates one."""
        self._evict_idle()
        entry = self._controllers.get(scope)
        if entry is None:
            return None
        self._touch(scope, entry[0])
        return entry[0]

    def get(self, scope: str) -> SessionController:
        """Controller of the tab, created on first page load."""
        c = self.find(scope)
        if c is None:
            c = SessionController(self._repo_factory(scope), self._gateway)
            self._touch(scope, c)
            self._evict_overflow()
        return c

    def __len__(self) -> int:
        return len(self._controllers)

    def _touch(self, scope: str, c: SessionController) -> None:
        self._controllers[scope] = (c, self._clock())
        self._controllers.move_to_end(scope)

    def _evict_idle(self) -> None:
        if self.idle_sec <= 0:
            return
        cutoff = self._clock() - self.idle_sec
        while self._controllers:
            scope, (_, seen) = next(iter(self._controllers.items()))
            if seen > cutoff:
                break
            self._controllers.popitem(last=False)
            log(event="tab_evicted", reason="idle", scope=scope)

    def _evict_overflow(self) -> None:
        while self.max_tabs > 0 and len(self._controllers) > self.max_tabs:
            scope, _ = self._controllers.popitem(last=False)
            log(event="tab_evicted", reason="capacity", scope=scope)


tabs = TabRegistry()


def get_tabs() -> TabRegistry:
    return tabs
