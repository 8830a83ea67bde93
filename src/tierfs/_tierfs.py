"""Main TierFS class — sync wrappers over TierFSAsync."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import TYPE_CHECKING, Any

from tierfs._tierfs_async import TierFSAsync

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncEngine

    from tierfs.config import TierConfig
    from tierfs.fs.envelope import Envelope
    from tierfs.fs.identity import Requester
    from tierfs.fs.permissions import Permission
    from tierfs.fs.protocol import StorageBackend
    from tierfs.fs.types import BulkResult, Delivery, Resolution, UploadItem

logger = logging.getLogger(__name__)


class TierFS:
    """Synchronous facade over :class:`TierFSAsync`.

    Runs a private event loop in a background thread so the store can be
    used from plain sync code or from inside an existing async context.

    Usage::

        with TierFS(TierConfig(root="/srv/files")) as fs:
            alice = fs.requester("alice")
            fs.upload(alice, "/notes", [UploadItem("a.md", b"# hi")])
            print(fs.respond_get(alice, "/notes/a.md").to_dict())
    """

    def __init__(
        self,
        config: TierConfig | None = None,
        *,
        backend: StorageBackend | None = None,
        engine: AsyncEngine | None = None,
    ) -> None:
        self._closed = False

        # Private event loop in a daemon thread
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, daemon=True)
        self._thread.start()

        self._async = TierFSAsync(config, backend=backend, engine=engine)
        try:
            self._run(self._async.open())
        except Exception:
            self._stop_loop()
            raise

    def _run(self, coro: Any) -> Any:
        """Submit *coro* to the private loop and block for the result."""
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result()

    @property
    def config(self) -> TierConfig:
        return self._async.config

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the store, stop the event loop and join the thread."""
        if self._closed:
            return
        self._closed = True

        try:
            self._run(self._async.close())
        finally:
            self._stop_loop()

    def _stop_loop(self) -> None:
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=5)

    def __enter__(self) -> TierFS:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def requester(self, identity: str | None) -> Requester:
        return self._run(self._async.requester(identity))

    def add_friend(self, user_id: str, friend_id: str) -> bool:
        return self._run(self._async.add_friend(user_id, friend_id))

    def remove_friend(self, user_id: str, friend_id: str) -> bool:
        return self._run(self._async.remove_friend(user_id, friend_id))

    def list_friends(self, user_id: str) -> list[str]:
        return self._run(self._async.list_friends(user_id))

    # ------------------------------------------------------------------
    # Resource operations
    # ------------------------------------------------------------------

    def get(self, requester: Requester, path: str) -> Delivery:
        return self._run(self._async.get(requester, path))

    def list_dir(self, requester: Requester, path: str) -> Resolution:
        return self._run(self._async.list_dir(requester, path))

    def upload(
        self,
        requester: Requester,
        target_dir: str,
        items: Iterable[UploadItem],
    ) -> BulkResult:
        return self._run(self._async.upload(requester, target_dir, items))

    def delete(self, requester: Requester, path: str) -> BulkResult:
        return self._run(self._async.delete(requester, path))

    def permissions(self, requester: Requester, path: str) -> Permission:
        return self._run(self._async.permissions(requester, path))

    def set_permissions(
        self,
        requester: Requester,
        path: str,
        *,
        public: str | None = None,
        friend: str | None = None,
    ) -> Permission:
        return self._run(
            self._async.set_permissions(requester, path, public=public, friend=friend)
        )

    # ------------------------------------------------------------------
    # Boundary (envelopes)
    # ------------------------------------------------------------------

    def respond_get(self, requester: Requester, path: str) -> Envelope:
        return self._run(self._async.respond(self._async.get(requester, path)))

    def respond_listing(self, requester: Requester, path: str) -> Envelope:
        return self._run(self._async.respond_listing(requester, path))

    def respond_upload(
        self,
        requester: Requester,
        target_dir: str,
        items: Iterable[UploadItem],
    ) -> Envelope:
        return self._run(
            self._async.respond(self._async.upload(requester, target_dir, items))
        )

    def respond_delete(self, requester: Requester, path: str) -> Envelope:
        return self._run(self._async.respond(self._async.delete(requester, path)))
