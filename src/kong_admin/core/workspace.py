from __future__ import annotations

import threading


class RWLock:
    """Readers share the lock; a writer waits for active readers to drain."""

    def __init__(self) -> None:
        self._read_ready = threading.Condition(threading.Lock())
        self._readers = 0

    def r_acquire(self) -> None:
        with self._read_ready:
            self._readers += 1

    def r_release(self) -> None:
        with self._read_ready:
            self._readers -= 1
            if self._readers == 0:
                self._read_ready.notify_all()

    def w_acquire(self) -> None:
        self._read_ready.acquire()
        while self._readers > 0:
            self._read_ready.wait()

    def w_release(self) -> None:
        self._read_ready.release()


class WorkspaceState:
    """
    Workspace setting shared by every request a client composes.
    An empty string means the default workspace.
    """

    def __init__(self, workspace: str = "") -> None:
        self._lock = RWLock()
        self._workspace = workspace or ""

    def get(self) -> str:
        self._lock.r_acquire()
        try:
            return self._workspace
        finally:
            self._lock.r_release()

    def set(self, workspace: str) -> None:
        self._lock.w_acquire()
        try:
            self._workspace = workspace or ""
        finally:
            self._lock.w_release()


def workspaced_base_url(root_url: str, workspace: str) -> str:
    if workspace:
        return f"{root_url}/{workspace}"
    return root_url


__all__ = ["RWLock", "WorkspaceState", "workspaced_base_url"]
