from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
import time
from typing import Callable

logger = logging.getLogger(__name__)

_PENDING = "pending"
_FIRED = "fired"
_CANCELLED = "cancelled"


class Deadline:
    """Cancellable timer that runs an action at most once.

    Example:
        ```python
        deadline = Deadline(5, guard.terminate)
        deadline.start()
        ```
    """

    def __init__(self, seconds: float, action: Callable[[], object]) -> None:
        """Prepare a daemon timer without starting it.

        Example:
            ```python
            deadline = Deadline(0.5, lambda: None)
            ```
        """
        self._action = action
        self._lock = threading.Lock()
        self._state = _PENDING
        self._timer = threading.Timer(seconds, self.fire)
        self._timer.daemon = True

    def start(self) -> None:
        """Start the countdown.

        Example:
            ```python
            deadline.start()
            ```
        """
        self._timer.start()

    def fire(self) -> bool:
        """Run the action unless the deadline already fired or was cancelled.

        Example:
            ```python
            deadline.fire()
            ```
        """
        with self._lock:
            if self._state != _PENDING:
                return False
            self._state = _FIRED
        self._action()
        return True

    def cancel(self) -> bool:
        """Disarm the deadline; returns False if it already fired.

        Example:
            ```python
            deadline.cancel()
            ```
        """
        with self._lock:
            if self._state != _PENDING:
                return False
            self._state = _CANCELLED
        self._timer.cancel()
        return True

    @property
    def fired(self) -> bool:
        """Return whether the action was run.

        Example:
            ```python
            assert not deadline.fired
            ```
        """
        with self._lock:
            return self._state == _FIRED


class ProcessGuard:
    """Serialize reaping and signalling of one child process.

    The guard polls the child and sends signals under the same lock, so a
    signal is never delivered to a process that has already been reaped.

    Example:
        ```python
        guard = ProcessGuard(proc, process_group=True)
        ```
    """

    def __init__(self, process: subprocess.Popen, *, process_group: bool) -> None:
        """Wrap a freshly spawned process.

        Example:
            ```python
            guard = ProcessGuard(subprocess.Popen(["sleep", "1"]), process_group=False)
            ```
        """
        self._process = process
        self._process_group = process_group
        self._lock = threading.Lock()
        self._reaped = False
        self._killed = False
        self._timed_out = False
        self._terminated_at: float | None = None

    @property
    def timed_out(self) -> bool:
        """Return whether the deadline terminated this process.

        Example:
            ```python
            if guard.timed_out: ...
            ```
        """
        with self._lock:
            return self._timed_out

    def poll(self) -> int | None:
        """Reap the child if it finished and return its return code.

        Example:
            ```python
            code = guard.poll()
            ```
        """
        with self._lock:
            return self._poll_locked()

    def terminate(self) -> bool:
        """Mark the invocation as timed out and send SIGTERM if still running.

        Example:
            ```python
            sent = guard.terminate()
            ```
        """
        with self._lock:
            if self._timed_out or self._poll_locked() is not None:
                return False
            # Flag first: it is the only timeout discriminator.
            self._timed_out = True
            self._terminated_at = time.monotonic()
            logger.debug("Deadline reached, terminating pid %s", self._process.pid)
            self._signal_locked(signal.SIGTERM)
            return True

    def escalate(self, grace_seconds: float) -> bool:
        """Send SIGKILL once the grace period after SIGTERM has elapsed.

        Example:
            ```python
            guard.escalate(grace_seconds=5)
            ```
        """
        with self._lock:
            if self._terminated_at is None or self._killed:
                return False
            if time.monotonic() - self._terminated_at < grace_seconds:
                return False
            if self._poll_locked() is not None:
                return False
            self._killed = True
            logger.debug("Grace period over, killing pid %s", self._process.pid)
            self._signal_locked(signal.SIGKILL)
            return True

    def kill_and_reap(self) -> int:
        """Kill a still-running child immediately and wait for it.

        Used when supervision is abandoned, so nothing outlives the call.

        Example:
            ```python
            returncode = guard.kill_and_reap()
            ```
        """
        with self._lock:
            if self._poll_locked() is None:
                self._killed = True
                logger.debug("Supervision aborted, killing pid %s", self._process.pid)
                self._signal_locked(signal.SIGKILL)
            code = self._process.wait()
            self._reaped = True
            return code

    def kill_stragglers(self) -> None:
        """SIGKILL whatever is left in the child's process group.

        The leader may already be reaped; its group id stays reserved while
        any member is alive, so the signal only reaches descendants.

        Example:
            ```python
            guard.kill_stragglers()
            ```
        """
        if not self._process_group:
            return
        with self._lock:
            logger.debug("Killing leftover members of process group %s", self._process.pid)
            try:
                os.killpg(self._process.pid, signal.SIGKILL)
            except (ProcessLookupError, PermissionError):
                pass

    def _poll_locked(self) -> int | None:
        """Poll the child; caller must hold the lock.

        Example:
            ```python
            code = guard._poll_locked()
            ```
        """
        if self._reaped:
            return self._process.returncode
        code = self._process.poll()
        if code is not None:
            self._reaped = True
        return code

    def _signal_locked(self, signum: int) -> None:
        """Deliver a signal to the child or its process group.

        Example:
            ```python
            guard._signal_locked(signal.SIGTERM)
            ```
        """
        try:
            if self._process_group:
                os.killpg(self._process.pid, signum)
            else:
                self._process.send_signal(signum)
        except (ProcessLookupError, PermissionError):
            # Group already gone; the pending poll will observe the exit.
            pass
