from __future__ import annotations

import logging
import signal
import subprocess
import threading
import time
from pathlib import Path
from typing import IO, Callable, Mapping

from ..settings import InvocationSettings
from .resolution import Deadline, ProcessGuard
from .sanitize import build_environment, sanitize_arguments, sanitize_value
from .stderr_filter import filter_stderr
from .types import Failure, FailureKind, InvocationOutcome, InvocationRequest, Success

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


def _drain(stream: IO[bytes], sink: list[bytes]) -> None:
    """Read a pipe to EOF into `sink`, then close it.

    Example:
        ```python
        chunks: list[bytes] = []
        _drain(proc.stdout, chunks)
        ```
    """
    try:
        for chunk in iter(lambda: stream.read(_CHUNK_SIZE), b""):
            sink.append(chunk)
    finally:
        stream.close()


def _feed(stream: IO[bytes], data: bytes) -> None:
    """Write input to the child's stdin and close it to signal EOF.

    Example:
        ```python
        _feed(proc.stdin, "prompt".encode("utf-8"))
        ```
    """
    try:
        stream.write(data)
        stream.flush()
    except OSError as exc:
        # Child exited or closed stdin before consuming everything.
        logger.debug("Abandoning stdin write: %s", exc)
    finally:
        try:
            stream.close()
        except OSError:
            pass


def _describe_exit(returncode: int) -> str:
    """Render a return code for failure details.

    Example:
        ```python
        assert _describe_exit(3) == "Exit code 3"
        ```
    """
    if returncode >= 0:
        return f"Exit code {returncode}"
    try:
        name = signal.Signals(-returncode).name
    except ValueError:
        name = str(-returncode)
    return f"Terminated by signal {name}"


def _start_thread(target: Callable[..., object], *args: object) -> threading.Thread:
    """Start a daemon helper thread.

    Example:
        ```python
        thread = _start_thread(_drain, proc.stdout, chunks)
        ```
    """
    thread = threading.Thread(target=target, args=args, daemon=True)
    thread.start()
    return thread


class ProcessEngine:
    """Run an external binary with a deadline and classify the result.

    Every `execute` call owns its own process, pipes, helper threads and
    timer, so calls from different threads never share mutable state.

    Example:
        ```python
        engine = ProcessEngine(settings=InvocationSettings(kill_grace_seconds=2))
        outcome = engine.execute(InvocationRequest("/opt/homebrew/bin/gemini", ["-m", "gemini-3-pro", "hi"]))
        ```
    """

    def __init__(
        self,
        *,
        settings: InvocationSettings | None = None,
        environ: Mapping[str, str] | None = None,
        home: str | None = None,
    ) -> None:
        """Configure the engine; `environ` defaults to `os.environ` at call time.

        Example:
            ```python
            engine = ProcessEngine(environ={"PATH": "/usr/bin"}, home="/tmp/home")
            ```
        """
        self._settings = settings or InvocationSettings()
        self._environ = environ
        self._home = home

    @property
    def settings(self) -> InvocationSettings:
        """Return the engine settings.

        Example:
            ```python
            grace = engine.settings.kill_grace_seconds
            ```
        """
        return self._settings

    def execute(self, request: InvocationRequest) -> InvocationOutcome:
        """Execute one request and return exactly one classified outcome.

        Example:
            ```python
            outcome = engine.execute(InvocationRequest("/usr/bin/printf", ["hello"], timeout_seconds=5))
            ```
        """
        executable = sanitize_value(request.executable_path)
        if not executable or not Path(executable).is_file():
            return Failure(FailureKind.BINARY_NOT_FOUND, executable)

        argv = [executable, *sanitize_arguments(request.arguments)]
        env = build_environment(
            self._environ,
            search_roots=self._settings.search_roots,
            home=self._home,
        )
        try:
            process = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE if request.input is not None else subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=env,
                start_new_session=True,
            )
        except OSError as exc:
            return Failure(FailureKind.EXECUTION_FAILED, str(exc))

        logger.debug("Spawned pid %s: %s", process.pid, executable)
        # Sole exit for an outcome; the deadline only flags and signals.
        return self._supervise(process, request)

    def _supervise(self, process: subprocess.Popen, request: InvocationRequest) -> InvocationOutcome:
        """Drive one spawned process to completion and classify it.

        If supervision is interrupted, the child's process group is killed
        and reaped before the exception propagates.

        Example:
            ```python
            outcome = engine._supervise(process, request)
            ```
        """
        guard = ProcessGuard(process, process_group=True)
        deadline = Deadline(request.timeout_seconds, guard.terminate)
        finished = False
        try:
            if process.stdout is None or process.stderr is None:
                raise RuntimeError("Output pipes were not created")
            stdout_chunks: list[bytes] = []
            stderr_chunks: list[bytes] = []
            readers = [
                _start_thread(_drain, process.stdout, stdout_chunks),
                _start_thread(_drain, process.stderr, stderr_chunks),
            ]
            writer = None
            if request.input is not None and process.stdin is not None:
                writer = _start_thread(_feed, process.stdin, request.input.encode("utf-8"))

            deadline.start()
            returncode = self._wait(guard)
            finished = True
        finally:
            deadline.cancel()
            if not finished:
                guard.kill_and_reap()
                guard.kill_stragglers()

        self._join_readers(readers, guard, process.pid)
        if writer is not None:
            writer.join(self._settings.drain_timeout_seconds)

        # Readers that outlived the drain timeout may still be appending.
        stdout = b"".join(list(stdout_chunks)).decode("utf-8", errors="replace").strip()
        stderr = b"".join(list(stderr_chunks)).decode("utf-8", errors="replace").strip()
        outcome = self._classify(returncode, guard.timed_out, stdout, stderr)
        logger.debug("pid %s finished with %s", process.pid, outcome)
        return outcome

    def _wait(self, guard: ProcessGuard) -> int:
        """Poll until the child is reaped, escalating after the grace period.

        Example:
            ```python
            returncode = engine._wait(guard)
            ```
        """
        while True:
            returncode = guard.poll()
            if returncode is not None:
                return returncode
            guard.escalate(self._settings.kill_grace_seconds)
            time.sleep(self._settings.poll_interval_seconds)

    def _join_readers(self, readers: list[threading.Thread], guard: ProcessGuard, pid: int) -> None:
        """Wait for the output readers, killing descendants that keep the pipes open.

        Example:
            ```python
            engine._join_readers(readers, guard, process.pid)
            ```
        """
        drain_timeout = self._settings.drain_timeout_seconds
        for reader in readers:
            reader.join(drain_timeout)
        if not any(reader.is_alive() for reader in readers):
            return
        logger.debug("Output pipes of pid %s still open after exit", pid)
        guard.kill_stragglers()
        for reader in readers:
            reader.join(drain_timeout)
            if reader.is_alive():
                logger.debug("Abandoning output reader of pid %s", pid)

    def _classify(
        self,
        returncode: int,
        timed_out: bool,
        stdout: str,
        stderr: str,
    ) -> InvocationOutcome:
        """Map exit status and captured text to an outcome.

        Example:
            ```python
            outcome = engine._classify(0, False, "letter", "")
            ```
        """
        if timed_out:
            return Failure(FailureKind.TIMED_OUT)
        details = filter_stderr(stderr, self._settings.noise_patterns)
        if returncode == 0:
            if stdout:
                return Success(stdout)
            return Failure(FailureKind.EMPTY_OUTPUT, details)
        return Failure(FailureKind.EXECUTION_FAILED, details or _describe_exit(returncode))
