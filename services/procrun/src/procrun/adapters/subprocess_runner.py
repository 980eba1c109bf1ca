from __future__ import annotations

from collections.abc import Iterator
import contextlib
import io
import logging
import os
import signal
import subprocess
import threading
from typing import IO, BinaryIO

from procrun.domain.cancellation import Cancellation
from procrun.domain.errors import SpawnFailure
from procrun.domain.outcome import (
    CleanExit,
    OtherFailure,
    WaitOutcome,
    classify_returncode,
    to_response,
)
from procrun.domain.request import Request, StdinSource
from procrun.domain.response import Response

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


class _Copier(threading.Thread):
    """Moves bytes between the child's pipes and in-memory buffers."""

    def __init__(self, name: str) -> None:
        super().__init__(name=name, daemon=True)
        self.error: BaseException | None = None


class _Drain(_Copier):
    def __init__(self, name: str, stream: IO[bytes], chunk_size: int) -> None:
        super().__init__(name)
        self.stream = stream
        self.chunk_size = chunk_size
        self.sink = io.BytesIO()

    def run(self) -> None:
        try:
            with self.stream:
                while chunk := self.stream.read1(self.chunk_size):
                    self.sink.write(chunk)
        except Exception as e:
            self.error = e

    def getvalue(self) -> bytes:
        return self.sink.getvalue()


class _Pump(_Copier):
    def __init__(
        self, name: str, source: StdinSource, stream: IO[bytes], chunk_size: int
    ) -> None:
        super().__init__(name)
        self.source = source
        self.stream = stream
        self.chunk_size = chunk_size

    def _chunks(self) -> Iterator[bytes]:
        if isinstance(self.source, (bytes, bytearray, memoryview)):
            view = memoryview(self.source)
            for start in range(0, len(view), self.chunk_size):
                yield bytes(view[start : start + self.chunk_size])
            return
        reader: BinaryIO = self.source
        while chunk := reader.read(self.chunk_size):
            yield chunk

    def run(self) -> None:
        try:
            for chunk in self._chunks():
                self.stream.write(chunk)
                self.stream.flush()
        except BrokenPipeError:
            # The child stopped reading; whatever it did not consume is dropped.
            pass
        except Exception as e:
            self.error = e
        finally:
            try:
                self.stream.close()
            except BrokenPipeError:
                pass
            except Exception as e:
                if self.error is None:
                    self.error = e


class SubprocessRunner:
    """Runs a Request as a child process and normalizes its outcome."""

    def __init__(
        self,
        kill_signal: int = signal.SIGKILL,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.kill_signal = kill_signal
        self.chunk_size = chunk_size

    def run(
        self, request: Request, cancellation: Cancellation | None = None
    ) -> Response:
        cancellation = cancellation or Cancellation()
        reason = cancellation.error()
        if reason is not None:
            raise SpawnFailure.wrap(reason) from reason

        proc = self._spawn(request)
        logger.debug("spawned %s (pid %d)", request.path, proc.pid)

        assert proc.stdout is not None and proc.stderr is not None
        stdout = _Drain(f"procrun-stdout-{proc.pid}", proc.stdout, self.chunk_size)
        stderr = _Drain(f"procrun-stderr-{proc.pid}", proc.stderr, self.chunk_size)
        copiers: list[_Copier] = [stdout, stderr]
        if request.stdin is not None:
            assert proc.stdin is not None
            copiers.append(
                _Pump(f"procrun-stdin-{proc.pid}", request.stdin, proc.stdin, self.chunk_size)
            )
        for copier in copiers:
            copier.start()

        stop = cancellation.on_cancel(lambda: self._terminate(proc))
        try:
            outcome = self._wait(proc)
        finally:
            stop()
        if isinstance(outcome, OtherFailure):
            # Status unknown; make sure the pipes close so the copiers finish.
            self._terminate(proc)
        for copier in copiers:
            copier.join()

        outcome = _merge_copy_errors(outcome, copiers)
        logger.debug("pid %d finished: %s", proc.pid, outcome)
        return to_response(outcome, stdout.getvalue(), stderr.getvalue())

    def _spawn(self, request: Request) -> subprocess.Popen[bytes]:
        try:
            return subprocess.Popen(
                request.argv,
                cwd=request.dir,
                env=request.resolve_env(os.environ),
                stdin=subprocess.DEVNULL if request.stdin is None else subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            logger.debug("cannot spawn %s: %s", request.path, e)
            raise SpawnFailure.wrap(e) from e

    def _wait(self, proc: subprocess.Popen[bytes]) -> WaitOutcome:
        try:
            returncode = proc.wait()
        except OSError as e:
            return OtherFailure(e)
        return classify_returncode(returncode)

    def _terminate(self, proc: subprocess.Popen[bytes]) -> None:
        logger.debug("sending signal %d to pid %d", self.kill_signal, proc.pid)
        with contextlib.suppress(ProcessLookupError):
            proc.send_signal(self.kill_signal)


def _merge_copy_errors(outcome: WaitOutcome, copiers: list[_Copier]) -> WaitOutcome:
    """A copy failure only matters when the child otherwise looks successful."""
    if outcome != CleanExit(0):
        return outcome
    for copier in copiers:
        if copier.error is not None:
            return OtherFailure(copier.error)
    return outcome
