import sys
import threading
import weakref
from collections.abc import Callable
from multiprocessing import Pipe, Process
from multiprocessing.connection import Connection
from types import TracebackType
from typing import Self, TypeAlias

import regex as re
import tqdm
from cachetools import LRUCache

from .merge_engine import run_bpe
from .trace import Trace

TraceKey: TypeAlias = tuple[str, int | None]

LEADING_INT_PATTERN = re.compile(r"\s*([+-]?[0-9]+)")


def normalize_max_merges(raw: int | str | None) -> int | None:
    """
    Turn a user supplied merge limit into a valid bound.

    Strings are read like a form field: leading whitespace and sign, then the leading digit run,
    so "3.5" and "5 merges" give 3 and 5.

    Args:
        raw (int | str | None): Whatever the user typed, possibly empty.

    Returns:
        int | None: A positive limit, or None (unbounded) for anything empty, non-numeric or non-positive.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        match = LEADING_INT_PATTERN.match(raw)
        if match is None:
            return None
        raw = int(match.group(1))
    if not isinstance(raw, int) or raw <= 0:
        return None
    return raw


def _run_job(conn: Connection, runner: Callable[..., Trace], key: TraceKey, byte_level: bool) -> None:
    try:
        conn.send((True, runner(*key, byte_level=byte_level)))
    except Exception as e:
        conn.send((False, e))
    finally:
        conn.close()


def _watch_job(
    worker_ref: "weakref.ref[TraceWorker]", generation: int, key: TraceKey, process: Process, conn: Connection
) -> None:
    try:
        ok, payload = conn.recv()
    except (EOFError, OSError):
        ok, payload = False, None
    finally:
        conn.close()
    process.join()
    if payload is None:
        payload = ChildProcessError(f"Trace job process exited with code {process.exitcode} before returning")

    # Only a weak reference, so an unclosed worker can still be collected while its job runs.
    worker = worker_ref()
    if worker is None:
        return
    if ok:
        worker._on_result(generation, key, payload)
    else:
        worker._on_error(generation, payload)


class TraceWorker:
    """
    Computes traces off the calling thread, keeping only the newest request.

    Each submission replaces the one before it: an unfinished job is abandoned by terminating
    its process, and a late result from an older submission is never adopted. A failed job,
    including one whose process died, leaves the previously adopted trace in place and is
    reported through `last_error`.

    Use it as a context manager or call `close()` so an in-flight job process is stopped.
    """

    def __init__(
        self,
        byte_level: bool = True,
        cache_size: int = 128,
        runner: Callable[..., Trace] = run_bpe,
    ) -> None:
        self.byte_level = byte_level
        self.runner = runner
        self.cache: LRUCache = LRUCache(maxsize=cache_size)

        self.result: Trace | None = None
        self.last_error: BaseException | None = None

        self._lock = threading.Lock()
        self._done = threading.Event()
        self._done.set()
        self._generation = 0
        self._process: Process | None = None

    @property
    def busy(self) -> bool:
        return not self._done.is_set()

    @property
    def job_pid(self) -> int | None:
        process = self._process
        return process.pid if process is not None and process.is_alive() else None

    def submit(self, text: str, max_merges: int | str | None = None) -> None:
        text = text.strip()
        key: TraceKey = (text, normalize_max_merges(max_merges))

        with self._lock:
            self._generation += 1
            generation = self._generation
            stale_process, self._process = self._process, None

            if not text:
                self.result = None
                self.last_error = None
                self._done.set()
            elif key in self.cache:
                self.result = self.cache[key]
                self.last_error = None
                self._done.set()
            else:
                self._done.clear()
                self._process = self._start_job(generation, key)

        if stale_process is not None:
            self._stop(stale_process)

    def wait(self, timeout: float | None = None) -> bool:
        return self._done.wait(timeout)

    def close(self) -> None:
        with self._lock:
            self._generation += 1
            process, self._process = self._process, None
            self._done.set()
        if process is not None:
            self._stop(process)

    def _start_job(self, generation: int, key: TraceKey) -> Process:
        recv_conn, send_conn = Pipe(duplex=False)
        process = Process(target=_run_job, args=(send_conn, self.runner, key, self.byte_level), daemon=True)
        process.start()
        # Only the child may hold the sending end, so its death shows up as EOF here.
        send_conn.close()
        threading.Thread(
            target=_watch_job, args=(weakref.ref(self), generation, key, process, recv_conn), daemon=True
        ).start()
        return process

    @staticmethod
    def _stop(process: Process) -> None:
        if process.is_alive():
            process.terminate()
        process.join()

    def _on_result(self, generation: int, key: TraceKey, trace: Trace) -> None:
        with self._lock:
            self.cache[key] = trace
            if generation != self._generation:
                return
            self.result = trace
            self.last_error = None
            self._done.set()

    def _on_error(self, generation: int, error: BaseException) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self.last_error = error
            self._done.set()
        tqdm.tqdm.write(f"Trace job failed, keeping previous result: {error!r}", file=sys.stderr)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def __del__(self) -> None:
        process = getattr(self, "_process", None)
        if process is not None and process.is_alive():
            process.terminate()
