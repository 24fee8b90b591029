"""Background glyph import with cooperative cancellation.

Turning a font file into a character collection is slow, so it runs off
the caller's thread.  The font parsing and rasterisation itself is
delegated to a :class:`GlyphRasterizer`; this module owns the job loop
and its message protocol:

* glyphs are rendered in fixed-size chunks;
* a :class:`Progress` message follows every chunk;
* between chunks the loop yields and then checks whether its job was
  cancelled; it also checks on entry and before publishing the result;
* every job ends with exactly one terminal message: :class:`Result`,
  :class:`Error` or :class:`Cancelled`.

:func:`run_import` is the synchronous generator form of the loop;
:class:`FontImportWorker` drives it from a daemon thread.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections import Counter
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Protocol, Union

import numpy as np

from chargen.glyphs.errors import DimensionMismatchError, InvalidArgumentError
from chargen.glyphs.grid import Grid, as_grid, blank
from chargen.glyphs.transforms import center

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Requests and messages
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RasterOptions:
    """How glyphs are rendered into cells."""

    char_width: int = 8
    char_height: int = 8
    start_code: int = 32
    end_code: int = 126
    font_size: float = 8.0
    threshold: int = 128
    """Darkness (0-255) at which a rendered pixel becomes foreground."""
    center_glyphs: bool = False
    baseline_offset: int = 0

    def __post_init__(self) -> None:
        if self.char_width < 1 or self.char_height < 1:
            raise InvalidArgumentError(
                f"Cell size must be positive (got {self.char_width}x{self.char_height})."
            )
        if self.start_code < 0 or self.end_code < self.start_code:
            raise InvalidArgumentError(
                f"Invalid code point range {self.start_code}..{self.end_code}."
            )
        if self.font_size <= 0:
            raise InvalidArgumentError(f"Font size must be positive (got {self.font_size}).")

    @property
    def total(self) -> int:
        return self.end_code - self.start_code + 1


@dataclass(frozen=True)
class ImportRequest:
    job_id: str
    font_data: bytes
    options: RasterOptions = field(default_factory=RasterOptions)


@dataclass(frozen=True)
class Progress:
    job_id: str
    processed: int
    total: int

    terminal = False


@dataclass(frozen=True)
class Result:
    job_id: str
    collection: list[Grid]
    source_name: str
    found_count: int
    missing_count: int

    terminal = True


@dataclass(frozen=True)
class Error:
    job_id: str
    message: str

    terminal = True


@dataclass(frozen=True)
class Cancelled:
    job_id: str

    terminal = True


ImportMessage = Union[Progress, Result, Error, Cancelled]


class GlyphRasterizer(Protocol):
    """Font backend: parses font data and renders single code points."""

    def family_name(self, font_data: bytes) -> str:
        """Display name of the font."""
        ...

    def render(self, font_data: bytes, code: int, options: RasterOptions) -> Grid | None:
        """Render one code point into a ``(char_height, char_width)`` grid.

        Returns ``None`` when the font has no glyph for *code*.
        """
        ...


# ---------------------------------------------------------------------------
# Job loop
# ---------------------------------------------------------------------------


def _yield_thread() -> None:
    time.sleep(0)


def _render_glyph(
    rasterizer: GlyphRasterizer, request: ImportRequest, code: int,
) -> Grid:
    options = request.options
    rendered = rasterizer.render(request.font_data, code, options)
    if rendered is None:
        return blank(options.char_width, options.char_height)
    glyph = as_grid(rendered)
    if glyph.shape != (options.char_height, options.char_width):
        raise DimensionMismatchError(
            f"Glyph {code} rendered as {glyph.shape[1]}x{glyph.shape[0]}, "
            f"expected {options.char_width}x{options.char_height}."
        )
    if options.center_glyphs:
        glyph = center(glyph)
    return glyph


def run_import(
    request: ImportRequest,
    rasterizer: GlyphRasterizer,
    chunk_size: int | None = None,
    is_cancelled: Callable[[], bool] = lambda: False,
    pause: Callable[[], None] = _yield_thread,
    blank_code_threshold: int | None = None,
) -> Iterator[ImportMessage]:
    """Render the requested code points, yielding protocol messages.

    Arguments are checked when this is called, not when iteration starts,
    so a bad ``chunk_size`` raises here.  The last message yielded is
    always terminal.
    """
    if chunk_size is None or blank_code_threshold is None:
        from chargen.config.settings import get_settings

        importer = get_settings().importer
        if chunk_size is None:
            chunk_size = importer.chunk_size
        if blank_code_threshold is None:
            blank_code_threshold = importer.blank_code_threshold
    _check_chunk_size(chunk_size)
    return _import_messages(
        request, rasterizer, chunk_size, is_cancelled, pause, blank_code_threshold,
    )


def _check_chunk_size(chunk_size: int) -> None:
    if chunk_size < 1:
        raise InvalidArgumentError(f"Chunk size must be positive (got {chunk_size}).")


def _import_messages(
    request: ImportRequest,
    rasterizer: GlyphRasterizer,
    chunk_size: int,
    is_cancelled: Callable[[], bool],
    pause: Callable[[], None],
    blank_code_threshold: int,
) -> Iterator[ImportMessage]:
    job_id = request.job_id
    options = request.options

    try:
        if is_cancelled():
            logger.info("Import job %s cancelled before start", job_id)
            yield Cancelled(job_id)
            return

        source_name = rasterizer.family_name(request.font_data) or "Unknown Font"
        collection: list[Grid] = []
        found = missing = 0

        for chunk_start in range(options.start_code, options.end_code + 1, chunk_size):
            chunk_end = min(chunk_start + chunk_size, options.end_code + 1)
            for code in range(chunk_start, chunk_end):
                glyph = _render_glyph(rasterizer, request, code)
                collection.append(glyph)
                if np.any(glyph):
                    found += 1
                elif code >= blank_code_threshold:
                    missing += 1

            yield Progress(job_id, len(collection), options.total)

            if chunk_end <= options.end_code:
                pause()
                if is_cancelled():
                    logger.info("Import job %s cancelled after %d glyphs", job_id, len(collection))
                    yield Cancelled(job_id)
                    return

        if is_cancelled():
            logger.info("Import job %s cancelled before result", job_id)
            yield Cancelled(job_id)
            return

        logger.info(
            "Import job %s finished: %d glyphs from %s (%d found, %d missing)",
            job_id, len(collection), source_name, found, missing,
        )
        yield Result(job_id, collection, source_name, found, missing)
    except Exception as exc:
        logger.exception("Import job %s failed", job_id)
        yield Error(job_id, str(exc) or type(exc).__name__)


# ---------------------------------------------------------------------------
# Worker thread
# ---------------------------------------------------------------------------


class FontImportWorker:
    """Runs import jobs one at a time on a daemon thread.

    Messages from every job are delivered in order on :attr:`messages`.
    Only queued or running jobs can be cancelled.
    """

    def __init__(self, rasterizer: GlyphRasterizer, chunk_size: int | None = None) -> None:
        if chunk_size is not None:
            _check_chunk_size(chunk_size)
        self.rasterizer = rasterizer
        self.chunk_size = chunk_size
        self.messages: queue.Queue[ImportMessage] = queue.Queue()
        self._requests: queue.Queue[ImportRequest | None] = queue.Queue()
        self._active: Counter[str] = Counter()
        self._cancelled: set[str] = set()
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._stop_requested = False

    def __enter__(self) -> FontImportWorker:
        self.start()
        return self

    def __exit__(self, *exc: object) -> None:
        self.stop()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_requested = False
        self._thread = threading.Thread(
            target=self._run, name="chargen-font-import", daemon=True,
        )
        self._thread.start()
        logger.debug("Font import worker started")

    def stop(self, timeout: float | None = 5.0) -> None:
        """Finish queued jobs, then stop the thread.

        If the thread is still busy after *timeout* it is kept, and a
        later :meth:`start` will not launch a second one.
        """
        if self._thread is None:
            return
        if not self._stop_requested:
            self._requests.put(None)
            self._stop_requested = True
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("Font import worker still busy after %ss", timeout)
            return
        self._thread = None
        logger.debug("Font import worker stopped")

    def submit(self, request: ImportRequest) -> None:
        self.start()
        with self._lock:
            self._active[request.job_id] += 1
        self._requests.put(request)

    def cancel(self, job_id: str) -> bool:
        """Ask a queued or running job to stop at its next check.

        Returns ``False`` (and does nothing) for ids with no pending job.
        """
        with self._lock:
            if not self._active[job_id]:
                return False
            self._cancelled.add(job_id)
            return True

    def is_cancelled(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self._cancelled

    def wait(self, job_id: str, timeout: float = 10.0) -> list[ImportMessage]:
        """Collect messages until *job_id*'s terminal message arrives.

        Messages of other jobs received in the meantime are included.
        Raises ``TimeoutError`` if the job does not finish in time.
        """
        deadline = time.monotonic() + timeout
        received: list[ImportMessage] = []
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TimeoutError(f"Import job {job_id} did not finish in {timeout}s")
            try:
                message = self.messages.get(timeout=remaining)
            except queue.Empty:
                continue
            received.append(message)
            if message.job_id == job_id and message.terminal:
                return received

    def _finish(self, job_id: str) -> None:
        with self._lock:
            self._active[job_id] -= 1
            if self._active[job_id] <= 0:
                del self._active[job_id]
            self._cancelled.discard(job_id)

    def _run(self) -> None:
        while True:
            request = self._requests.get()
            if request is None:
                break
            job_id = request.job_id
            logger.info("Import job %s started", job_id)
            for message in run_import(
                request,
                self.rasterizer,
                chunk_size=self.chunk_size,
                is_cancelled=lambda: self.is_cancelled(job_id),
            ):
                if message.terminal:
                    self._finish(job_id)
                self.messages.put(message)
