"""
GlitchCombo — Render Scheduler
Debounced, cancellable re-rendering for interactive editing.

Every change to the image, stage set, or config calls request(). The request
waits a short quiet period; a newer request arriving in that window cancels
and replaces it. A render that has already started always runs to the end,
and whatever was requested meanwhile runs next.
"""

import logging
import threading
import time
from dataclasses import dataclass

from core.config import EffectConfig
from core.render import render_image
from effects import normalize_stages

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 0.02

IDLE = "idle"
PROCESSING = "processing"


class RenderTicket:
    """Handle for one requested render."""

    def __init__(self, ticket_id: int):
        self.id = ticket_id
        self.cancelled = False
        self.started = False
        self.result = None
        self.error = None
        self._done = threading.Event()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the ticket finishes or is cancelled. False on timeout."""
        return self._done.wait(timeout)

    def _finish(self):
        self._done.set()

    def __repr__(self):
        state = "cancelled" if self.cancelled else "done" if self.done else \
            "running" if self.started else "pending"
        return f"<RenderTicket {self.id} {state}>"


@dataclass
class _Job:
    ticket: RenderTicket
    source: object
    config: EffectConfig
    active: frozenset
    flip: bool
    due: float


class RenderScheduler:
    def __init__(self, render_fn=render_image, delay: float = DEBOUNCE_SECONDS,
                 on_status=None, on_result=None):
        self._render_fn = render_fn
        self.delay = max(0.0, float(delay))
        self._on_status = on_status
        self._on_result = on_result

        self._cond = threading.Condition()
        self._pending: _Job | None = None
        self._running: _Job | None = None
        self._closed = False
        self._next_id = 0
        self._status = IDLE
        self.last_result = None

        self._worker = threading.Thread(target=self._run, name="render-scheduler", daemon=True)
        self._worker.start()

    # --- public API ---

    @property
    def status(self) -> str:
        return self._status

    def request(self, source, config: EffectConfig | None = None, active=(),
                flip: bool = False) -> RenderTicket:
        """Queue a render, replacing any request that has not started yet."""
        active = normalize_stages(active)
        config = config or EffectConfig()
        with self._cond:
            self._next_id += 1
            ticket = RenderTicket(self._next_id)

            if source is None or self._closed:
                ticket.cancelled = True
                ticket._finish()
                logger.debug("Render request %d ignored (%s)", ticket.id,
                             "scheduler closed" if self._closed else "no input")
                return ticket

            if self._pending is not None:
                self._cancel_locked(self._pending.ticket)
            self._pending = _Job(
                ticket=ticket, source=source, config=config, active=active,
                flip=bool(flip), due=time.monotonic() + self.delay,
            )
            self._set_status_locked(PROCESSING)
            self._cond.notify_all()
        return ticket

    def cancel_pending(self) -> bool:
        """Cancel the queued (not started) request, if any."""
        with self._cond:
            if self._pending is None:
                return False
            self._cancel_locked(self._pending.ticket)
            self._pending = None
            if self._running is None:
                self._set_status_locked(IDLE)
            self._cond.notify_all()
        return True

    def close(self, timeout: float | None = 5.0):
        with self._cond:
            self._closed = True
            if self._pending is not None:
                self._cancel_locked(self._pending.ticket)
                self._pending = None
                if self._running is None:
                    self._set_status_locked(IDLE)
            self._cond.notify_all()
        self._worker.join(timeout)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # --- internals ---

    def _cancel_locked(self, ticket: RenderTicket):
        ticket.cancelled = True
        ticket._finish()
        logger.debug("Render request %d cancelled", ticket.id)

    def _set_status_locked(self, status: str):
        # Callback runs under the (reentrant) lock so transitions arrive in order
        if status == self._status:
            return
        self._status = status
        if self._on_status is not None:
            self._on_status(status)

    def _next_job(self) -> _Job | None:
        with self._cond:
            while not self._closed:
                job = self._pending
                if job is None:
                    self._cond.wait()
                    continue
                remaining = job.due - time.monotonic()
                if remaining > 0:
                    self._cond.wait(remaining)
                    continue
                self._pending = None
                self._running = job
                job.ticket.started = True
                return job
        return None

    def _run(self):
        while True:
            job = self._next_job()
            if job is None:
                return

            ticket = job.ticket
            try:
                ticket.result = self._render_fn(job.source, job.config, job.active, job.flip)
            except Exception as e:
                ticket.error = e
                logger.exception("Render %d failed", ticket.id)

            if ticket.result is not None:
                self.last_result = ticket.result
                if self._on_result is not None:
                    self._on_result(ticket.result)

            with self._cond:
                self._running = None
                if self._pending is None:
                    self._set_status_locked(IDLE)
            ticket._finish()
