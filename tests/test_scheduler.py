"""Tests for debounced render scheduling."""

import threading

import numpy as np
import pytest

from conftest import make_solid
from core.config import EffectConfig
from core.render import RenderResult
from core.scheduler import IDLE, PROCESSING, RenderScheduler


class RecordingRenderer:
    """Render function stand-in that records calls and can be held open."""

    def __init__(self):
        self.calls = []
        self.gate = threading.Event()
        self.gate.set()
        self.entered = threading.Event()

    def __call__(self, source, config, active, flip):
        self.calls.append((config, active, flip))
        self.entered.set()
        self.gate.wait(5)
        return RenderResult(frame=np.asarray(source), executed=sorted(active), flip=flip)


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def source():
    return make_solid(4, 4)


class TestRenderScheduler:
    def test_single_request_renders(self, renderer, source):
        with RenderScheduler(renderer, delay=0.01) as sched:
            ticket = sched.request(source, EffectConfig(), {"dither"})
            assert ticket.wait(5)
        assert not ticket.cancelled
        assert ticket.result.executed == ["dither"]
        assert sched.last_result is ticket.result
        assert sched.status == IDLE

    def test_burst_collapses_to_last(self, renderer, source):
        with RenderScheduler(renderer, delay=0.2) as sched:
            tickets = [sched.request(source, EffectConfig(pixel_size=n)) for n in range(1, 6)]
            assert tickets[-1].wait(5)
        assert all(t.cancelled for t in tickets[:-1])
        assert len(renderer.calls) == 1
        assert renderer.calls[0][0].pixel_size == 5

    def test_running_render_is_not_cancelled(self, renderer, source):
        renderer.gate.clear()
        with RenderScheduler(renderer, delay=0.0) as sched:
            first = sched.request(source, EffectConfig(offset=1))
            assert renderer.entered.wait(5)
            second = sched.request(source, EffectConfig(offset=2))
            renderer.gate.set()
            assert first.wait(5) and second.wait(5)
        assert not first.cancelled and not second.cancelled
        assert [c[0].offset for c in renderer.calls] == [1, 2]

    def test_no_source_is_noop(self, renderer):
        statuses = []
        with RenderScheduler(renderer, delay=0.0, on_status=statuses.append) as sched:
            ticket = sched.request(None, EffectConfig(), {"dither"})
            assert ticket.done and ticket.cancelled
            assert sched.status == IDLE
        assert renderer.calls == []
        assert statuses == []

    def test_status_callbacks(self, renderer, source):
        statuses = []
        with RenderScheduler(renderer, delay=0.0, on_status=statuses.append) as sched:
            sched.request(source).wait(5)
        assert statuses[0] == PROCESSING
        assert statuses[-1] == IDLE

    def test_cancel_pending(self, renderer, source):
        with RenderScheduler(renderer, delay=5.0) as sched:
            ticket = sched.request(source)
            assert sched.status == PROCESSING
            assert sched.cancel_pending()
            assert ticket.cancelled
            assert sched.status == IDLE
            assert not sched.cancel_pending()
        assert renderer.calls == []

    def test_render_failure_is_recorded(self, source):
        def broken(*args):
            raise RuntimeError("boom")

        with RenderScheduler(broken, delay=0.0) as sched:
            ticket = sched.request(source)
            assert ticket.wait(5)
            assert sched.status == IDLE
        assert isinstance(ticket.error, RuntimeError)
        assert ticket.result is None

    def test_on_result_callback(self, renderer, source):
        results = []
        with RenderScheduler(renderer, delay=0.0, on_result=results.append) as sched:
            ticket = sched.request(source)
            ticket.wait(5)
        assert results == [ticket.result]

    def test_closed_scheduler_ignores_requests(self, renderer, source):
        sched = RenderScheduler(renderer, delay=0.0)
        sched.close()
        ticket = sched.request(source)
        assert ticket.cancelled
        assert renderer.calls == []

    def test_real_renderer(self, source):
        with RenderScheduler(delay=0.0) as sched:
            ticket = sched.request(source, EffectConfig(), {"crt"})
            assert ticket.wait(5)
        assert ticket.result.executed == ["crt"]
