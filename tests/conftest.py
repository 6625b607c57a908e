"""Shared pytest fixtures and test doubles."""

import os
from concurrent.futures import Future

import pytest

# Widget tests run without a display.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from tangerine.core.context import DocumentSnapshot
from tangerine.core.core import AutocompleteCore


class FakeHandle:
    def __init__(self, scheduler, when, callback, args):
        self.scheduler = scheduler
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Manually advanced clock with the asyncio call_later/call_soon_threadsafe API."""

    def __init__(self):
        self.now = 0.0
        self.timers = []
        self.ready = []

    def call_later(self, delay, callback, *args):
        handle = FakeHandle(self, self.now + delay, callback, args)
        self.timers.append(handle)
        return handle

    def call_soon_threadsafe(self, callback, *args):
        self.ready.append((callback, args))

    def pending_timers(self):
        return [t for t in self.timers if not t.cancelled]

    def run_ready(self):
        while self.ready:
            callback, args = self.ready.pop(0)
            callback(*args)

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            self.run_ready()
            due = sorted((t for t in self.pending_timers() if t.when <= target), key=lambda t: t.when)
            if not due:
                break
            handle = due[0]
            self.timers.remove(handle)
            self.now = handle.when
            handle.callback(*handle.args)
        self.now = target
        self.run_ready()


class FakeEditor:
    """A single-buffer editor holding lines and a cursor."""

    def __init__(self, text="", cursor=(0, 0), path="/project/main.rs", language="rust",
                 kind="file", root="/project"):
        self.lines = text.split("\n")
        self.cursor = cursor
        self.path = path
        self.language = language
        self.kind = kind
        self.root = root

    @property
    def text(self):
        return "\n".join(self.lines)

    def type(self, chars):
        row, col = self.cursor
        line = self.lines[row]
        self.lines[row] = line[:col] + chars + line[col:]
        self.cursor = (row, col + len(chars))

    def snapshot(self):
        return DocumentSnapshot(
            text=self.text,
            cursor_line=self.cursor[0],
            cursor_col=self.cursor[1],
            language=self.language,
            path=self.path,
            kind=self.kind,
        )

    def get_line(self, row):
        return self.lines[row]

    def set_line(self, row, text):
        self.lines[row] = text

    def set_cursor(self, row, col):
        self.cursor = (row, col)

    def project_root(self):
        return self.root


class FakeOverlay:
    def __init__(self):
        self.rendered = []
        self.removed = []
        self.modals = []
        self.notifications = []
        self._next = 0

    @property
    def visible(self):
        return [h for h in self.rendered if h not in self.removed]

    def render(self, anchor, text):
        self._next += 1
        handle = ("overlay", self._next, anchor, text)
        self.rendered.append(handle)
        return handle

    def remove(self, handle):
        self.removed.append(handle)

    def show_modal(self, title, body):
        self.modals.append((title, body))

    def notify(self, message, error=False):
        self.notifications.append((message, error))


class FakeClient:
    """Records dispatches and hands back futures the test resolves by hand."""

    def __init__(self):
        self.calls = []
        self.submitted = []

    def dispatch(self, payload, mode):
        future = Future()
        self.calls.append((payload, mode, future))
        return future

    def submit(self, fn, *args):
        """Run background work inline; its completion still goes through the scheduler."""
        future = Future()
        self.submitted.append((fn, args))
        try:
            future.set_result(fn(*args))
        except Exception as e:
            future.set_exception(e)
        return future

    def resolve(self, value, index=-1):
        self.calls[index][2].set_result(value)

    def fail(self, error, index=-1):
        self.calls[index][2].set_exception(error)


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def editor():
    return FakeEditor()


@pytest.fixture
def overlay():
    return FakeOverlay()


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def core(editor, client, overlay, scheduler):
    return AutocompleteCore(
        editor, client, overlay, scheduler,
        debounce_delay=4.0, suppress_duration=1.0, auto_trigger=True,
    )
