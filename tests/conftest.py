"""
Shared fixtures: an in-memory upstream and a manually advanced clock.
"""
import copy
import threading
import time
from collections import Counter
from datetime import datetime, timedelta, timezone

import pytest
import requests

from activity_feed.client import FeedClient


class FakeTransport:
    """
    Stands in for HTTPTransport.

    routes: path -> JSON payload, or an exception instance to raise.
    gates: path -> threading.Event the request blocks on before answering.
    delays: path -> seconds to sleep before answering.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.gates = {}
        self.delays = {}
        self.calls = Counter()
        self._lock = threading.Lock()

    def get_json(self, path):
        with self._lock:
            self.calls[path] += 1

        gate = self.gates.get(path)
        if gate is not None:
            gate.wait(timeout=5)
        delay = self.delays.get(path)
        if delay:
            time.sleep(delay)

        if path not in self.routes:
            raise requests.HTTPError(f"404 Not Found: {path}")
        payload = self.routes[path]
        if isinstance(payload, Exception):
            raise payload
        return copy.deepcopy(payload)


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, milliseconds):
        self.now += timedelta(milliseconds=milliseconds)


def _wait_until(predicate, timeout=5.0):
    """Poll until predicate() is true; fail the test on timeout."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            pytest.fail("condition not reached in time")
        time.sleep(0.005)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def wait_until():
    return _wait_until


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def transport():
    """Two users with one post each; post 1 has two comments, post 2 none."""
    return FakeTransport({
        "users": {"1": "Jane Doe", "2": "John  Smith"},
        "users/1/posts": [{"id": 1, "content": "first"}],
        "users/2/posts": [{"id": 2, "content": "second"}],
        "posts/1/comments": [
            {"id": 10, "postId": 1, "body": "nice"},
            {"id": 11, "postId": 1, "body": "agreed"},
        ],
        "posts/2/comments": [],
    })


@pytest.fixture
def client(transport, clock):
    return FeedClient(transport, clock=clock)
