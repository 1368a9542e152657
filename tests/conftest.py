"""
Shared fakes for the robot_nav tests.
Run with: python -m pytest tests/ -v
"""

import os
import sys

import pytest

# Ensure the package is importable without pip install
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), ".."))


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, dt):
        self.now += dt


class FakeSerial:
    """Enough of serial.Serial for the link, GPS and motor code."""

    def __init__(self, incoming=b""):
        self.is_open = True
        self._rx = bytearray(incoming)
        self.written = []

    def feed(self, data):
        self._rx += data

    @property
    def in_waiting(self):
        return len(self._rx)

    def read(self, size=1):
        data = bytes(self._rx[:size])
        del self._rx[:size]
        return data

    def readline(self):
        idx = self._rx.find(b"\n")
        end = len(self._rx) if idx < 0 else idx + 1
        return self.read(end)

    def write(self, data):
        self.written.append(data)
        return len(data)

    def close(self):
        self.is_open = False

    def text(self):
        return b"".join(self.written).decode()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_serial():
    return FakeSerial()
