"""Shared fixtures: a recorder wired to an in-memory exporter."""

import threading

import pytest

from xraytrace.config import RecorderConfig
from xraytrace.tracer.recorder import Recorder


class InMemoryExporter:
    """Collects sent documents instead of putting them on the wire."""

    def __init__(self) -> None:
        self.documents = []
        self.shut_down = False
        self._lock = threading.Lock()

    def send(self, document) -> bool:
        with self._lock:
            self.documents.append(document)
        return True

    def shutdown(self) -> None:
        self.shut_down = True


@pytest.fixture
def exporter():
    return InMemoryExporter()


@pytest.fixture
def recorder(exporter, monkeypatch):
    monkeypatch.delenv("_X_AMZN_TRACE_ID", raising=False)
    return Recorder(RecorderConfig(), exporter=exporter)
