"""Tests for the @capture decorator."""

import asyncio

import pytest

from xraytrace import capture


def test_capture_records_a_subsegment(recorder, exporter):
    @capture(recorder=recorder)
    def add(a: int, b: int) -> int:
        return a + b

    assert add(2, 3) == 5
    assert len(exporter.documents) == 1
    subsegment = exporter.documents[0]
    assert subsegment.name.endswith("add")
    assert subsegment.in_progress is False


def test_capture_custom_name_and_namespace(recorder, exporter):
    @capture("fetch_orders", recorder=recorder, namespace="remote")
    def fetch():
        return []

    fetch()

    assert exporter.documents[0].name == "fetch_orders"
    assert exporter.documents[0].namespace == "remote"


def test_capture_nests_under_active_segment(recorder, exporter):
    @capture("inner", recorder=recorder)
    def inner():
        return recorder.current()

    with recorder.begin_segment("web") as open_segment:
        ctx = inner()

    assert ctx.parent_id == open_segment.context.segment_id
    assert exporter.documents[0].parent_id == open_segment.context.segment_id


def test_capture_records_and_reraises_errors(recorder, exporter):
    @capture("failing", recorder=recorder)
    def failing():
        raise KeyError("missing")

    with pytest.raises(KeyError):
        failing()

    subsegment = exporter.documents[0]
    assert subsegment.fault is True
    assert subsegment.cause.exceptions[0].type == "KeyError"
    assert recorder.current() is None


def test_capture_async_function(recorder, exporter):
    @capture("async_work", recorder=recorder)
    async def work(value):
        await asyncio.sleep(0)
        return value * 2

    assert asyncio.run(work(21)) == 42
    assert exporter.documents[0].name == "async_work"


def test_capture_preserves_metadata(recorder):
    @capture(recorder=recorder)
    def documented():
        """Docstring."""

    assert documented.__name__ == "documented"
    assert documented.__doc__ == "Docstring."
