"""Tests for the X-Amzn-Trace-Id header codec."""

import pytest

from xraytrace.context import Context
from xraytrace.context.header import Header, SamplingDecision, parse_header, render_header
from xraytrace.errors import HeaderParseError
from xraytrace.ids import SegmentId, TraceId


def test_parse_with_parent():
    header = parse_header("Root=1-5759e988-bd862e3fe1be46a994272793;Parent=53995c3f42cd8ad8;Sampled=1")

    assert header == Header(
        trace_id="1-5759e988-bd862e3fe1be46a994272793",
        parent_id="53995c3f42cd8ad8",
        sampling_decision=SamplingDecision.SAMPLED,
    )


def test_parse_without_parent():
    header = parse_header("Root=1-5759e988-bd862e3fe1be46a994272793;Sampled=1")

    assert header.trace_id == "1-5759e988-bd862e3fe1be46a994272793"
    assert header.parent_id is None
    assert header.sampling_decision is SamplingDecision.SAMPLED


def test_field_order_is_not_significant():
    header = parse_header("Sampled=0;Parent=53995c3f42cd8ad8;Root=1-5759e988-bd862e3fe1be46a994272793")

    assert header.trace_id == "1-5759e988-bd862e3fe1be46a994272793"
    assert header.parent_id == "53995c3f42cd8ad8"
    assert header.sampling_decision is SamplingDecision.NOT_SAMPLED


@pytest.mark.parametrize(
    "value, expected",
    [
        ("1", SamplingDecision.SAMPLED),
        ("0", SamplingDecision.NOT_SAMPLED),
        ("?", SamplingDecision.REQUESTED),
        ("yes", SamplingDecision.UNKNOWN),
        ("", SamplingDecision.UNKNOWN),
    ],
)
def test_sampling_decisions(value, expected):
    assert parse_header(f"Root=abc;Sampled={value}").sampling_decision is expected


def test_missing_sampled_is_unknown():
    assert parse_header("Root=abc").sampling_decision is SamplingDecision.UNKNOWN


def test_missing_root_is_not_defaulted():
    assert parse_header("Parent=53995c3f42cd8ad8").trace_id == ""


def test_entry_without_equals_fails():
    with pytest.raises(HeaderParseError):
        parse_header("Root=abc;garbage")


def test_self_is_dropped_and_unknown_keys_are_kept():
    header = parse_header("Root=abc;Self=1-67891233-abcdef012345678912345678;Lineage=a87bd80c:1;Foo=bar=baz")

    assert "Self" not in header.additional_data
    assert header.additional_data == {"Lineage": "a87bd80c:1", "Foo": "bar=baz"}


def test_trailing_separator_is_tolerated():
    assert parse_header("Root=abc;").trace_id == "abc"


def test_render_understood_fields():
    text = "Root=1-5759e988-bd862e3fe1be46a994272793;Parent=53995c3f42cd8ad8;Sampled=1"

    assert render_header(parse_header(text)) == text
    assert str(parse_header(text)) == text


def test_render_skips_unset_fields():
    assert Header(trace_id="abc").render() == "Root=abc"


def test_header_from_context():
    ctx = Context(
        trace_id=TraceId.from_string("1-5759e988-bd862e3fe1be46a994272793"),
        segment_id=SegmentId.from_string("53995c3f42cd8ad8"),
    )

    header = Header.from_context(ctx, SamplingDecision.SAMPLED)

    assert header.render() == "Root=1-5759e988-bd862e3fe1be46a994272793;Parent=53995c3f42cd8ad8;Sampled=1"
