"""Tests for serverless host detection and the inbound trace header."""

from xraytrace import lambda_runtime
from xraytrace.context.header import SamplingDecision


def test_task_root_detection(monkeypatch):
    monkeypatch.delenv("LAMBDA_TASK_ROOT", raising=False)
    assert lambda_runtime.task_root_present() is False

    monkeypatch.setenv("LAMBDA_TASK_ROOT", "/var/task")
    assert lambda_runtime.task_root_present() is True


def test_inbound_header_is_read_on_each_call(monkeypatch):
    monkeypatch.setenv("_X_AMZN_TRACE_ID", "Root=1-5759e988-bd862e3fe1be46a994272793;Sampled=1")
    first = lambda_runtime.inbound_header()
    monkeypatch.setenv("_X_AMZN_TRACE_ID", "Root=1-5759e988-00000000000000000000000a;Sampled=0")
    second = lambda_runtime.inbound_header()

    assert first.trace_id == "1-5759e988-bd862e3fe1be46a994272793"
    assert first.sampling_decision is SamplingDecision.SAMPLED
    assert second.trace_id == "1-5759e988-00000000000000000000000a"
    assert second.sampling_decision is SamplingDecision.NOT_SAMPLED


def test_inbound_header_missing_or_malformed(monkeypatch):
    monkeypatch.delenv("_X_AMZN_TRACE_ID", raising=False)
    assert lambda_runtime.inbound_header() is None

    monkeypatch.setenv("_X_AMZN_TRACE_ID", "Root=abc;garbage")
    assert lambda_runtime.inbound_header() is None


def test_inbound_header_custom_variable(monkeypatch):
    monkeypatch.setenv("MY_TRACE_HEADER", "Root=abc;Parent=def")

    assert lambda_runtime.inbound_header("MY_TRACE_HEADER").parent_id == "def"


def test_initialize_outside_host_does_nothing(monkeypatch, tmp_path):
    monkeypatch.delenv("LAMBDA_TASK_ROOT", raising=False)

    assert lambda_runtime.initialize(str(tmp_path / "marker")) is False
    assert not (tmp_path / "marker").exists()


def test_initialize_inside_host_writes_marker(monkeypatch, tmp_path):
    monkeypatch.setenv("LAMBDA_TASK_ROOT", "/var/task")

    assert lambda_runtime.initialize(str(tmp_path / "marker")) is True
    assert (tmp_path / "marker" / "initialized").is_file()
