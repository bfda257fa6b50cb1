from __future__ import annotations

import io
import logging
from datetime import datetime, timezone

import pytest

from pcap_analyzer import (
    AnalysisFailed,
    AnalyzerConfig,
    CaptureAnalysis,
    DecodedPacket,
    MalformedContainer,
    TruncatedFrame,
    analyze,
    analyze_path,
)

A = "10.0.0.1"
B = "10.0.0.2"


def _fixed_clock():
    return datetime(2024, 5, 1, 12, 30, 15, 123456, tzinfo=timezone.utc)


def test_scenario_a_three_tcp_frames(build_pcap, ipv4_frame):
    result = analyze(io.BytesIO(build_pcap([ipv4_frame(A, B, proto=6)] * 3)))

    assert result.total_packets == 3
    assert result.packet_details == [DecodedPacket(A, B, "TCP", 34)] * 3
    assert result.threats == []
    assert result.partial is False


def test_scenario_b_flood_on_one_connection(build_pcap, ipv4_frame):
    result = analyze(io.BytesIO(build_pcap([ipv4_frame(A, B)] * 150)))

    (finding,) = result.threats
    assert finding.type == "Potential DDoS"
    assert f"{A}->{B}" in finding.description
    assert "150" in finding.description


def test_scenario_c_scan_without_flood(build_pcap, ipv4_frame):
    frames = [ipv4_frame(A, f"192.168.0.{i}") for i in range(1, 26)]
    result = analyze(io.BytesIO(build_pcap(frames)))

    (finding,) = result.threats
    assert finding.type == "Potential Port Scan"
    assert finding.subject == A
    assert finding.observed == 25
    assert result.total_packets == 25


def test_scenario_d_short_frame_counted_not_detailed(build_pcap, ipv4_frame):
    frames = [b"\x00" * 10, ipv4_frame(A, B), b"\x00" * 12 + b"\x08\x06" + b"\x00" * 28]
    run = CaptureAnalysis()
    result = run.run(io.BytesIO(build_pcap(frames)))

    assert result.total_packets == 3
    assert len(result.packet_details) == 1
    assert run.skipped == {"too_short": 1, "non_ipv4": 1}
    assert run.metrics() == {
        "frames_read": 3,
        "ipv4_decoded": 1,
        "skipped_non_ipv4": 1,
        "skipped_too_short": 1,
    }


def test_scenario_e_truncation_fails_but_state_is_kept(build_pcap, ipv4_frame):
    data = build_pcap([ipv4_frame(A, B)] * 4)[:-5]
    run = CaptureAnalysis()

    with pytest.raises(AnalysisFailed) as excinfo:
        run.run(io.BytesIO(data))

    assert isinstance(excinfo.value.cause, TruncatedFrame)
    assert excinfo.value.__cause__ is excinfo.value.cause
    assert excinfo.value.frames_processed == 3
    assert run.total_packets == 3
    assert len(run.packet_details) == 3
    assert run.aggregator.observed == 3


def test_partial_policy_returns_valid_prefix(build_pcap, ipv4_frame):
    data = build_pcap([ipv4_frame(A, B)] * 102 + [ipv4_frame(B, A)])[:-1]
    result = analyze(io.BytesIO(data), AnalyzerConfig(truncation_policy="partial"))

    assert result.partial is True
    assert result.total_packets == 102
    assert [t.type for t in result.threats] == ["Potential DDoS"]
    assert result.to_dict()["partial"] is True


def test_partial_policy_on_complete_capture_is_not_partial(build_pcap, ipv4_frame):
    result = analyze(io.BytesIO(build_pcap([ipv4_frame(A, B)])), AnalyzerConfig(truncation_policy="partial"))
    assert result.partial is False
    assert "partial" not in result.to_dict()


def test_bad_header_fails_before_any_frame():
    run = CaptureAnalysis()
    with pytest.raises(AnalysisFailed) as excinfo:
        run.run(io.BytesIO(b"not a capture at all, clearly"))
    assert isinstance(excinfo.value.cause, MalformedContainer)
    assert excinfo.value.frames_processed == 0
    assert run.total_packets == 0


def test_header_failure_ignores_partial_policy():
    with pytest.raises(AnalysisFailed):
        analyze(io.BytesIO(b""), AnalyzerConfig(truncation_policy="partial"))


def test_empty_capture_is_success(build_pcap):
    result = analyze(io.BytesIO(build_pcap([])))
    assert result.total_packets == 0
    assert result.packet_details == []
    assert result.threats == []


def test_run_is_single_use(build_pcap, ipv4_frame):
    run = CaptureAnalysis()
    run.run(io.BytesIO(build_pcap([ipv4_frame(A, B)])))
    with pytest.raises(RuntimeError):
        run.run(io.BytesIO(build_pcap([ipv4_frame(A, B)])))


def test_runs_do_not_share_state(build_pcap, ipv4_frame):
    first = analyze(io.BytesIO(build_pcap([ipv4_frame(A, B)] * 80)))
    second = analyze(io.BytesIO(build_pcap([ipv4_frame(A, B)] * 80)))
    assert first.threats == [] and second.threats == []
    assert second.total_packets == 80


def test_wire_form(build_pcap, ipv4_frame):
    run = CaptureAnalysis(clock=_fixed_clock)
    result = run.run(io.BytesIO(build_pcap([ipv4_frame(A, B, proto=17)])))

    assert result.to_dict() == {
        "totalPackets": 1,
        "packetDetails": [{"srcIP": A, "dstIP": B, "protocol": "UDP", "packetSize": 34}],
        "threats": [],
        "timestamp": "2024-05-01T12:30:15.123Z",
    }


def test_invalid_truncation_policy_is_rejected():
    with pytest.raises(ValueError):
        AnalyzerConfig(truncation_policy="best-effort")


def test_analyze_path(tmp_path, build_pcap, ipv4_frame):
    path = tmp_path / "three.pcap"
    path.write_bytes(build_pcap([ipv4_frame(A, B)] * 3))
    assert analyze_path(path).total_packets == 3


def test_run_logs_summary(build_pcap, ipv4_frame, caplog, monkeypatch):
    # the web app turns propagation off for its own handlers
    monkeypatch.setattr(logging.getLogger("pcap_analyzer"), "propagate", True)
    with caplog.at_level(logging.INFO, logger="pcap_analyzer"):
        analyze(io.BytesIO(build_pcap([ipv4_frame(A, B)])))
    assert any("Analysis complete" in r.getMessage() for r in caplog.records)
