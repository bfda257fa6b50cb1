from __future__ import annotations

import struct

import pytest

from pcap_analyzer import Decoded, DecodedPacket, RawFrame, Skipped, classify_frame, decode
from pcap_analyzer.pipeline.decoder import protocol_name


def _frame(data: bytes, caplen=None, orig=None) -> RawFrame:
    caplen = len(data) if caplen is None else caplen
    return RawFrame(data=data, captured_length=caplen, original_length=orig or caplen, timestamp=0.0)


@pytest.mark.parametrize(
    "proto, name",
    [(6, "TCP"), (17, "UDP"), (1, "ICMP"), (47, "Unknown(47)"), (0, "Unknown(0)"), (255, "Unknown(255)")],
)
def test_protocol_names(ipv4_frame, proto, name):
    pkt = decode(_frame(ipv4_frame("10.0.0.1", "10.0.0.2", proto=proto)))
    assert pkt is not None
    assert pkt.protocol == name
    assert protocol_name(proto) == name


def test_decodes_addresses_and_size(ipv4_frame):
    data = ipv4_frame("172.16.5.4", "8.8.8.8", proto=17, payload=b"x" * 26)
    outcome = classify_frame(_frame(data, orig=1500))
    assert outcome == Decoded(DecodedPacket("172.16.5.4", "8.8.8.8", "UDP", 60))


def test_size_falls_back_to_original_length(ipv4_frame):
    data = ipv4_frame("10.0.0.1", "10.0.0.2")
    frame = RawFrame(data=data, captured_length=0, original_length=98, timestamp=0.0)
    assert decode(frame).size == 98


def test_size_zero_when_both_lengths_missing(ipv4_frame):
    data = ipv4_frame("10.0.0.1", "10.0.0.2")
    frame = RawFrame(data=data, captured_length=0, original_length=0, timestamp=0.0)
    assert decode(frame).size == 0


@pytest.mark.parametrize("length", [0, 1, 13])
def test_too_short_for_ethertype(length):
    assert classify_frame(_frame(b"\x00" * length)) == Skipped("too_short")


def test_non_ipv4_ethertypes_are_skipped(ipv4_frame):
    arp = b"\xff" * 12 + struct.pack("!H", 0x0806) + b"\x00" * 28
    assert classify_frame(_frame(arp)) == Skipped("non_ipv4", ethertype=0x0806)

    ipv6 = b"\x00" * 12 + struct.pack("!H", 0x86DD) + b"\x00" * 40
    assert classify_frame(_frame(ipv6)).reason == "non_ipv4"


def test_vlan_tagged_frame_is_not_decoded(ipv4_frame):
    tagged = ipv4_frame("10.0.0.1", "10.0.0.2")
    tagged = tagged[:12] + b"\x81\x00\x00\x64" + tagged[12:]
    assert classify_frame(_frame(tagged)) == Skipped("non_ipv4", ethertype=0x8100)


@pytest.mark.parametrize("cut", [14, 23, 24, 30, 33])
def test_cut_off_ipv4_header(ipv4_frame, cut):
    data = ipv4_frame("10.0.0.1", "10.0.0.2")[:cut]
    assert classify_frame(_frame(data)) == Skipped("truncated_ipv4", ethertype=0x0800)
    assert decode(_frame(data)) is None


def test_minimal_ipv4_frame_decodes(ipv4_frame):
    data = ipv4_frame("10.0.0.1", "10.0.0.2")
    assert len(data) == 34
    assert isinstance(classify_frame(_frame(data)), Decoded)


def test_decoding_is_idempotent(ipv4_frame):
    frame = _frame(ipv4_frame("10.1.1.1", "10.2.2.2", proto=1))
    assert decode(frame) == decode(frame)


def test_to_dict_uses_wire_names():
    pkt = DecodedPacket("1.1.1.1", "2.2.2.2", "TCP", 60)
    assert pkt.to_dict() == {"srcIP": "1.1.1.1", "dstIP": "2.2.2.2", "protocol": "TCP", "packetSize": 60}
