"""Frame decoder tests: arbitrary chunk boundaries and malformed frames."""
from __future__ import annotations

from local_providers.base.streaming import EventStreamDecoder, NDJSONDecoder


def _collect_errors():
    errors = []
    return errors, lambda line, exc: errors.append(line)


def test_ndjson_reassembles_lines_split_across_chunks():
    dec = NDJSONDecoder()
    out = dec.feed('{"a": 1}\n{"b"')
    out += dec.feed(': 2}\r\n\n{"c": 3}')
    out += dec.flush()
    assert out == [{"a": 1}, {"b": 2}, {"c": 3}]  # nosec B101


def test_ndjson_skips_malformed_lines_and_reports_them():
    errors, hook = _collect_errors()
    dec = NDJSONDecoder(on_error=hook)
    out = dec.feed('{"a": 1}\nnot json\n[1, 2]\n{"b": 2}\n')
    assert out == [{"a": 1}, {"b": 2}]  # nosec B101
    assert errors == ["not json", "[1, 2]"]  # nosec B101


def test_event_stream_reads_data_frames_until_sentinel():
    dec = EventStreamDecoder()
    out = dec.feed(': keep-alive\nevent: message\ndata: {"x": 1}\n\ndata:{"x": 2}\n')
    out += dec.feed("data: [DONE]\n\ndata: {\"x\": 3}\n")
    out += dec.flush()
    assert out == [{"x": 1}, {"x": 2}]  # nosec B101
    assert dec.finished is True  # nosec B101
    assert dec.feed('data: {"x": 4}\n') == []  # nosec B101


def test_event_stream_skips_malformed_payloads():
    errors, hook = _collect_errors()
    dec = EventStreamDecoder(on_error=hook)
    out = dec.feed('data: {broken\ndata: {"ok": true}\n')
    assert out == [{"ok": True}]  # nosec B101
    assert errors == ["data: {broken"]  # nosec B101
    assert dec.finished is False  # nosec B101


def test_event_stream_custom_prefix_and_sentinel():
    dec = EventStreamDecoder(prefix="payload=", sentinel="END")
    out = dec.feed('payload={"k": "v"}\npayload=END\n')
    assert out == [{"k": "v"}] and dec.finished  # nosec B101
