from __future__ import annotations

import json
import logging

import pytest

from app.services.sink import LogSink, to_line


def test_to_line_wraps_record_in_kube_envelope() -> None:
    line = to_line({"node": "node-a", "pods_total": 0})

    assert line == '{"kube":{"node":"node-a","pods_total":0}}'
    assert json.loads(line) == {"kube": {"node": "node-a", "pods_total": 0}}


def test_to_line_rejects_nan() -> None:
    with pytest.raises(ValueError):
        to_line({"cpu_usage": float("nan")})


def test_log_sink_writes_through_record_logger(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="kube_stats"):
        LogSink().emit('{"kube":{}}')

    assert [record.getMessage() for record in caplog.records] == ['{"kube":{}}']
    assert caplog.records[0].name == "kube_stats"
