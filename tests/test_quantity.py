from __future__ import annotations

import logging

import pytest

from app.core.quantity import parse_cpu, parse_int, parse_memory


@pytest.mark.parametrize(
    ("quantity", "expected"),
    [
        ("500m", 500),
        ("2", 2000),
        ("0.5", 500),
        ("100u", 1),
        ("123456789n", 124),
        ("", 0),
        ("m", 0),
    ],
)
def test_parse_cpu(quantity: str, expected: int) -> None:
    assert parse_cpu(quantity) == expected


def test_parse_cpu_unknown_unit_uses_nanocores_and_logs(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR, logger="app.core.quantity"):
        assert parse_cpu("2500000x") == 3

    assert "Unknown CPU unit" in caplog.text


def test_parse_cpu_unparseable_number_is_zero() -> None:
    assert parse_cpu("1.2.3m") == 0


@pytest.mark.parametrize(
    ("quantity", "expected"),
    [
        ("128Mi", 128 * 1024 * 1024),
        ("1Gi", 1024**3),
        ("500k", 500000),
        ("2M", 2000000),
        ("4096", 4096),
        ("1Ti", 1024**4),
        ("", 0),
    ],
)
def test_parse_memory(quantity: str, expected: int) -> None:
    assert parse_memory(quantity) == expected


def test_parse_memory_unknown_unit_falls_back_to_kibibytes() -> None:
    assert parse_memory("1Xi") == 1024
    assert parse_memory("3Pi") == 3 * 1024


def test_parse_memory_rounds_fractional_bytes_up() -> None:
    assert parse_memory("1.5Ki") == 1536
    assert parse_memory("2.5k") == 2500


def test_parse_int() -> None:
    assert parse_int("110") == 110
    assert parse_int(" 4 ") == 4
    assert parse_int("3920m") is None
    assert parse_int(None) is None


def test_parse_memory_keeps_large_integers_exact() -> None:
    assert parse_memory("9007199254740993") == 9007199254740993
    assert parse_memory("9007199254740993Ki") == 9007199254740993 * 1024
