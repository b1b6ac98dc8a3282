import pytest

from liveupload.config_manager.helpers import parse_bytes


@pytest.mark.parametrize(
    "value, expected",
    [
        ("0b", 0),
        ("1", 1),
        ("1b", 1),
        ("1k", 1024),
        ("2kib", 2 * 1024),
        ("5mib", 5 * 1024 * 1024),
        ("5mb", 5 * 1024 * 1024),
        ("300m", 300 * 1024 * 1024),
        ("1gib", 1024 * 1024 * 1024),
        ("  1KB  ", 1024),
        (4096, 4096),
    ],
)
def test_parse_bytes_valid(value: str | int, expected: int) -> None:
    assert parse_bytes(value) == expected


@pytest.mark.parametrize(
    "value",
    [
        "",
        "   ",
        "nope",
        "mb",
        "1.5mb",
        "10tb",
        "5 xb",
    ],
)
def test_parse_bytes_invalid(value: str) -> None:
    with pytest.raises(ValueError):
        parse_bytes(value)
