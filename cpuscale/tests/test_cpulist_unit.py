from __future__ import annotations

import pytest

from cpuscale.core.cpulist import format_cpu_list, parse_cpu_list, parse_int_list, parse_word_list


@pytest.mark.parametrize(
    "text,expected",
    [
        ("", []),
        ("\n", []),
        ("0", [0]),
        ("0-3", [0, 1, 2, 3]),
        ("0-3,5,7-9\n", [0, 1, 2, 3, 5, 7, 8, 9]),
        ("5,1,1-2", [1, 2, 5]),
    ],
)
def test_parse_cpu_list(text, expected) -> None:
    assert parse_cpu_list(text) == expected


@pytest.mark.parametrize("text", ["a", "3-1", "1-x", "-2"])
def test_parse_cpu_list_rejects_malformed(text) -> None:
    with pytest.raises(ValueError):
        parse_cpu_list(text)


def test_parse_word_and_int_lists() -> None:
    assert parse_word_list("performance  powersave\n") == ["performance", "powersave"]
    assert parse_word_list("") == []
    assert parse_int_list("800000 1600000 junk 2400000") == [800000, 1600000, 2400000]


def test_format_cpu_list_compresses_ranges() -> None:
    assert format_cpu_list([5, 0, 1, 2, 7, 8]) == "0-2,5,7-8"
    assert format_cpu_list([]) == ""
    assert parse_cpu_list(format_cpu_list([0, 2, 3, 4])) == [0, 2, 3, 4]
