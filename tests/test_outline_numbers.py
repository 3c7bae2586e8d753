"""Tests for the outline number counter."""

from __future__ import annotations

import pytest

from headmark.transforms.outline_numbers import (
    OutlineCounter,
    format_number,
    initial_path,
    next_number,
)


def test_initial_path():
    assert initial_path(1) == (0,)
    assert initial_path(5) == (4,)


def test_next_number_sibling():
    assert next_number((1, 2), 2) == (1, 3)


def test_next_number_shallower_truncates():
    assert next_number((1, 2, 3), 1) == (2,)


def test_next_number_deeper_extends_with_ones():
    assert next_number((1,), 3) == (1, 1, 1)


def test_next_number_does_not_mutate_input():
    counters = [1, 2]
    next_number(counters, 2)
    assert counters == [1, 2]


def test_next_number_rejects_non_positive_depth():
    with pytest.raises(ValueError):
        next_number((1,), 0)


def test_format_number():
    assert format_number((1, 2, 1), ".") == "1.2.1"
    assert format_number((3, 1), "-") == "3-1"
    assert format_number((4,), "/") == "4"


def test_counter_sequence():
    counter = OutlineCounter()
    assert [counter.advance(d) for d in [1, 2, 2, 1, 3]] == ["1", "1.1", "1.2", "2", "2.1.1"]


def test_counter_start_number():
    counter = OutlineCounter(start_number=3, separator=",")
    assert counter.advance(1) == "3"
    assert counter.advance(2) == "3,1"
    assert counter.advance(1) == "4"


def test_counter_first_header_deeper_than_one():
    """A document that starts below the top level gets a zero top component."""
    counter = OutlineCounter()
    assert counter.advance(2) == "0.1"
    assert counter.advance(1) == "1"
