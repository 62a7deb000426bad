from __future__ import annotations

import math

from qcmstream.core.parsing import LineKind, classify_line, split_payload


def test_split_payload_groups_and_values() -> None:
    assert split_payload("1,2:3,4") == [1.0, 2.0, 3.0, 4.0]


def test_split_payload_trims_and_drops_bad_tokens() -> None:
    assert split_payload(" 1.5 , abc, -2e3 :: 7") == [1.5, -2000.0, 7.0]


def test_split_payload_without_numbers_is_empty() -> None:
    assert split_payload("hello world") == []
    assert split_payload(",:,") == []


def test_split_payload_rejects_digit_separators_and_non_ascii_digits() -> None:
    assert split_payload("1_000,2") == [2.0]
    assert split_payload("\u0663,4:\uff15") == [4.0]


def test_split_payload_accepts_nan_tokens() -> None:
    values = split_payload("nan,1")
    assert len(values) == 2
    assert math.isnan(values[0])


def test_classify_empty_line() -> None:
    assert classify_line("") is None


def test_classify_debug_line_keeps_text_verbatim() -> None:
    line = classify_line("# hello $ 1,2")
    assert line is not None
    assert line.kind is LineKind.DEBUG
    assert line.body == " hello $ 1,2"


def test_classify_command_line_splits_tokens() -> None:
    line = classify_line("$BIAS$42")
    assert line is not None
    assert line.kind is LineKind.COMMAND
    assert line.tokens == ("BIAS", "42")


def test_classify_data_line() -> None:
    line = classify_line("1,2,3")
    assert line is not None
    assert line.kind is LineKind.DATA
    assert line.body == "1,2,3"
