import dataclasses
import json

import numpy as np
import pytest

from bpe_viz import Step, Trace, TraceStats, to_utf8_view

from .adapters import run_trace


def test_step_serializes_with_renderer_keys():
    trace = run_trace("hello hello", max_merges=1)
    data = trace.to_dict()

    assert data["steps"][0] == {
        "stepIndex": 0,
        "mergedPair": None,
        "frequency": None,
        "newToken": None,
        "tokens": ["h", "e", "l", "l", "o", "Ġ", "h", "e", "l", "l", "o"],
    }
    assert data["steps"][1]["mergedPair"] == ["h", "e"]
    assert data["steps"][1]["frequency"] == 2
    assert data["steps"][1]["newToken"] == "he"


def test_json_dump_loads_back():
    trace = run_trace("naïve café, naïve café!")
    restored = Trace.from_dict(json.loads(trace.to_json()))
    assert restored == trace


def test_steps_are_immutable():
    step = run_trace("aaabdaaabac")[1]
    with pytest.raises(dataclasses.FrozenInstanceError):
        step.frequency = 10
    assert isinstance(step.tokens, tuple)


def test_step_from_chunks_flattens_in_order():
    step = Step.from_chunks(3, [["ab", "c"], ["Ġ", "ab"]], ("a", "b"), 2)
    assert step.tokens == ("ab", "c", "Ġ", "ab")
    assert step.new_token == "ab"
    assert step.step_index == 3


def test_counts_and_stats():
    text = "aaabdaaabac"
    trace = run_trace(text)

    counts = trace.token_counts()
    assert counts.dtype == np.uint32
    assert counts.tolist() == [11, 9, 7, 5]

    assert trace.merge_count == 3
    assert trace.stats(0, text) == TraceStats(characters=11, merges=3, tokens=11)
    assert trace.stats(3, text) == TraceStats(characters=11, merges=3, tokens=5)
    assert Trace().stats(0, "") == TraceStats(characters=0, merges=0, tokens=0)


def test_occurrences_and_vocabulary():
    trace = run_trace("aaabdaaabac")
    assert trace.occurrences(1, "aa") == 2
    assert trace.occurrences(3, "aaab") == 2
    assert trace.occurrences(0, "aa") == 0
    assert trace.vocabulary(3) == ["aaab", "d", "a", "c"]


def test_out_of_range_step():
    trace = run_trace("abcdef")
    with pytest.raises(IndexError):
        trace[1]
    with pytest.raises(IndexError):
        trace.occurrences(-1, "a")
    assert trace.final_tokens == tuple("abcdef")
    assert Trace().final_tokens == ()


def test_utf8_view():
    assert to_utf8_view("Ġhe") == "32 104 101"
    assert to_utf8_view("Ã©") == "195 169"
    assert to_utf8_view("é", byte_level=False) == "195 169"
