from __future__ import annotations

import time

from bpe_viz import PreTokenizer, Trace, run_bpe, symbol_to_bytes


def run_trace(text: str, max_merges: int | None = None, byte_level: bool = True) -> Trace:
    """
    Given an input text, compute the full BPE merge trace.

    Args:
        text (str): Input text, already stripped.
        max_merges (int | None): Optional positive cap on the number of merges.
        byte_level (bool): Start from UTF-8 bytes (True) or from characters (False).

    Returns:
        Trace: Step 0 with the initial symbols, then one step per merge.
    """
    return run_bpe(text, max_merges, byte_level=byte_level)


def run_pre_tokenize(text: str) -> list[str]:
    """
    Split text into GPT-2 pre-tokens.

    Args:
        text (str): Input text.

    Returns:
        list[str]: Pre-tokens in order.
    """
    return list(PreTokenizer().pre_tokenize(text))


def chunk_byte_boundaries(text: str) -> set[int]:
    """Byte offsets where one pre-token ends and the next begins."""
    boundaries = set()
    offset = 0
    for pre_token in run_pre_tokenize(text):
        offset += len(pre_token.encode("utf-8"))
        boundaries.add(offset)
    boundaries.discard(offset)
    return boundaries


def token_byte_spans(tokens) -> list[tuple[int, int]]:
    spans = []
    offset = 0
    for token in tokens:
        end = offset + len(symbol_to_bytes(token))
        spans.append((offset, end))
        offset = end
    return spans


def flaky_runner(text: str, max_merges: int | None = None, byte_level: bool = True) -> Trace:
    if text == "explode":
        raise RuntimeError("trace job crashed")
    if text == "stall":
        time.sleep(60)
    return run_bpe(text, max_merges, byte_level=byte_level)
