import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Self

import numpy as np

from ._types import Chunk, Pair, Symbol
from .byte_mapping import encode_utf8, symbol_to_bytes


@dataclass(frozen=True)
class Step:
    step_index: int
    merged_pair: Pair | None
    frequency: int | None
    new_token: Symbol | None
    tokens: tuple[Symbol, ...]

    @classmethod
    def from_chunks(
        cls,
        step_index: int,
        chunks: list[Chunk],
        merged_pair: Pair | None = None,
        frequency: int | None = None,
    ) -> Self:
        """
        Snapshot the current chunk state as one step.

        Chunks are flattened in their original order, the boundaries between them are dropped.
        """
        new_token = merged_pair[0] + merged_pair[1] if merged_pair is not None else None
        tokens = tuple(symbol for chunk in chunks for symbol in chunk)
        return cls(step_index, merged_pair, frequency, new_token, tokens)

    def to_dict(self) -> dict[str, Any]:
        return {
            "stepIndex": self.step_index,
            "mergedPair": list(self.merged_pair) if self.merged_pair is not None else None,
            "frequency": self.frequency,
            "newToken": self.new_token,
            "tokens": list(self.tokens),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        merged_pair = data["mergedPair"]
        return cls(
            step_index=data["stepIndex"],
            merged_pair=tuple(merged_pair) if merged_pair is not None else None,
            frequency=data["frequency"],
            new_token=data["newToken"],
            tokens=tuple(data["tokens"]),
        )


@dataclass(frozen=True)
class TraceStats:
    characters: int
    merges: int
    tokens: int


@dataclass(frozen=True)
class Trace:
    steps: tuple[Step, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(self.steps)

    def __getitem__(self, step_index: int) -> Step:
        if not 0 <= step_index < len(self.steps):
            raise IndexError(f"Step {step_index} out of range for a trace of {len(self.steps)} steps")
        return self.steps[step_index]

    @property
    def merge_count(self) -> int:
        return max(0, len(self.steps) - 1)

    @property
    def final_tokens(self) -> tuple[Symbol, ...]:
        return self.steps[-1].tokens if self.steps else ()

    def token_counts(self) -> np.ndarray:
        return np.array([len(step.tokens) for step in self.steps], dtype=np.uint32)

    def occurrences(self, step_index: int, token: Symbol) -> int:
        return self[step_index].tokens.count(token)

    def vocabulary(self, step_index: int) -> list[Symbol]:
        """
        Distinct tokens present at a step.

        Args:
            step_index (int): Index of the step to inspect.

        Returns:
            list[Symbol]: Each distinct token once, in order of first appearance.
        """
        return list(dict.fromkeys(self[step_index].tokens))

    def stats(self, step_index: int, text: str) -> TraceStats:
        """
        Summary numbers for one step of the trace.

        Args:
            step_index (int): Step the token count is taken from.
            text (str): The text the trace was computed for.

        Returns:
            TraceStats: Character count of the text, total merges and token count at the step.
        """
        tokens = len(self[step_index].tokens) if self.steps else 0
        return TraceStats(characters=len(text), merges=self.merge_count, tokens=tokens)

    def to_dict(self) -> dict[str, Any]:
        return {"steps": [step.to_dict() for step in self.steps]}

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        return cls(steps=tuple(Step.from_dict(step) for step in data["steps"]))


def to_utf8_view(symbol: Symbol, byte_level: bool = True) -> str:
    """Render a symbol as the space separated values of the UTF-8 bytes it stands for."""
    raw = symbol_to_bytes(symbol) if byte_level else encode_utf8(symbol)
    return " ".join(str(b) for b in raw)
