import tqdm

from ._types import Chunk, Pair, PairCount
from .pre_tokenization import ByteLevelSymbolizer, CharacterSymbolizer, PreTokenizer, Symbolizer
from .trace import Step, Trace


class MergeEngine:
    def __init__(
        self,
        max_merges: int | None = None,
        symbolizer: Symbolizer | None = None,
        pre_tokenizer: PreTokenizer | None = None,
        show_progress: bool = False,
    ) -> None:
        if max_merges is not None and (
            isinstance(max_merges, bool) or not isinstance(max_merges, int) or max_merges <= 0
        ):
            raise ValueError(f"max_merges must be a positive integer or None, got {max_merges!r}")
        if symbolizer is not None and pre_tokenizer is not None:
            raise ValueError("Pass either symbolizer or pre_tokenizer, the pre-tokenizer already owns its symbolizer")
        self.max_merges = max_merges
        self.pre_tokenizer = pre_tokenizer if pre_tokenizer is not None else PreTokenizer(symbolizer)
        self.show_progress = show_progress

    @property
    def symbolizer(self) -> Symbolizer:
        return self.pre_tokenizer.symbolizer

    @staticmethod
    def _count_pairs(chunks: list[Chunk]) -> PairCount:
        """
        Count adjacent symbol pairs over every chunk.

        Occurrences from different chunks add up under the same pair. Keys keep the order
        in which pairs were first seen, which is what breaks ties between equal counts.
        """
        pair_counts: PairCount = {}
        for chunk in chunks:
            for idx in range(len(chunk) - 1):
                pair = (chunk[idx], chunk[idx + 1])
                pair_counts[pair] = pair_counts.get(pair, 0) + 1
        return pair_counts

    @staticmethod
    def _determine_merge_pair(pair_counts: PairCount) -> tuple[Pair, int] | None:
        best_pair = None
        best_count = 0
        for pair, count in pair_counts.items():
            if count > best_count:
                best_pair, best_count = pair, count

        if best_pair is None or best_count < 2:
            return None
        return best_pair, best_count

    @staticmethod
    def _merge_pair(chunk: Chunk, pair: Pair) -> Chunk:
        first, second = pair
        merged_token = first + second
        new_chunk = []
        idx = 0
        while idx < len(chunk):
            if idx < len(chunk) - 1 and chunk[idx] == first and chunk[idx + 1] == second:
                new_chunk.append(merged_token)
                idx += 2
            else:
                new_chunk.append(chunk[idx])
                idx += 1
        return new_chunk

    def run(self, text: str) -> Trace:
        """
        Run BPE on the text and record every merge.

        Args:
            text (str): Input text, expected to be stripped by the caller.

        Returns:
            Trace: Step 0 holds the initial symbols, each later step one merge. Empty when the
                text yields no pre-tokens.
        """
        chunks = self.pre_tokenizer.chunks(text)
        if not chunks:
            return Trace()

        steps = [Step.from_chunks(0, chunks)]
        with tqdm.tqdm(total=self.max_merges, desc="Merging", disable=not self.show_progress) as pbar:
            step_index = 1
            while self.max_merges is None or step_index <= self.max_merges:
                selected = self._determine_merge_pair(self._count_pairs(chunks))
                if selected is None:
                    break

                pair, frequency = selected
                chunks = [self._merge_pair(chunk, pair) for chunk in chunks]
                steps.append(Step.from_chunks(step_index, chunks, pair, frequency))
                assert len(steps[-1].tokens) < len(steps[-2].tokens), "A merge must shrink the sequence."

                pbar.update(1)
                step_index += 1

        if self.show_progress:
            tqdm.tqdm.write(
                f"{len(steps) - 1} merges, {len(steps[0].tokens)} -> {len(steps[-1].tokens)} tokens"
            )
        return Trace(steps=tuple(steps))


def run_bpe(text: str, max_merges: int | None = None, *, byte_level: bool = True) -> Trace:
    symbolizer = ByteLevelSymbolizer() if byte_level else CharacterSymbolizer()
    return MergeEngine(max_merges=max_merges, symbolizer=symbolizer).run(text)
