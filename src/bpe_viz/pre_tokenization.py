from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator

import regex as re

from ._types import Chunk, Symbol
from .byte_mapping import decode_symbols, encode_bytes, encode_utf8

# https://github.com/openai/gpt-2/blob/master/src/encoder.py#L53
GPT2_PATTERN = re.compile(r"""'s|'t|'re|'ve|'m|'ll|'d| ?\p{L}+| ?\p{N}+| ?[^\s\p{L}\p{N}]+|\s+(?!\S)|\s+""")


class Symbolizer(ABC):
    @abstractmethod
    def __call__(self, chunk: str) -> Chunk:
        """
        Turn one pre-token into its initial symbol sequence.

        Args:
            chunk (str): A single pre-token.

        Returns:
            Chunk: The symbols merging starts from.
        """

    @abstractmethod
    def decode(self, symbols: Iterable[Symbol]) -> str:
        """Restore the literal text a symbol sequence stands for."""


class ByteLevelSymbolizer(Symbolizer):
    def __call__(self, chunk: str) -> Chunk:
        return encode_bytes(encode_utf8(chunk))

    def decode(self, symbols: Iterable[Symbol]) -> str:
        return decode_symbols(symbols)


class CharacterSymbolizer(Symbolizer):
    def __call__(self, chunk: str) -> Chunk:
        return list(chunk)

    def decode(self, symbols: Iterable[Symbol]) -> str:
        return "".join(symbols)


class PreTokenizer:
    def __init__(self, symbolizer: Symbolizer | None = None, pattern=GPT2_PATTERN):
        self.symbolizer = symbolizer if symbolizer is not None else ByteLevelSymbolizer()
        self.pattern = pattern

    def pre_tokenize(self, text: str) -> Iterator[str]:
        """
        Split text into pre-tokens along the pattern's boundaries.

        Args:
            text (str): Raw input text.

        Returns:
            Iterator[str]: Non-empty pre-tokens, in order, concatenating back to the matched text.
        """
        for token_match in re.finditer(self.pattern, text):
            yield token_match.group()

    def chunks(self, text: str) -> list[Chunk]:
        return [self.symbolizer(pre_token) for pre_token in self.pre_tokenize(text)]
