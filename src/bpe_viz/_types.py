from typing import TypeAlias

Symbol: TypeAlias = str
Chunk: TypeAlias = list[Symbol]
Pair: TypeAlias = tuple[Symbol, Symbol]
PairCount: TypeAlias = dict[Pair, int]
