from .byte_mapping import bytes_to_unicode, decode_symbols, symbol_to_bytes, unicode_to_bytes
from .merge_engine import MergeEngine, run_bpe
from .pre_tokenization import ByteLevelSymbolizer, CharacterSymbolizer, PreTokenizer, Symbolizer
from .trace import Step, Trace, TraceStats, to_utf8_view
from .worker import TraceWorker, normalize_max_merges

__all__ = [
    "ByteLevelSymbolizer",
    "CharacterSymbolizer",
    "MergeEngine",
    "PreTokenizer",
    "Step",
    "Symbolizer",
    "Trace",
    "TraceStats",
    "TraceWorker",
    "bytes_to_unicode",
    "decode_symbols",
    "normalize_max_merges",
    "run_bpe",
    "symbol_to_bytes",
    "to_utf8_view",
    "unicode_to_bytes",
]
