from collections.abc import Iterable
from functools import lru_cache

from ._types import Symbol


@lru_cache(maxsize=None)
def bytes_to_unicode() -> dict[int, str]:
    """
    Build the GPT-2 byte to unicode table.

    Printable ASCII and the two visible Latin-1 ranges map to themselves, every other
    byte is shifted to consecutive code points starting at U+0100, so each of the 256
    byte values becomes a single printable character.

    Returns:
        dict[int, str]: Mapping from byte value to its unicode symbol. Shared, do not mutate.
    """
    bs = (
        list(range(ord("!"), ord("~") + 1))
        + list(range(ord("¡"), ord("¬") + 1))
        + list(range(ord("®"), ord("ÿ") + 1))
    )
    cs = bs[:]
    n = 0
    for b in range(256):
        if b not in bs:
            bs.append(b)
            cs.append(256 + n)
            n += 1
    return {b: chr(c) for b, c in zip(bs, cs)}


@lru_cache(maxsize=None)
def unicode_to_bytes() -> dict[str, int]:
    return {char: b for b, char in bytes_to_unicode().items()}


def encode_utf8(text: str) -> bytes:
    """
    UTF-8 encode text that may hold surrogate code points.

    A well-formed surrogate pair becomes the code point it stands for, a lone surrogate
    becomes U+FFFD.
    """
    return text.encode("utf-16", "surrogatepass").decode("utf-16", "replace").encode("utf-8")


def encode_bytes(data: bytes) -> list[Symbol]:
    byte_encoder = bytes_to_unicode()
    return [byte_encoder[b] for b in data]


def symbol_to_bytes(symbol: Symbol) -> bytes:
    """
    Reverse a byte-level symbol, merged or not, to its raw bytes.

    Args:
        symbol (Symbol): A symbol made only of characters from the byte table.

    Returns:
        bytes: The raw bytes the symbol stands for.
    """
    byte_decoder = unicode_to_bytes()
    try:
        return bytes(byte_decoder[char] for char in symbol)
    except KeyError as e:
        raise ValueError(f"Symbol {symbol!r} contains a character outside the byte table: {e.args[0]!r}") from e


def decode_symbols(symbols: Iterable[Symbol]) -> str:
    return b"".join(symbol_to_bytes(symbol) for symbol in symbols).decode("utf-8", errors="replace")
