import argparse

from .merge_engine import MergeEngine
from .pre_tokenization import ByteLevelSymbolizer, CharacterSymbolizer
from .trace import to_utf8_view
from .worker import normalize_max_merges


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="bpe_viz", description="Show every merge BPE performs on a text.")
    ap.add_argument("text")
    ap.add_argument("--max-merges", default=None, help="stop after this many merges (invalid values mean no limit)")
    ap.add_argument("--char-level", action="store_true", help="start from characters instead of UTF-8 bytes")
    ap.add_argument("--view", choices=["text", "utf8"], default="text")
    ap.add_argument("--json", action="store_true", help="dump the whole trace as JSON")
    ap.add_argument("--progress", action="store_true")
    args = ap.parse_args(argv)

    text = args.text.strip()
    byte_level = not args.char_level
    engine = MergeEngine(
        max_merges=normalize_max_merges(args.max_merges),
        symbolizer=ByteLevelSymbolizer() if byte_level else CharacterSymbolizer(),
        show_progress=args.progress,
    )
    trace = engine.run(text)

    if args.json:
        print(trace.to_json(indent=2))
        return 0

    def fmt(token: str) -> str:
        return f"[{to_utf8_view(token, byte_level)}]" if args.view == "utf8" else token

    for step in trace:
        if step.merged_pair is None:
            print(f"{step.step_index:>4}  initial symbols")
        else:
            first, second = step.merged_pair
            print(f"{step.step_index:>4}  {fmt(first)} + {fmt(second)} -> {fmt(step.new_token)}  x{step.frequency}")

    if trace.steps:
        last = len(trace) - 1
        stats = trace.stats(last, text)
        counts = trace.token_counts()
        print(
            f"characters={stats.characters} merges={stats.merges} tokens={stats.tokens}"
            f" compression={counts[0] / counts[-1]:.2f}x"
        )
        print(" ".join(fmt(token) for token in trace.final_tokens))
    else:
        print("characters=0 merges=0 tokens=0")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
