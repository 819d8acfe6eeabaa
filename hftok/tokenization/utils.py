"""Helpers for the BPE merge loop. Symbols are strings in the model alphabet, e.g.
byte-level characters such as "Ġ" or already merged symbols such as "Ġthe".
"""


def get_pair_counts(
    symbols: list[str], pair_counts: dict[tuple[str, str], int] | None = None
) -> dict[tuple[str, str], int]:
    """Count how often each pair of adjacent symbols occurs.

    Args:
        symbols: the symbols of a single word.
        pair_counts: existing counts to add to, if any.

    Returns:
        The counts per pair, with keys in order of first occurrence.
    """
    if pair_counts is None:
        pair_counts = {}
    for left, right in zip(symbols, symbols[1:]):
        pair_counts[(left, right)] = pair_counts.get((left, right), 0) + 1
    return pair_counts


def merge_pair(symbols: list[str], pair: tuple[str, str]) -> list[str]:
    """Concatenate every occurrence of `pair` in `symbols`. Occurrences are found
    left to right and never overlap, so ["a", "a", "a"] with ("a", "a") becomes
    ["aa", "a"].
    """
    left, right = pair
    merged = []
    i = 0
    while i < len(symbols):
        if symbols[i] == left and symbols[i + 1 : i + 2] == [right]:
            merged.append(left + right)
            i += 2
            continue
        merged.append(symbols[i])
        i += 1
    return merged
