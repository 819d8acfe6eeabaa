import logging
from typing import Any, Iterable

from hftok.tokenization.errors import LoadError

# Merge files written by the original GPT-2 tooling start with a header line such
# as "#version: 0.2". It is not a merge rule and must be skipped.
VERSION_HEADER_PREFIX = "#version"


def parse_merge(entry: Any) -> tuple[str, str] | None:
    """Convert one element of `model.merges` to a canonical (left, right) pair.

    Two formats are in use:
        - Legacy string format, e.g. "Ġ t". The string is split on the first space.
        - Tuple format, e.g. ["Ġ", "t"]. Needed when a symbol contains a space.

    Returns:
        The pair, or None if the entry is a "#version" header line.
    """
    if isinstance(entry, str):
        if entry.startswith(VERSION_HEADER_PREFIX):
            return None
        left, sep, right = entry.partition(" ")
        if not sep:
            raise LoadError(f"Merge {entry!r} is not of the form '<left> <right>'")
        return left, right

    if isinstance(entry, (list, tuple)):
        if len(entry) != 2 or not all(isinstance(s, str) for s in entry):
            raise LoadError(f"Merge {entry!r} must be a list of exactly two strings")
        return entry[0], entry[1]

    raise LoadError(f"Merge {entry!r} has unsupported type {type(entry).__name__}")


class MergeRankTable:
    """Lookup table from a symbol pair to its merge rank.

    The rank of a rule is its position in the declared list of merges (header lines
    excluded). A lower rank means a higher priority, i.e. the pair is merged earlier.
    If the same pair is declared more than once, the last declaration wins.
    """

    def __init__(self, merges: Iterable[tuple[str, str]] = ()):
        self.ranks: dict[tuple[str, str], int] = {}
        for rank, pair in enumerate(merges):
            if pair in self.ranks:
                logging.warning(
                    f"Duplicate merge {pair}: rank {self.ranks[pair]} is replaced "
                    f"by rank {rank}"
                )
            self.ranks[pair] = rank

    @classmethod
    def from_json(cls, entries: list) -> "MergeRankTable":
        pairs = []
        for entry in entries:
            pair = parse_merge(entry)
            if pair is not None:
                pairs.append(pair)
        return cls(pairs)

    def rank(self, left: str, right: str) -> int | None:
        return self.ranks.get((left, right))

    def pairs(self) -> list[tuple[str, str]]:
        """All pairs ordered by rank."""
        return sorted(self.ranks, key=self.ranks.get)

    def __len__(self) -> int:
        return len(self.ranks)

    def __contains__(self, pair: tuple[str, str]) -> bool:
        return pair in self.ranks

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MergeRankTable):
            return NotImplemented
        return self.ranks == other.ranks
