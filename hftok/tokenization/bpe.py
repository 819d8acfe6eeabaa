from hftok.tokenization.errors import EncodeError
from hftok.tokenization.merges import MergeRankTable
from hftok.tokenization.utils import get_pair_counts, merge_pair
from hftok.tokenization.vocab import Vocabulary


class BytePairEncoder:
    """Applies ranked BPE merges to a single pre-tokenized word and resolves the
    resulting symbols to vocabulary ids.

    Unlike during training, where the most frequent pair is merged, encoding always
    merges the pair with the lowest rank, i.e. the pair whose merge rule was learned
    first. Since a rule can only have been learned once its two symbols existed, this
    replays the merges in the same order as they happened during training.

    Note: the encoder holds no mutable state, so the same instance can be used from
    several threads at once.
    """

    def __init__(
        self,
        vocab: Vocabulary,
        merges: MergeRankTable,
        added_tokens: dict[str, int] | None = None,
        unk_id: int | None = None,
        fuse_unk: bool = False,
        byte_fallback: bool = False,
        ignore_merges: bool = False,
    ):
        self.vocab = vocab
        self.merges = merges
        self.added_tokens = added_tokens or {}  # Map content to id
        self.unk_id = unk_id
        self.fuse_unk = fuse_unk
        self.byte_fallback = byte_fallback
        self.ignore_merges = ignore_merges

    def merge_word(self, word: str) -> list[str]:
        """Merge the characters of `word` until no adjacent pair has a merge rule.

        For example, with the merges ["a b", "ab c"] the word "abc" goes through
        ["a", "b", "c"] -> ["ab", "c"] -> ["abc"].
        """
        symbols = list(word)
        while len(symbols) >= 2:  # Need at least two symbols, otherwise `min` will fail
            pair_counts = get_pair_counts(symbols)

            # Find pair with the lowest rank: this is the next pair to merge. Pairs
            # without a merge rule get rank inf so they are never selected.
            pair = min(pair_counts, key=self._rank)

            # Edge case: none of the pairs has a merge rule and there is nothing to do
            if pair not in self.merges:
                break

            symbols = merge_pair(symbols, pair)
        return symbols

    def _rank(self, pair: tuple[str, str]) -> float:
        rank = self.merges.rank(*pair)
        return float("inf") if rank is None else rank

    def encode_word(self, word: str) -> list[int]:
        # Added tokens short-circuit the merges
        if word in self.added_tokens:
            return [self.added_tokens[word]]

        if self.ignore_merges:
            idx = self.vocab.get_id(word)
            if idx is not None:
                return [idx]

        ids = []
        prev_is_unk = False
        for symbol in self.merge_word(word):
            idx = self.vocab.get_id(symbol)
            if idx is not None:
                ids.append(idx)
                prev_is_unk = False
                continue

            byte_ids = self._byte_fallback_ids(symbol)
            if byte_ids is not None:
                ids.extend(byte_ids)
                prev_is_unk = False
                continue

            if self.unk_id is None:
                raise EncodeError(
                    f"Symbol {symbol!r} is not in the vocabulary and there is no "
                    f"unknown token to fall back on"
                )
            if not (self.fuse_unk and prev_is_unk):
                ids.append(self.unk_id)
            prev_is_unk = True
        return ids

    def _byte_fallback_ids(self, symbol: str) -> list[int] | None:
        """Ids of the "<0xXX>" tokens for the UTF-8 bytes of `symbol`, or None if
        byte fallback is off or any of those tokens is missing from the vocabulary.
        """
        if not self.byte_fallback:
            return None
        ids = []
        for b in symbol.encode("utf-8"):
            idx = self.vocab.get_id(f"<0x{b:02X}>")
            if idx is None:
                return None
            ids.append(idx)
        return ids
