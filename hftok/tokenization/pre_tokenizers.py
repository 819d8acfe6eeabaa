"""Pre-tokenizers split a piece of text into the "words" that BPE runs on. Merges
never cross word boundaries, e.g. "dog" and "dog!" share the token for "dog".

Every pre-tokenizer implements `split(piece, is_first)`, which maps one piece of
text to a list of smaller pieces. `is_first` tells whether the piece sits at the
very start of the input, which matters for the Metaspace "first" prepend scheme.
"""

import regex as re

from hftok.tokenization.byte_level import encode_bytes
from hftok.tokenization.config import PreTokenizerConfig
from hftok.tokenization.split_patterns import GPT2_SPLIT_PATTERN


class PreTokenizer:
    def split(self, piece: str, is_first: bool) -> list[str]:
        raise NotImplementedError

    def pre_tokenize(self, text: str, is_first: bool = True) -> list[str]:
        if not text:
            return []
        return [word for word in self.split(text, is_first) if word]


class ByteLevel(PreTokenizer):
    """Optionally split with the GPT-2 pattern, then map every word to the
    byte-level alphabet so that each byte becomes exactly one character.
    """

    def __init__(self, add_prefix_space: bool = True, use_regex: bool = True):
        self.add_prefix_space = add_prefix_space
        self.use_regex = use_regex
        self.compiled_pattern = re.compile(GPT2_SPLIT_PATTERN)

    def split(self, piece: str, is_first: bool) -> list[str]:
        if not piece:
            return []

        # Without the prefix space, "Hello" at the start of a text would be encoded
        # differently from " Hello" in the middle of a text
        if self.add_prefix_space and not piece.startswith(" "):
            piece = " " + piece

        words = re.findall(self.compiled_pattern, piece) if self.use_regex else [piece]
        return [encode_bytes(word) for word in words]


class Split(PreTokenizer):
    """Split on a regex or literal pattern. The behavior decides what happens to
    the matched delimiters, e.g. for "the-final--countdown" split on "-":
        - Removed:            ["the", "final", "countdown"]
        - Isolated:           ["the", "-", "final", "-", "-", "countdown"]
        - MergedWithPrevious: ["the-", "final-", "-", "countdown"]
        - MergedWithNext:     ["the", "-final", "-", "-countdown"]
        - Contiguous:         ["the", "-", "final", "--", "countdown"]
    With `invert`, the matches are treated as the content and the rest as delimiters.
    """

    def __init__(
        self,
        pattern: str,
        behavior: str = "Isolated",
        invert: bool = False,
        is_regex: bool = True,
    ):
        self.compiled_pattern = re.compile(pattern if is_regex else re.escape(pattern))
        self.behavior = behavior
        self.invert = invert

    def _spans(self, piece: str) -> list[tuple[str, bool]]:
        """Cut `piece` into consecutive (text, is_delimiter) spans."""
        spans = []
        prev_end = 0
        for match in self.compiled_pattern.finditer(piece):
            start, end = match.span()
            if start == end:  # Empty matches never split anything
                continue
            if start > prev_end:
                spans.append((piece[prev_end:start], self.invert))
            spans.append((piece[start:end], not self.invert))
            prev_end = end
        if prev_end < len(piece):
            spans.append((piece[prev_end:], self.invert))
        return spans

    def split(self, piece: str, is_first: bool) -> list[str]:
        words: list[str] = []
        prev_is_delimiter: bool | None = None  # None until the first span
        for text, is_delimiter in self._spans(piece):
            if self.behavior == "Removed":
                if not is_delimiter:
                    words.append(text)
            elif self.behavior == "MergedWithPrevious":
                if is_delimiter and prev_is_delimiter is False:
                    words[-1] += text
                else:
                    words.append(text)
            elif self.behavior == "MergedWithNext":
                if not is_delimiter and prev_is_delimiter is True:
                    words[-1] += text
                else:
                    words.append(text)
            elif self.behavior == "Contiguous":
                if is_delimiter and prev_is_delimiter is True:
                    words[-1] += text
                else:
                    words.append(text)
            else:  # Isolated
                words.append(text)
            prev_is_delimiter = is_delimiter
        return words


class Digits(Split):
    def __init__(self, individual_digits: bool = False):
        super().__init__(r"\p{N}" if individual_digits else r"\p{N}+")


class Metaspace(PreTokenizer):
    """Replace spaces with a visible meta symbol ("▁" by default), which then becomes
    part of the words, e.g. "Hello world" -> ["▁Hello", "▁world"].
    """

    def __init__(
        self,
        replacement: str = "▁",
        prepend_scheme: str = "always",
        split: bool = True,
    ):
        self.replacement = replacement
        self.prepend_scheme = prepend_scheme
        self.splitter = Split(replacement, "MergedWithNext", is_regex=False) if split else None

    def split(self, piece: str, is_first: bool) -> list[str]:
        piece = piece.replace(" ", self.replacement)
        prepend = self.prepend_scheme == "always" or (
            self.prepend_scheme == "first" and is_first
        )
        if prepend and not piece.startswith(self.replacement):
            piece = self.replacement + piece
        if self.splitter is None:
            return [piece]
        return self.splitter.split(piece, is_first)


class Sequence(PreTokenizer):
    def __init__(self, pre_tokenizers: list[PreTokenizer]):
        self.pre_tokenizers = pre_tokenizers

    def split(self, piece: str, is_first: bool) -> list[str]:
        pieces = [piece]
        for pre_tokenizer in self.pre_tokenizers:
            new_pieces = []
            for i, p in enumerate(pieces):
                new_pieces.extend(pre_tokenizer.split(p, is_first and i == 0))
            pieces = [p for p in new_pieces if p]
        return pieces


def create_pre_tokenizer(config: PreTokenizerConfig) -> PreTokenizer:
    if config.type == "ByteLevel":
        return ByteLevel(config.add_prefix_space, config.use_regex)
    if config.type == "Split":
        return Split(
            config.pattern,
            behavior=config.behavior,
            invert=config.invert,
            is_regex=config.pattern_is_regex,
        )
    if config.type == "Digits":
        return Digits(config.individual_digits)
    if config.type == "Metaspace":
        return Metaspace(config.replacement, config.prepend_scheme, config.split)
    return Sequence([create_pre_tokenizer(c) for c in config.pretokenizers])
