"""Decoders turn token strings back into text.

Each decoder implements `decode_chain(tokens, at_start)`, which maps a list of
token strings to a new list of strings, so decoders can be chained. `at_start` is
True when the first token begins a sequence (or follows an added token). Only then
is the space that the pre-tokenizer put in front of the text removed again.

`decode_stream(prev_token, token, at_start)` decodes one token of a stream given the
token before it (None at the start of a segment).
"""

import regex as re

from hftok.tokenization.byte_level import BYTE_DECODER, decode_symbols, unfinished_tail
from hftok.tokenization.config import DecoderConfig

BYTE_TOKEN_PATTERN = re.compile(r"<0x([0-9A-Fa-f]{2})>")


class Decoder:
    def decode_chain(self, tokens: list[str], at_start: bool) -> list[str]:
        raise NotImplementedError

    def decode(self, tokens: list[str], at_start: bool = True) -> str:
        return "".join(self.decode_chain(tokens, at_start))

    def decode_stream(self, prev_token: str | None, token: str, at_start: bool) -> str:
        return self.decode([token], at_start=at_start)


class ByteLevel(Decoder):
    def __init__(self, add_prefix_space: bool = False):
        self.add_prefix_space = add_prefix_space

    def decode_chain(self, tokens: list[str], at_start: bool) -> list[str]:
        # Join the bytes of all tokens before decoding, since a multi-byte character
        # may be spread over several tokens
        text_bytes = b"".join(decode_symbols(token) for token in tokens)
        return [self._to_text(text_bytes, at_start)]

    def decode_stream(self, prev_token: str | None, token: str, at_start: bool) -> str:
        """Decode `token` so that the pieces of a stream join up to the text.

        A character that is cut after `prev_token` is completed here, and one that is
        cut after `token` is held back for the next call. This only sees one token
        back, so a character spread over three or more tokens still comes out as
        replacement characters.
        """
        prev_bytes = b""
        if prev_token is not None and all(c in BYTE_DECODER for c in prev_token):
            prev_bytes = decode_symbols(prev_token)
        data = unfinished_tail(prev_bytes) + decode_symbols(token)
        data = data[: len(data) - len(unfinished_tail(data))]
        return self._to_text(data, at_start)

    def _to_text(self, data: bytes, at_start: bool) -> str:
        text = data.decode("utf-8", errors="replace")
        if self.add_prefix_space and at_start and text.startswith(" "):
            text = text[1:]
        return text


class Metaspace(Decoder):
    def __init__(self, replacement: str = "▁", prepend_scheme: str = "always"):
        self.replacement = replacement
        self.prepend_scheme = prepend_scheme

    def decode_chain(self, tokens: list[str], at_start: bool) -> list[str]:
        decoded = []
        for i, token in enumerate(tokens):
            text = token.replace(self.replacement, " ")
            strip = i == 0 and at_start and self.prepend_scheme != "never"
            if strip and text.startswith(" "):
                text = text[1:]
            decoded.append(text)
        return decoded


class Replace(Decoder):
    def __init__(self, pattern: str, content: str, is_regex: bool = False):
        self.pattern = re.compile(pattern if is_regex else re.escape(pattern))
        self.content = content

    def decode_chain(self, tokens: list[str], at_start: bool) -> list[str]:
        return [self.pattern.sub(lambda _: self.content, token) for token in tokens]


class ByteFallback(Decoder):
    """Turn runs of byte tokens such as "<0xE2><0x96><0x81>" back into text. A run
    that is not valid UTF-8 becomes one replacement character per byte.
    """

    def decode_chain(self, tokens: list[str], at_start: bool) -> list[str]:
        decoded = []
        pending = bytearray()
        for token in tokens:
            match = BYTE_TOKEN_PATTERN.fullmatch(token)
            if match:
                pending.append(int(match.group(1), 16))
                continue
            if pending:
                decoded.extend(self._flush(pending))
                pending = bytearray()
            decoded.append(token)
        if pending:
            decoded.extend(self._flush(pending))
        return decoded

    def _flush(self, pending: bytearray) -> list[str]:
        try:
            return [bytes(pending).decode("utf-8")]
        except UnicodeDecodeError:
            return ["�"] * len(pending)


class Fuse(Decoder):
    def decode_chain(self, tokens: list[str], at_start: bool) -> list[str]:
        return ["".join(tokens)]


class Strip(Decoder):
    """Remove up to `start` leading and `stop` trailing copies of `content`. The
    leading part is only removed at the start of a sequence.
    """

    def __init__(self, content: str = " ", start: int = 0, stop: int = 0):
        self.content = content
        self.start = start
        self.stop = stop

    def decode_chain(self, tokens: list[str], at_start: bool) -> list[str]:
        decoded = list(tokens)
        if decoded and at_start:
            decoded[0] = self._strip_left(decoded[0])
        if decoded and self.stop:
            decoded[-1] = self._strip_right(decoded[-1])
        return decoded

    def _strip_left(self, token: str) -> str:
        for _ in range(self.start):
            if not token.startswith(self.content):
                break
            token = token[len(self.content) :]
        return token

    def _strip_right(self, token: str) -> str:
        for _ in range(self.stop):
            if not token.endswith(self.content):
                break
            token = token[: -len(self.content)]
        return token


class Sequence(Decoder):
    def __init__(self, decoders: list[Decoder]):
        self.decoders = decoders

    def decode_chain(self, tokens: list[str], at_start: bool) -> list[str]:
        for decoder in self.decoders:
            tokens = decoder.decode_chain(tokens, at_start)
        return tokens


class Identity(Decoder):
    def decode_chain(self, tokens: list[str], at_start: bool) -> list[str]:
        return tokens


def create_decoder(config: DecoderConfig | None) -> Decoder:
    if config is None:
        return Identity()
    if config.type == "ByteLevel":
        return ByteLevel(config.add_prefix_space)
    if config.type == "Metaspace":
        return Metaspace(config.replacement, config.prepend_scheme)
    if config.type == "Replace":
        return Replace(config.pattern, config.content, is_regex=config.pattern_is_regex)
    if config.type == "ByteFallback":
        return ByteFallback()
    if config.type == "Fuse":
        return Fuse()
    if config.type == "Strip":
        return Strip(config.strip_content, config.start, config.stop)
    return Sequence([create_decoder(c) for c in config.decoders])
