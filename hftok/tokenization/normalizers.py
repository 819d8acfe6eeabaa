import unicodedata

import regex as re

from hftok.tokenization.config import NormalizerConfig


class Normalizer:
    def normalize(self, text: str) -> str:
        raise NotImplementedError


class Replace(Normalizer):
    def __init__(self, pattern: str, content: str, is_regex: bool = False):
        self.pattern = re.compile(pattern if is_regex else re.escape(pattern))
        self.content = content

    def normalize(self, text: str) -> str:
        # A callable replacement stops `regex` from interpreting backslashes
        return self.pattern.sub(lambda _: self.content, text)


class Prepend(Normalizer):
    def __init__(self, prepend: str):
        self.prepend = prepend

    def normalize(self, text: str) -> str:
        return self.prepend + text if text else text


class UnicodeNormalizer(Normalizer):
    def __init__(self, form: str):
        self.form = form  # One of NFC, NFD, NFKC, NFKD

    def normalize(self, text: str) -> str:
        return unicodedata.normalize(self.form, text)


class Lowercase(Normalizer):
    def normalize(self, text: str) -> str:
        return text.lower()


class Sequence(Normalizer):
    def __init__(self, normalizers: list[Normalizer]):
        self.normalizers = normalizers

    def normalize(self, text: str) -> str:
        for normalizer in self.normalizers:
            text = normalizer.normalize(text)
        return text


def create_normalizer(config: NormalizerConfig | None) -> Normalizer | None:
    if config is None:
        return None
    if config.type == "Replace":
        return Replace(config.pattern, config.content, is_regex=config.pattern_is_regex)
    if config.type == "Prepend":
        return Prepend(config.prepend)
    if config.type in ("NFC", "NFD", "NFKC", "NFKD"):
        return UnicodeNormalizer(config.type)
    if config.type == "Lowercase":
        return Lowercase()
    return Sequence([create_normalizer(c) for c in config.normalizers])
