"""Configuration for the normalizer, pre-tokenizer and decoder sections of a
`tokenizer.json` descriptor. Each section is parsed once at load time into a frozen
dataclass, and the pipelines in `normalizers.py`, `pre_tokenizers.py` and
`decoders.py` are built from these.
"""

from dataclasses import dataclass
from typing import Any

from hftok.tokenization.errors import LoadError

SPLIT_BEHAVIORS = (
    "Removed",
    "Isolated",
    "MergedWithPrevious",
    "MergedWithNext",
    "Contiguous",
)
PREPEND_SCHEMES = ("always", "first", "never")
METASPACE_REPLACEMENT = "▁"


def get_bool(obj: dict, key: str, default: bool) -> bool:
    value = obj.get(key, default)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise LoadError(f"Field {key!r} must be a boolean, got {value!r}")
    return value


def _get_str(obj: dict, key: str, default: str) -> str:
    value = obj.get(key, default)
    if value is None:
        return default
    if not isinstance(value, str):
        raise LoadError(f"Field {key!r} must be a string, got {value!r}")
    return value


def _get_int(obj: dict, key: str, default: int) -> int:
    value = obj.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise LoadError(f"Field {key!r} must be a non-negative integer, got {value!r}")
    return value


def _get_type(obj: Any, supported: tuple[str, ...], section: str) -> str:
    if not isinstance(obj, dict):
        raise LoadError(f"The {section} must be an object, got {obj!r}")
    type_ = obj.get("type")
    if type_ not in supported:
        raise LoadError(f"Unsupported {section} type {type_!r}")
    return type_


def _get_pattern(obj: dict) -> tuple[str, bool]:
    """Parse a pattern field of the form {"Regex": "..."} or {"String": "..."}.

    Returns:
        The pattern and whether it is a regex (as opposed to a literal string).
    """
    pattern = obj.get("pattern")
    if isinstance(pattern, dict) and len(pattern) == 1:
        if isinstance(pattern.get("Regex"), str):
            return pattern["Regex"], True
        if isinstance(pattern.get("String"), str):
            return pattern["String"], False
    raise LoadError(f"Pattern {pattern!r} must be {{'Regex': ...}} or {{'String': ...}}")


@dataclass(frozen=True)
class PreTokenizerConfig:
    type: str = "ByteLevel"

    # ByteLevel
    add_prefix_space: bool = True
    trim_offsets: bool = True
    use_regex: bool = True

    # Split
    pattern: str | None = None
    pattern_is_regex: bool = True
    behavior: str = "Isolated"
    invert: bool = False

    # Digits
    individual_digits: bool = False

    # Metaspace
    replacement: str = METASPACE_REPLACEMENT
    prepend_scheme: str = "always"
    split: bool = True

    # Sequence
    pretokenizers: tuple["PreTokenizerConfig", ...] = ()

    SUPPORTED = ("ByteLevel", "Split", "Digits", "Metaspace", "Sequence")

    @classmethod
    def from_json(cls, obj: dict | None) -> "PreTokenizerConfig":
        """A missing (null) section means byte-level pre-tokenization with the
        default flags.
        """
        if obj is None:
            return cls()

        type_ = _get_type(obj, cls.SUPPORTED, "pre_tokenizer")
        if type_ == "ByteLevel":
            return cls(
                type=type_,
                add_prefix_space=get_bool(obj, "add_prefix_space", True),
                trim_offsets=get_bool(obj, "trim_offsets", True),
                use_regex=get_bool(obj, "use_regex", True),
            )
        if type_ == "Split":
            pattern, is_regex = _get_pattern(obj)
            behavior = obj.get("behavior", "Isolated")
            if behavior not in SPLIT_BEHAVIORS:
                raise LoadError(f"Unsupported split behavior {behavior!r}")
            return cls(
                type=type_,
                pattern=pattern,
                pattern_is_regex=is_regex,
                behavior=behavior,
                invert=get_bool(obj, "invert", False),
            )
        if type_ == "Digits":
            return cls(
                type=type_,
                individual_digits=get_bool(obj, "individual_digits", False),
            )
        if type_ == "Metaspace":
            # Older descriptors carry `add_prefix_space` instead of `prepend_scheme`
            legacy_scheme = "always" if get_bool(obj, "add_prefix_space", True) else "never"
            prepend_scheme = _get_str(obj, "prepend_scheme", legacy_scheme)
            if prepend_scheme not in PREPEND_SCHEMES:
                raise LoadError(f"Unsupported prepend scheme {prepend_scheme!r}")
            return cls(
                type=type_,
                replacement=_get_str(obj, "replacement", METASPACE_REPLACEMENT),
                prepend_scheme=prepend_scheme,
                split=get_bool(obj, "split", True),
            )

        children = obj.get("pretokenizers")
        if not isinstance(children, list):
            raise LoadError("A Sequence pre_tokenizer needs a list of `pretokenizers`")
        return cls(type=type_, pretokenizers=tuple(cls.from_json(c) for c in children))

    def iter_configs(self):
        """Yield this config and, for a Sequence, all nested configs."""
        yield self
        for child in self.pretokenizers:
            yield from child.iter_configs()


@dataclass(frozen=True)
class NormalizerConfig:
    type: str

    # Replace
    pattern: str | None = None
    pattern_is_regex: bool = False
    content: str = ""

    # Prepend
    prepend: str = ""

    # Sequence
    normalizers: tuple["NormalizerConfig", ...] = ()

    SUPPORTED = (
        "Replace",
        "Prepend",
        "NFC",
        "NFD",
        "NFKC",
        "NFKD",
        "Lowercase",
        "Sequence",
    )

    @classmethod
    def from_json(cls, obj: dict | None) -> "NormalizerConfig | None":
        if obj is None:
            return None

        type_ = _get_type(obj, cls.SUPPORTED, "normalizer")
        if type_ == "Replace":
            pattern, is_regex = _get_pattern(obj)
            return cls(
                type=type_,
                pattern=pattern,
                pattern_is_regex=is_regex,
                content=_get_str(obj, "content", ""),
            )
        if type_ == "Prepend":
            return cls(type=type_, prepend=_get_str(obj, "prepend", ""))
        if type_ == "Sequence":
            children = obj.get("normalizers")
            if not isinstance(children, list):
                raise LoadError("A Sequence normalizer needs a list of `normalizers`")
            return cls(type=type_, normalizers=tuple(cls.from_json(c) for c in children))
        return cls(type=type_)


@dataclass(frozen=True)
class DecoderConfig:
    type: str

    # ByteLevel
    add_prefix_space: bool = False

    # Metaspace
    replacement: str = METASPACE_REPLACEMENT
    prepend_scheme: str = "always"

    # Replace
    pattern: str | None = None
    pattern_is_regex: bool = False
    content: str = ""

    # Strip
    strip_content: str = " "
    start: int = 0
    stop: int = 0

    # Sequence
    decoders: tuple["DecoderConfig", ...] = ()

    SUPPORTED = (
        "ByteLevel",
        "Metaspace",
        "Replace",
        "ByteFallback",
        "Fuse",
        "Strip",
        "Sequence",
    )

    @classmethod
    def from_json(
        cls, obj: dict | None, pre_tokenizer: PreTokenizerConfig
    ) -> "DecoderConfig | None":
        """Parse the `decoder` section. When it is missing, the decoder is derived
        from the pre-tokenizer: a byte-level pre-tokenizer needs a byte-level
        decoder, and a Metaspace pre-tokenizer needs a Metaspace decoder.
        """
        if obj is None:
            return cls.derive(pre_tokenizer)

        type_ = _get_type(obj, cls.SUPPORTED, "decoder")
        if type_ == "ByteLevel":
            # Suppress the artificial space that the pre-tokenizer puts in front
            byte_level = [
                c for c in pre_tokenizer.iter_configs() if c.type == "ByteLevel"
            ]
            add_prefix_space = any(c.add_prefix_space for c in byte_level)
            return cls(type=type_, add_prefix_space=add_prefix_space)
        if type_ == "Metaspace":
            legacy_scheme = "always" if get_bool(obj, "add_prefix_space", True) else "never"
            prepend_scheme = _get_str(obj, "prepend_scheme", legacy_scheme)
            if prepend_scheme not in PREPEND_SCHEMES:
                raise LoadError(f"Unsupported prepend scheme {prepend_scheme!r}")
            return cls(
                type=type_,
                replacement=_get_str(obj, "replacement", METASPACE_REPLACEMENT),
                prepend_scheme=prepend_scheme,
            )
        if type_ == "Replace":
            pattern, is_regex = _get_pattern(obj)
            return cls(
                type=type_,
                pattern=pattern,
                pattern_is_regex=is_regex,
                content=_get_str(obj, "content", ""),
            )
        if type_ == "Strip":
            return cls(
                type=type_,
                strip_content=_get_str(obj, "content", " "),
                start=_get_int(obj, "start", 0),
                stop=_get_int(obj, "stop", 0),
            )
        if type_ == "Sequence":
            children = obj.get("decoders")
            if not isinstance(children, list):
                raise LoadError("A Sequence decoder needs a list of `decoders`")
            return cls(
                type=type_,
                decoders=tuple(cls.from_json(c, pre_tokenizer) for c in children),
            )
        return cls(type=type_)

    @classmethod
    def derive(cls, pre_tokenizer: PreTokenizerConfig) -> "DecoderConfig | None":
        for config in pre_tokenizer.iter_configs():
            if config.type == "ByteLevel":
                return cls.from_json({"type": "ByteLevel"}, pre_tokenizer)
            if config.type == "Metaspace":
                return cls(
                    type="Metaspace",
                    replacement=config.replacement,
                    prepend_scheme=config.prepend_scheme,
                )
        return None
