import logging
from dataclasses import dataclass, field
from typing import Any

from hftok.tokenization.config import (
    DecoderConfig,
    NormalizerConfig,
    PreTokenizerConfig,
    get_bool,
)
from hftok.tokenization.errors import LoadError
from hftok.tokenization.merges import MergeRankTable


@dataclass(frozen=True)
class AddedToken:
    """A literal string that bypasses BPE and maps directly to an id.

    Attributes:
        content: the literal string, e.g. "<|eot_id|>".
        id: the id declared in the descriptor, or None to reuse/allocate one.
        single_word: only match when not surrounded by word characters.
        lstrip: absorb any whitespace on the left of the match.
        rstrip: absorb any whitespace on the right of the match.
        normalized: whether the token was meant to match normalized text.
        special: whether the token is a special (control) token.
    """

    content: str
    id: int | None = None
    single_word: bool = False
    lstrip: bool = False
    rstrip: bool = False
    normalized: bool = False
    special: bool = False

    @classmethod
    def from_json(cls, obj: Any) -> "AddedToken":
        if not isinstance(obj, dict):
            raise LoadError(f"Added token {obj!r} must be an object")
        content = obj.get("content")
        if not isinstance(content, str) or not content:
            raise LoadError(f"Added token {obj!r} has no `content` string")
        idx = obj.get("id")
        if idx is not None and (isinstance(idx, bool) or not isinstance(idx, int) or idx < 0):
            raise LoadError(f"Added token {content!r} has invalid id {idx!r}")
        return cls(
            content=content,
            id=idx,
            single_word=get_bool(obj, "single_word", False),
            lstrip=get_bool(obj, "lstrip", False),
            rstrip=get_bool(obj, "rstrip", False),
            normalized=get_bool(obj, "normalized", False),
            special=get_bool(obj, "special", False),
        )


@dataclass
class Descriptor:
    """In-memory form of a `tokenizer.json` file. Only structure is checked here,
    apart from the merge rank table which is built while parsing. Ids are bound by
    the tokenizer when it loads.
    """

    vocab: dict[str, int]
    merges: MergeRankTable
    added_tokens: list[AddedToken] = field(default_factory=list)
    pre_tokenizer: PreTokenizerConfig = field(default_factory=PreTokenizerConfig)
    normalizer: NormalizerConfig | None = None
    decoder: DecoderConfig | None = None
    unk_token: str | None = None
    fuse_unk: bool = False
    byte_fallback: bool = False
    ignore_merges: bool = False
    version: str | None = None

    @classmethod
    def from_json(cls, obj: Any) -> "Descriptor":
        if not isinstance(obj, dict):
            raise LoadError("A tokenizer descriptor must be a JSON object")

        model = obj.get("model")
        if not isinstance(model, dict):
            raise LoadError("The descriptor has no `model` object")

        model_type = model.get("type", "BPE")
        if model_type != "BPE":
            raise LoadError(f"Unsupported model type {model_type!r}, expected 'BPE'")

        vocab = model.get("vocab")
        if not isinstance(vocab, dict):
            raise LoadError("The descriptor has no `model.vocab` object")

        entries = model.get("merges")
        if not isinstance(entries, list):
            raise LoadError("The descriptor has no `model.merges` list")
        merges = MergeRankTable.from_json(entries)

        unk_token = model.get("unk_token")
        if unk_token is not None and not isinstance(unk_token, str):
            raise LoadError(f"`model.unk_token` must be a string, got {unk_token!r}")

        if model.get("dropout") not in (None, 0, 0.0):
            logging.warning("BPE dropout is not supported and will be ignored")

        added_tokens = obj.get("added_tokens") or []
        if not isinstance(added_tokens, list):
            raise LoadError("`added_tokens` must be a list")

        pre_tokenizer = PreTokenizerConfig.from_json(obj.get("pre_tokenizer"))

        return cls(
            vocab=vocab,
            merges=merges,
            added_tokens=[AddedToken.from_json(t) for t in added_tokens],
            pre_tokenizer=pre_tokenizer,
            normalizer=NormalizerConfig.from_json(obj.get("normalizer")),
            decoder=DecoderConfig.from_json(obj.get("decoder"), pre_tokenizer),
            unk_token=unk_token,
            fuse_unk=get_bool(model, "fuse_unk", False),
            byte_fallback=get_bool(model, "byte_fallback", False),
            ignore_merges=get_bool(model, "ignore_merges", False),
            version=obj.get("version"),
        )
