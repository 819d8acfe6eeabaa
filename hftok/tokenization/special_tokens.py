import dataclasses
import json
import logging
import pathlib
from dataclasses import dataclass, field
from typing import Any

import regex as re

from hftok.tokenization.descriptor import AddedToken
from hftok.tokenization.errors import LoadError
from hftok.tokenization.vocab import Vocabulary

ROLES = ("bos_token", "eos_token", "unk_token", "pad_token")


def _token_content(value: Any, role: str) -> str | None:
    """Role values are either a literal string or an object such as
    {"content": "<s>", "lstrip": false, ...}. A null value leaves the role unbound.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get("content"), str):
        return value["content"]
    raise LoadError(f"Special token {role!r} has invalid value {value!r}")


@dataclass
class SpecialTokensMap:
    """Role bindings read from `special_tokens_map.json` or `tokenizer_config.json`."""

    roles: dict[str, str] = field(default_factory=dict)  # Map role to literal
    additional: list[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, obj: Any) -> "SpecialTokensMap":
        if not isinstance(obj, dict):
            raise LoadError("A special tokens file must contain a JSON object")
        roles = {}
        for role in ROLES:
            content = _token_content(obj.get(role), role)
            if content is not None:
                roles[role] = content
        additional = obj.get("additional_special_tokens") or []
        if not isinstance(additional, list):
            raise LoadError("`additional_special_tokens` must be a list")
        contents = [_token_content(t, "additional_special_tokens") for t in additional]
        return cls(roles=roles, additional=[c for c in contents if c is not None])

    @classmethod
    def from_file(cls, path: str | pathlib.Path) -> "SpecialTokensMap":
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_json(json.load(f))

    def update_missing(self, other: "SpecialTokensMap") -> None:
        """Take over the roles of `other` that are not bound here yet."""
        for role, content in other.roles.items():
            self.roles.setdefault(role, content)
        for content in other.additional:
            if content not in self.additional:
                self.additional.append(content)


class SpecialTokenResolver:
    """Registers added tokens in the vocabulary and binds special token roles
    (bos, eos, unk, pad) to ids.
    """

    def __init__(self, vocab: Vocabulary):
        self.vocab = vocab
        self.tokens: dict[str, AddedToken] = {}  # Map content to token with its id
        self.roles: dict[str, int] = {}  # Map role to id

    def add_tokens(self, tokens: list[AddedToken]) -> None:
        for token in tokens:
            idx = self.vocab.add(token.content, token.id)
            self.tokens[token.content] = dataclasses.replace(token, id=idx)

    def bind_roles(self, tokens_map: SpecialTokensMap) -> None:
        for role, content in tokens_map.roles.items():
            self.roles[role] = self._add_special(content)
            logging.info(f"Bound {role} to {content!r} (id {self.roles[role]})")
        for content in tokens_map.additional:
            self._add_special(content)

    def _add_special(self, content: str) -> int:
        """Id of `content`, inserting it into the vocabulary if needed. The literal is
        also registered as a special added token so that it is matched in text.
        """
        token = self.tokens.get(content)
        if token is not None:
            return token.id
        idx = self.vocab.add(content)
        self.tokens[content] = AddedToken(content=content, id=idx, special=True)
        return idx

    def guess_roles(self) -> None:
        """Pick bos/eos among the special tokens when no file binds them. A bos
        candidate contains "bos" or "begin", an eos candidate contains "eos" or "end".
        With several candidates, the ones mentioning "text" are preferred, e.g.
        "<|begin_of_text|>" over "<|begin_of_thought|>".
        """
        special = [t for t in self.tokens.values() if t.special]
        for role, keywords in (("bos_token", ("bos", "begin")), ("eos_token", ("eos", "end"))):
            if role in self.roles:
                continue
            candidates = [t for t in special if any(k in t.content for k in keywords)]
            if len(candidates) > 1:
                candidates = [t for t in candidates if "text" in t.content] or candidates
            if candidates:
                self.roles[role] = candidates[0].id
                logging.info(f"Guessed {role} to be {candidates[0].content!r}")

    @property
    def added_ids(self) -> dict[str, int]:
        return {content: t.id for content, t in self.tokens.items()}

    def matcher(self) -> "AddedTokenMatcher":
        return AddedTokenMatcher(list(self.tokens.values()))


class AddedTokenMatcher:
    """Finds added tokens in raw text before it is normalized and pre-tokenized.

    At each position the tokens are tried longest first, so "<|end|>" does not cut
    "<|end|>x" short if "<|end|>x" is also an added token. The leftmost match wins.
    """

    def __init__(self, tokens: list[AddedToken]):
        # `sorted` is stable, so tokens of equal length keep their declaration order
        ordered = sorted(tokens, key=lambda t: len(t.content), reverse=True)
        self.group_ids: dict[str, int] = {}
        alternatives = []
        for i, token in enumerate(ordered):
            name = f"t{i}"
            self.group_ids[name] = token.id
            body = re.escape(token.content)
            if token.lstrip:
                body = r"\s*" + body
            if token.rstrip:
                body = body + r"\s*"
            if token.single_word:
                body = r"(?<!\w)" + body + r"(?!\w)"
            alternatives.append(f"(?P<{name}>{body})")
        self.compiled_pattern = re.compile("|".join(alternatives)) if alternatives else None

    def split(self, text: str) -> list[tuple[str, int | None]]:
        """Cut `text` into segments. Each segment is either plain text (with id None)
        or the text of an added token together with its id.
        """
        if self.compiled_pattern is None:
            return [(text, None)] if text else []

        segments = []
        prev_end = 0
        for match in self.compiled_pattern.finditer(text):
            start, end = match.span()
            if start > prev_end:
                segments.append((text[prev_end:start], None))
            segments.append((match.group(), self.group_ids[match.lastgroup]))
            prev_end = end
        if prev_end < len(text):
            segments.append((text[prev_end:], None))
        return segments
