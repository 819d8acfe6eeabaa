import json
import logging
import pathlib
from enum import Enum

import regex as re

from hftok.tokenization.bpe import BytePairEncoder
from hftok.tokenization.decoders import Decoder, create_decoder
from hftok.tokenization.descriptor import Descriptor
from hftok.tokenization.errors import (
    DecodeError,
    EncodeError,
    Error,
    LoadError,
    Result,
)
from hftok.tokenization.normalizers import Normalizer, create_normalizer
from hftok.tokenization.pre_tokenizers import PreTokenizer, create_pre_tokenizer
from hftok.tokenization.special_tokens import (
    AddedTokenMatcher,
    SpecialTokenResolver,
    SpecialTokensMap,
)
from hftok.tokenization.vocab import Vocabulary

TOKENIZER_FILE = "tokenizer.json"
SPECIAL_TOKENS_MAP_FILE = "special_tokens_map.json"
TOKENIZER_CONFIG_FILE = "tokenizer_config.json"

# Returned by `bos_tok` and `eos_tok` when no token is bound to the role
DEFAULT_BOS_ID = 0
DEFAULT_EOS_ID = 0


class TokenizerState(Enum):
    UNINITIALIZED = "uninitialized"
    LOADED = "loaded"
    LOAD_FAILED = "load_failed"


class TokenizerEngine:
    """Everything that `load` builds from a descriptor. An engine is never modified
    after it has been built.
    """

    def __init__(
        self,
        vocab: Vocabulary,
        encoder: BytePairEncoder,
        matcher: AddedTokenMatcher,
        normalizer: Normalizer | None,
        pre_tokenizer: PreTokenizer,
        decoder: Decoder,
        added_tokens: dict[int, str],
        bos_id: int,
        eos_id: int,
    ):
        self.vocab = vocab
        self.encoder = encoder
        self.matcher = matcher
        self.normalizer = normalizer
        self.pre_tokenizer = pre_tokenizer
        self.decoder = decoder
        self.added_tokens = added_tokens  # Map id to content
        self.bos_id = bos_id
        self.eos_id = eos_id

    @classmethod
    def build(
        cls, descriptor: Descriptor, tokens_map: SpecialTokensMap | None = None
    ) -> "TokenizerEngine":
        vocab = Vocabulary(descriptor.vocab)
        merges = descriptor.merges

        resolver = SpecialTokenResolver(vocab)
        resolver.add_tokens(descriptor.added_tokens)
        if tokens_map is not None:
            resolver.bind_roles(tokens_map)
        resolver.guess_roles()

        if descriptor.unk_token is not None:
            unk_id = vocab.get_id(descriptor.unk_token)
            if unk_id is None:
                raise LoadError(
                    f"Unknown token {descriptor.unk_token!r} is not in the vocabulary"
                )
        else:
            unk_id = resolver.roles.get("unk_token")

        encoder = BytePairEncoder(
            vocab,
            merges,
            added_tokens=resolver.added_ids,
            unk_id=unk_id,
            fuse_unk=descriptor.fuse_unk,
            byte_fallback=descriptor.byte_fallback,
            ignore_merges=descriptor.ignore_merges,
        )
        logging.info(
            f"Built tokenizer with {len(vocab)} tokens, {len(merges)} merges and "
            f"{len(resolver.tokens)} added tokens"
        )
        return cls(
            vocab=vocab,
            encoder=encoder,
            matcher=resolver.matcher(),
            normalizer=create_normalizer(descriptor.normalizer),
            pre_tokenizer=create_pre_tokenizer(descriptor.pre_tokenizer),
            decoder=create_decoder(descriptor.decoder),
            added_tokens={idx: content for content, idx in resolver.added_ids.items()},
            bos_id=resolver.roles.get("bos_token", DEFAULT_BOS_ID),
            eos_id=resolver.roles.get("eos_token", DEFAULT_EOS_ID),
        )

    def encode(self, text: str) -> list[int]:
        ids = []
        for i, (segment, idx) in enumerate(self.matcher.split(text)):
            if idx is not None:  # Added token
                ids.append(idx)
                continue
            if self.normalizer is not None:
                segment = self.normalizer.normalize(segment)
            for word in self.pre_tokenizer.pre_tokenize(segment, is_first=i == 0):
                ids.extend(self.encoder.encode_word(word))
        return ids

    def token(self, idx: int) -> str:
        token = self.vocab.get_token(idx)
        if token is None:
            raise DecodeError(f"Token id {idx} is not in the vocabulary")
        return token

    def decode(self, prev_id: int, idx: int) -> str:
        token = self.token(idx)
        if idx in self.added_tokens:
            return token
        # After an added token (e.g. bos) a new segment starts, whose leading space
        # may have been put there by the pre-tokenizer
        at_start = prev_id in self.added_tokens
        prev_token = None if at_start else self.vocab.get_token(prev_id)
        return self.decoder.decode_stream(prev_token, token, at_start)

    def decode_ids(self, ids: list[int]) -> str:
        pieces = []
        run: list[str] = []  # Consecutive ordinary tokens are decoded together
        at_start = True
        for idx in ids:
            token = self.token(idx)
            if idx in self.added_tokens:
                if run:
                    pieces.append(self.decoder.decode(run, at_start=at_start))
                    run = []
                pieces.append(token)
                at_start = True
            else:
                run.append(token)
        if run:
            pieces.append(self.decoder.decode(run, at_start=at_start))
        return "".join(pieces)


def resolve_paths(path: pathlib.Path) -> tuple[pathlib.Path, list[pathlib.Path]]:
    """Find the descriptor and its companion special token files.

    Returns:
        The path of the descriptor and the existing companion files, in order of
        priority. Companions are only looked up when `path` is a directory.
    """
    if path.is_dir():
        companions = [path / SPECIAL_TOKENS_MAP_FILE, path / TOKENIZER_CONFIG_FILE]
        return path / TOKENIZER_FILE, [p for p in companions if p.is_file()]
    return path, []


class HFTokenizer:
    """Byte-level BPE tokenizer that loads a HuggingFace `tokenizer.json`.

    The tokenizer has three states:
        - UNINITIALIZED: nothing has been loaded yet.
        - LOADED: a descriptor has been loaded successfully.
        - LOAD_FAILED: every load attempt so far has failed.
    A failed `load` never discards an engine that was loaded before, so a loaded
    tokenizer stays usable. `encode` and `decode` return `Error.UNINITIALIZED`
    unless the tokenizer is loaded.

    Note: `load` must not run at the same time as other calls on the same instance;
    this is up to the caller. Once loaded, `encode` and `decode` only read immutable
    state and are safe to call from several threads.
    """

    def __init__(self):
        self.state = TokenizerState.UNINITIALIZED
        self._engine: TokenizerEngine | None = None

    def load(self, path: str | pathlib.Path) -> Error:
        """Load a descriptor file, or a directory containing `tokenizer.json` and
        optionally `special_tokens_map.json` and/or `tokenizer_config.json`.
        """
        try:
            engine = self._build_engine(pathlib.Path(path))
        except (OSError, ValueError, re.error) as e:
            # ValueError covers LoadError, JSONDecodeError and UnicodeDecodeError
            logging.warning(f"Failed to load tokenizer from {path}: {e}")
            if self.state != TokenizerState.LOADED:
                self.state = TokenizerState.LOAD_FAILED
            return Error.LOAD_FAILURE

        self._engine = engine
        self.state = TokenizerState.LOADED
        logging.info(f"Loaded tokenizer from {path}")
        return Error.OK

    def _build_engine(self, path: pathlib.Path) -> TokenizerEngine:
        tokenizer_path, companions = resolve_paths(path)
        with open(tokenizer_path, "r", encoding="utf-8") as f:
            descriptor = Descriptor.from_json(json.load(f))

        tokens_map = None
        for companion in companions:
            companion_map = SpecialTokensMap.from_file(companion)
            if tokens_map is None:
                tokens_map = companion_map
            else:
                tokens_map.update_missing(companion_map)
        return TokenizerEngine.build(descriptor, tokens_map)

    def _loaded_engine(self) -> TokenizerEngine | None:
        if self.state != TokenizerState.LOADED:
            return None
        return self._engine

    def encode(self, text: str, bos: int = 0, eos: int = 0) -> Result[list[int]]:
        """Encode `text` to token ids.

        Args:
            text: the text to encode.
            bos: the number of bos tokens to put in front of the ids.
            eos: the number of eos tokens to put after the ids.
        """
        engine = self._loaded_engine()
        if engine is None:
            return Result.failure(Error.UNINITIALIZED)
        try:
            ids = engine.encode(text)
        except EncodeError as e:
            logging.warning(f"Failed to encode {text!r}: {e}")
            return Result.failure(e.error)
        return Result.success([engine.bos_id] * bos + ids + [engine.eos_id] * eos)

    def decode(self, prev_id: int, token_id: int) -> Result[str]:
        """Decode a single token for streaming output. `prev_id` is the token that
        came before it: when that is a special token such as bos, the space that the
        pre-tokenizer added in front of the text is left out. Otherwise a character
        cut between `prev_id` and `token_id` is completed, so joining the results
        gives back the text.
        """
        engine = self._loaded_engine()
        if engine is None:
            return Result.failure(Error.UNINITIALIZED)
        try:
            return Result.success(engine.decode(prev_id, token_id))
        except DecodeError as e:
            logging.warning(f"Failed to decode token {token_id}: {e}")
            return Result.failure(e.error)

    def decode_ids(self, ids: list[int]) -> Result[str]:
        """Decode a whole sequence of ids at once. Unlike joining the results of
        `decode`, characters whose bytes are spread over three or more tokens
        survive.
        """
        engine = self._loaded_engine()
        if engine is None:
            return Result.failure(Error.UNINITIALIZED)
        try:
            return Result.success(engine.decode_ids(ids))
        except DecodeError as e:
            logging.warning(f"Failed to decode {ids}: {e}")
            return Result.failure(e.error)

    def bos_tok(self) -> int:
        engine = self._loaded_engine()
        return DEFAULT_BOS_ID if engine is None else engine.bos_id

    def eos_tok(self) -> int:
        engine = self._loaded_engine()
        return DEFAULT_EOS_ID if engine is None else engine.eos_id

    @property
    def vocab_size(self) -> int:
        engine = self._loaded_engine()
        return 0 if engine is None else len(engine.vocab)

    def token_to_id(self, token: str) -> int | None:
        engine = self._loaded_engine()
        return None if engine is None else engine.vocab.get_id(token)

    def id_to_token(self, token_id: int) -> str | None:
        engine = self._loaded_engine()
        return None if engine is None else engine.vocab.get_token(token_id)
