from hftok.tokenization.errors import LoadError


class Vocabulary:
    """Two-way mapping between token strings and token ids."""

    def __init__(self, token_to_id: dict[str, int] | None = None):
        self.token_to_id: dict[str, int] = {}
        self.id_to_token: dict[int, str] = {}
        for token, idx in (token_to_id or {}).items():
            if isinstance(idx, bool) or not isinstance(idx, int) or idx < 0:
                raise LoadError(f"Token {token!r} has invalid id {idx!r}")
            if idx in self.id_to_token:
                raise LoadError(
                    f"Tokens {self.id_to_token[idx]!r} and {token!r} share id {idx}"
                )
            self.token_to_id[token] = idx
            self.id_to_token[idx] = token

    def __len__(self) -> int:
        return len(self.token_to_id)

    def __contains__(self, token: str) -> bool:
        return token in self.token_to_id

    def get_id(self, token: str) -> int | None:
        return self.token_to_id.get(token)

    def get_token(self, idx: int) -> str | None:
        return self.id_to_token.get(idx)

    def next_id(self) -> int:
        """The id that a new token would be given: one above the current maximum."""
        return max(self.id_to_token, default=-1) + 1

    def add(self, token: str, idx: int | None = None) -> int:
        """Bind `token` to `idx`, or to the existing/next free id if `idx` is None.

        An explicit `idx` overrides any previous binding of the token and of the id.
        """
        if idx is None:
            existing = self.token_to_id.get(token)
            return existing if existing is not None else self.add(token, self.next_id())

        old_idx = self.token_to_id.pop(token, None)
        if old_idx is not None:
            del self.id_to_token[old_idx]
        old_token = self.id_to_token.pop(idx, None)
        if old_token is not None:
            del self.token_to_id[old_token]

        self.token_to_id[token] = idx
        self.id_to_token[idx] = token
        return idx
