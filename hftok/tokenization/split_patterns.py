# Pattern used by the ByteLevel pre-tokenizer to split text into words. Requires
# `regex`, since the standard library `re` has no support for \p{L} and \p{N}.
GPT2_SPLIT_PATTERN = r"""'s|'t|'re|'ve|'m|'ll|'d| ?\p{L}+| ?\p{N}+| ?[^\s\p{L}\p{N}]+|\s+(?!\S)|\s+"""  # fmt: skip
