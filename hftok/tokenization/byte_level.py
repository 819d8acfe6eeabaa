from hftok.tokenization.errors import DecodeError


def bytes_to_unicode() -> dict[int, str]:
    """Map every byte value 0, ..., 255 to a printable unicode character.

    BPE vocabularies are stored as text, but the tokenizer works on raw bytes. A
    byte such as 32 (space) or 10 (newline) would be awkward to store and read in
    a vocabulary file, and bytes 128-255 on their own are not valid UTF-8. So the
    GPT-2 authors gave every byte a visible stand-in:
        - The 188 bytes that are already printable Latin-1 characters ("!" to "~",
            "¡" to "¬" and "®" to "ÿ") map to themselves.
        - The remaining 68 bytes (control characters, space, etc.) are shifted to
            the code points 256, 257, ..., in increasing byte order.
    For example, the space byte 32 becomes "Ġ" (code point 288) and the newline byte
    10 becomes "Ċ" (code point 266).

    Returns:
        A dictionary mapping each byte value to its printable character.
    """
    printable = (
        list(range(ord("!"), ord("~") + 1))
        + list(range(ord("¡"), ord("¬") + 1))
        + list(range(ord("®"), ord("ÿ") + 1))
    )
    code_points = printable[:]
    n = 0
    for b in range(256):
        if b not in printable:
            printable.append(b)
            code_points.append(256 + n)
            n += 1
    return {b: chr(c) for b, c in zip(printable, code_points)}


BYTE_ENCODER: dict[int, str] = bytes_to_unicode()
BYTE_DECODER: dict[str, int] = {c: b for b, c in BYTE_ENCODER.items()}


def encode_bytes(text: str | bytes) -> str:
    """Convert text (or raw bytes) to its byte-level symbol string. Each byte of
    the UTF-8 encoding becomes exactly one character of the output.
    """
    raw = text.encode("utf-8") if isinstance(text, str) else text
    return "".join(BYTE_ENCODER[b] for b in raw)


def decode_symbols(symbols: str) -> bytes:
    """Inverse of `encode_bytes`: recover the raw bytes behind a symbol string."""
    try:
        return bytes(BYTE_DECODER[c] for c in symbols)
    except KeyError as e:
        raise DecodeError(f"Character {e.args[0]!r} is not a byte-level symbol") from e


def unfinished_tail(data: bytes) -> bytes:
    """The bytes at the end of `data` that begin a UTF-8 character without finishing
    it, e.g. b"\\xc3" for b"caf\\xc3". Empty if the last character is complete.
    """
    # A character is at most 4 bytes, so its lead byte is among the last 4
    for i in range(len(data) - 1, max(len(data) - 5, -1), -1):
        b = data[i]
        if b & 0xC0 == 0x80:  # Continuation byte
            continue
        if b >= 0xF0:
            length = 4
        elif b >= 0xE0:
            length = 3
        elif b >= 0xC0:
            length = 2
        else:
            length = 1
        return data[i:] if len(data) - i < length else b""
    return b""
