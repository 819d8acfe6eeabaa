import unittest

from hftok.tokenization.byte_level import encode_bytes
from hftok.tokenization.config import DecoderConfig, PreTokenizerConfig
from hftok.tokenization.decoders import (
    ByteFallback,
    ByteLevel,
    Fuse,
    Identity,
    Metaspace,
    Replace,
    Sequence,
    Strip,
    create_decoder,
)
from hftok.tokenization.errors import DecodeError


class TestByteLevel(unittest.TestCase):
    def test_decode(self):
        self.assertEqual(ByteLevel().decode(["Hello", "Ġworld", "!"]), "Hello world!")
        self.assertEqual(ByteLevel().decode(["Ċ"]), "\n")

    def test_prefix_space(self):
        decoder = ByteLevel(add_prefix_space=True)
        self.assertEqual(decoder.decode(["ĠHello", "Ġworld"]), "Hello world")
        self.assertEqual(
            decoder.decode(["ĠHello", "Ġworld"], at_start=False),
            " Hello world",
            msg="Only the space at the start of a sequence was added by the pre-tokenizer!",
        )

    def test_multi_byte_characters(self):
        # "안" is 3 bytes in UTF-8 and here it is spread over 2 tokens
        self.assertEqual(ByteLevel().decode(["ìķ", "Ī"]), "안")
        self.assertIn("�", ByteLevel().decode(["ìķ"]))

    def test_decode_stream(self):
        euro = "€".encode()
        decoder = ByteLevel()
        self.assertEqual(
            decoder.decode_stream(None, encode_bytes(euro[:2]), at_start=True),
            "",
            msg="An unfinished character is held back until the next token!",
        )
        self.assertEqual(
            decoder.decode_stream(encode_bytes(euro[:2]), encode_bytes(euro[2:]), False),
            "€",
        )
        self.assertEqual(
            decoder.decode_stream(
                encode_bytes(b"a" + euro[:1]), encode_bytes(euro[1:] + b"b"), False
            ),
            "€b",
        )
        self.assertEqual(decoder.decode_stream("Hello", "Ġworld", False), " world")

    def test_decode_stream_prefix_space(self):
        decoder = ByteLevel(add_prefix_space=True)
        self.assertEqual(decoder.decode_stream(None, "ĠHello", at_start=True), "Hello")
        self.assertEqual(decoder.decode_stream("ĠHello", "Ġworld", False), " world")

    def test_leading_space_is_stripped_at_start(self):
        # The decoder cannot tell a space typed in the text from the one the
        # pre-tokenizer added, so with add_prefix_space both are removed
        decoder = ByteLevel(add_prefix_space=True)
        self.assertEqual(decoder.decode([encode_bytes(" Hello")]), "Hello")
        self.assertEqual(decoder.decode([encode_bytes("  Hello")]), " Hello")

    def test_outside_alphabet(self):
        with self.assertRaises(DecodeError):
            ByteLevel().decode(["Hello world"])


class TestMetaspace(unittest.TestCase):
    def test_decode(self):
        self.assertEqual(Metaspace().decode(["▁Hello", "▁world"]), "Hello world")
        self.assertEqual(
            Metaspace().decode(["▁Hello", "▁world"], at_start=False), " Hello world"
        )
        self.assertEqual(
            Metaspace(prepend_scheme="never").decode(["▁Hello"]),
            " Hello",
            msg="Nothing was prepended, so nothing is removed!",
        )


class TestDecoders(unittest.TestCase):
    def test_replace(self):
        self.assertEqual(Replace("▁", " ").decode_chain(["▁a", "b▁"], True), [" a", "b "])

    def test_byte_fallback(self):
        self.assertEqual(
            ByteFallback().decode_chain(["<0xE2>", "<0x96>", "<0x81>", "a"], True),
            ["▁", "a"],
        )
        self.assertEqual(
            ByteFallback().decode_chain(["<0xFF>", "<0xFE>", "a"], True),
            ["�", "�", "a"],
            msg="Every byte of an invalid run becomes a replacement character!",
        )
        self.assertEqual(ByteFallback().decode_chain(["<0xZZ>"], True), ["<0xZZ>"])

    def test_fuse(self):
        self.assertEqual(Fuse().decode_chain(["a", "b", "c"], True), ["abc"])

    def test_strip(self):
        decoder = Strip(" ", start=1, stop=0)
        self.assertEqual(decoder.decode(["  a", " b"]), " a b")
        self.assertEqual(decoder.decode([" a"], at_start=False), " a")

        decoder = Strip(" ", start=0, stop=2)
        self.assertEqual(decoder.decode(["a ", "b   "]), "a b ")

    def test_identity(self):
        self.assertEqual(Identity().decode(["a", "b"]), "ab")
        self.assertIsInstance(create_decoder(None), Identity)

    def test_sequence(self):
        decoder = Sequence(
            [Replace("▁", " "), ByteFallback(), Fuse(), Strip(" ", start=1, stop=0)]
        )
        self.assertEqual(decoder.decode(["▁Hello", "<0x21>"]), "Hello!")
        self.assertEqual(decoder.decode(["▁Hello"], at_start=False), " Hello")

    def test_create_from_config(self):
        config = DecoderConfig.from_json({"type": "ByteLevel"}, PreTokenizerConfig())
        decoder = create_decoder(config)
        self.assertIsInstance(decoder, ByteLevel)
        self.assertTrue(decoder.add_prefix_space)


if __name__ == "__main__":
    unittest.main()
