import unittest

from hftok.tokenization.config import NormalizerConfig
from hftok.tokenization.normalizers import (
    Lowercase,
    Prepend,
    Replace,
    Sequence,
    UnicodeNormalizer,
    create_normalizer,
)


class TestNormalizers(unittest.TestCase):
    def test_replace(self):
        self.assertEqual(Replace(" ", "▁").normalize("Hello world"), "Hello▁world")
        self.assertEqual(
            Replace(".", "!").normalize("a.b"),
            "a!b",
            msg="A literal pattern must not be treated as a regex!",
        )
        self.assertEqual(Replace(r"\s+", " ", is_regex=True).normalize("a \t\nb"), "a b")
        self.assertEqual(Replace("a", r"\1").normalize("a"), r"\1")

    def test_prepend(self):
        self.assertEqual(Prepend("▁").normalize("Hello"), "▁Hello")
        self.assertEqual(Prepend("▁").normalize(""), "")

    def test_unicode(self):
        composed = "\u00e9"
        decomposed = "e\u0301"
        self.assertEqual(UnicodeNormalizer("NFC").normalize(decomposed), composed)
        self.assertEqual(UnicodeNormalizer("NFD").normalize(composed), decomposed)
        self.assertEqual(UnicodeNormalizer("NFKC").normalize("\ufb01"), "fi")

    def test_lowercase(self):
        self.assertEqual(Lowercase().normalize("Hello WORLD"), "hello world")

    def test_sequence(self):
        normalizer = Sequence([Prepend("▁"), Replace(" ", "▁")])
        self.assertEqual(normalizer.normalize("Hello world"), "▁Hello▁world")

    def test_create_from_config(self):
        self.assertIsNone(create_normalizer(NormalizerConfig.from_json(None)))

        config = NormalizerConfig.from_json(
            {
                "type": "Sequence",
                "normalizers": [
                    {"type": "NFKC"},
                    {"type": "Lowercase"},
                    {"type": "Replace", "pattern": {"String": " "}, "content": "▁"},
                ],
            }
        )
        normalizer = create_normalizer(config)
        self.assertEqual(normalizer.normalize("Hello \ufb01sh"), "hello▁fish")


if __name__ == "__main__":
    unittest.main()
