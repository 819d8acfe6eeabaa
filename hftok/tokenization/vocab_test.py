import unittest

from hftok.tokenization.errors import LoadError
from hftok.tokenization.vocab import Vocabulary


class TestVocabulary(unittest.TestCase):
    def setUp(self):
        self.vocab = Vocabulary({"a": 0, "b": 1, "ab": 5})

    def test_lookup(self):
        self.assertEqual(len(self.vocab), 3)
        self.assertEqual(self.vocab.get_id("ab"), 5)
        self.assertEqual(self.vocab.get_token(1), "b")
        self.assertIsNone(self.vocab.get_id("c"))
        self.assertIsNone(self.vocab.get_token(2))
        self.assertIn("a", self.vocab)

    def test_invalid_ids(self):
        for idx in [-1, "1", 1.0, True, None]:
            with self.assertRaises(LoadError, msg=f"{idx!r} is not a valid id"):
                Vocabulary({"a": idx})

    def test_duplicate_ids(self):
        with self.assertRaises(LoadError):
            Vocabulary({"a": 0, "b": 0})

    def test_add_new_token(self):
        self.assertEqual(self.vocab.next_id(), 6)
        self.assertEqual(
            self.vocab.add("<s>"), 6, msg="A new token is placed above the maximum id"
        )
        self.assertEqual(self.vocab.get_token(6), "<s>")
        self.assertEqual(Vocabulary().next_id(), 0)

    def test_add_existing_token(self):
        self.assertEqual(self.vocab.add("ab"), 5)
        self.assertEqual(len(self.vocab), 3)

    def test_add_with_id(self):
        self.assertEqual(self.vocab.add("<eot>", 128009), 128009)
        self.assertEqual(self.vocab.get_id("<eot>"), 128009)

        # Rebinding a token to a new id removes the old id
        self.vocab.add("a", 3)
        self.assertEqual(self.vocab.get_id("a"), 3)
        self.assertIsNone(self.vocab.get_token(0))

        # Binding an id that is in use removes the token that held it
        self.vocab.add("c", 1)
        self.assertEqual(self.vocab.get_token(1), "c")
        self.assertNotIn("b", self.vocab)


if __name__ == "__main__":
    unittest.main()
