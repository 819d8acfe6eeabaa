import unittest

from hftok.tokenization.utils import get_pair_counts, merge_pair


class TestTokenizerUtils(unittest.TestCase):
    def test_get_pair_counts(self):
        # Test case 1: normal list of symbols
        symbols = ["a", "b", "b", "c", "a", "b"]
        expected_pair_counts = {
            ("a", "b"): 2,
            ("b", "b"): 1,
            ("b", "c"): 1,
            ("c", "a"): 1,
        }
        self.assertEqual(get_pair_counts(symbols), expected_pair_counts)

        # Test case 2: empty list
        self.assertEqual(get_pair_counts([]), {})

        # Test case 3: list with one element
        self.assertEqual(get_pair_counts(["a"]), {})

        # Test case 4: list with repeating consecutive elements
        self.assertEqual(get_pair_counts(["a", "a", "a", "a"]), {("a", "a"): 3})

        # Test case 5: multi-character symbols
        self.assertEqual(
            get_pair_counts(["Ġw", "or", "l", "d"]),
            {("Ġw", "or"): 1, ("or", "l"): 1, ("l", "d"): 1},
        )

    def test_get_pair_counts_update_in_place(self):
        pair_counts = {("a", "b"): 1}
        get_pair_counts(["a", "b", "c"], pair_counts)
        self.assertEqual(pair_counts, {("a", "b"): 2, ("b", "c"): 1})

    def test_merge_pair(self):
        # Test case 1: merging a pair in a normal list
        self.assertEqual(
            merge_pair(["a", "b", "b", "c", "a", "b"], pair=("a", "b")),
            ["ab", "b", "c", "ab"],
            msg="Merging a pair in a normal list should work!",
        )

        # Test case 2: pair is not present in the list
        self.assertEqual(
            merge_pair(["a", "b", "c"], pair=("b", "a")),
            ["a", "b", "c"],
            msg="If the pair is not present, the list should be unchanged!",
        )

        # Test case 3: overlapping occurrences are merged from left to right
        self.assertEqual(
            merge_pair(["a", "a", "a"], pair=("a", "a")),
            ["aa", "a"],
            msg="Only non-overlapping occurrences are merged, leftmost first!",
        )

        # Test case 4: empty list
        self.assertEqual(merge_pair([], pair=("a", "b")), [])


if __name__ == "__main__":
    unittest.main()
