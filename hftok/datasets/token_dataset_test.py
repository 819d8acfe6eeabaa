import os
import unittest

import torch
from torch.utils.data import DataLoader

from hftok.datasets.token_dataset import TokenDataset
from hftok.tokenization.hf_tokenizer import HFTokenizer

TESTDATA_PATH = os.path.join(
    os.path.dirname(__file__), "..", "tokenization", "testdata", "test_hf_tokenizer.json"
)


class TestTokenDataset(unittest.TestCase):
    def setUp(self):
        self.tokenizer = HFTokenizer()
        self.tokenizer.load(TESTDATA_PATH)
        self.texts = ["Hello world!", "Hello"]
        self.block_size = 3
        self.dataset = TokenDataset(self.tokenizer, self.texts, self.block_size)

    def test_data(self):
        # Every text is wrapped in bos/eos, which default to id 0 for this tokenizer
        expected_data = torch.tensor([0, 15, 20, 11, 0, 0, 15, 0])
        self.assertTrue(torch.equal(self.dataset.data, expected_data))
        self.assertEqual(self.dataset.data.dtype, torch.long)

    def test_vocab_size(self):
        self.assertEqual(self.dataset.get_vocab_size(), 21)

    def test_len(self):
        self.assertEqual(len(self.dataset), 8 - self.block_size)

        # Not enough tokens for a single example
        dataset = TokenDataset(self.tokenizer, ["Hello"], block_size=10)
        self.assertEqual(len(dataset), 0)

    def test_getitem(self):
        x, y = self.dataset[0]
        self.assertTrue(torch.equal(x, torch.tensor([0, 15, 20])))
        self.assertTrue(torch.equal(y, torch.tensor([15, 20, 11])))

        # The target is the input shifted by one position
        x, y = self.dataset[len(self.dataset) - 1]
        self.assertTrue(torch.equal(x, torch.tensor([0, 0, 15])))
        self.assertTrue(torch.equal(y, torch.tensor([0, 15, 0])))

    def test_dataloader(self):
        B = 2  # Batch size
        num_iter = 0
        dataloader = DataLoader(self.dataset, batch_size=B, drop_last=True)
        for batch_x, batch_y in dataloader:
            self.assertEqual(batch_x.shape, (B, self.block_size))
            self.assertEqual(batch_y.shape, (B, self.block_size))
            num_iter += 1

        expected_num_iter = len(self.dataset) // B
        self.assertEqual(num_iter, expected_num_iter)

    def test_encode_failure(self):
        with self.assertLogs(level="WARNING"):
            with self.assertRaises(ValueError):
                TokenDataset(self.tokenizer, ["xyz"], self.block_size)

    def test_without_load(self):
        with self.assertRaises(ValueError):
            TokenDataset(HFTokenizer(), self.texts, self.block_size)


if __name__ == "__main__":
    unittest.main()
