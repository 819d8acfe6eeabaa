import torch
from torch.utils.data import Dataset

from hftok.tokenization.hf_tokenizer import HFTokenizer


class TokenDataset(Dataset):
    """Next-token prediction examples from a list of documents.

    Every document is encoded with the tokenizer and wrapped in bos/eos tokens, and
    all documents are concatenated into a single stream of token ids. Example `idx`
    is the window of `block_size` tokens starting at position `idx`, and its target
    is the same window shifted by one position.
    """

    def __init__(
        self,
        tokenizer: HFTokenizer,
        texts: list[str],
        block_size: int,
        bos: int = 1,
        eos: int = 1,
    ):
        self.tokenizer = tokenizer
        self.block_size = block_size

        ids = []
        for text in texts:
            result = tokenizer.encode(text, bos=bos, eos=eos)
            if not result.ok():
                raise ValueError(f"Could not encode {text!r}: {result.error().name}")
            ids.extend(result.get())
        self.data = torch.tensor(ids, dtype=torch.long)

    def __len__(self) -> int:
        # The target of the last example needs one token beyond its input
        return max(0, self.data.numel() - self.block_size)

    def get_vocab_size(self) -> int:
        return self.tokenizer.vocab_size

    def __getitem__(self, idx: int) -> tuple[torch.Tensor, torch.Tensor]:
        x = self.data[idx : idx + self.block_size]
        y = self.data[idx + 1 : idx + self.block_size + 1]
        return x, y
