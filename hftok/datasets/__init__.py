from hftok.datasets.token_dataset import TokenDataset
