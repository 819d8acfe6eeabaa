from hftok.tokenization.errors import Error, Result
from hftok.tokenization.hf_tokenizer import HFTokenizer, TokenizerState
