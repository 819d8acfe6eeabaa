import argparse
import logging

from hftok.tokenization.errors import Error
from hftok.tokenization.hf_tokenizer import HFTokenizer

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def main() -> None:
    # fmt: off
    # Parse command line arguments
    parser = argparse.ArgumentParser(description="Byte-level BPE tokenizer for tokenizer.json files")
    parser.add_argument("--tokenizer", type=str, required=True, help="Path to tokenizer.json or to a directory containing it")
    parser.add_argument("--text", type=str, default=None, help="Text to encode")
    parser.add_argument("--ids", type=int, nargs="+", default=None, help="Token ids to decode")
    parser.add_argument("--bos", type=int, default=0, help="Number of bos tokens to prepend when encoding")
    parser.add_argument("--eos", type=int, default=0, help="Number of eos tokens to append when encoding")
    # fmt: on

    args = parser.parse_args()
    for arg_name, arg_value in vars(args).items():
        logging.info(f"{arg_name}: {arg_value}")

    if (args.text is None) == (args.ids is None):
        parser.error("Exactly one of --text and --ids is required")

    tokenizer = HFTokenizer()
    error = tokenizer.load(args.tokenizer)
    if error != Error.OK:
        raise SystemExit(f"Could not load tokenizer from {args.tokenizer}")
    logging.info(
        f"Vocabulary size: {tokenizer.vocab_size} | "
        f"bos: {tokenizer.bos_tok()} | eos: {tokenizer.eos_tok()}"
    )

    if args.text is not None:
        result = tokenizer.encode(args.text, bos=args.bos, eos=args.eos)
    else:
        result = tokenizer.decode_ids(args.ids)
    if not result.ok():
        raise SystemExit(f"Tokenizer failed with error {result.error().name}")
    print(result.get())


if __name__ == "__main__":
    main()
