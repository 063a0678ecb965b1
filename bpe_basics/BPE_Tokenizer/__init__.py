from .symbol_store import SymbolStore, AliveWalker, PairWindow, TOMBSTONE
from .pair_histogram import (
    count_pairs,
    count_pairs_mp,
    most_frequent_pair,
    replace_pair
)
from .train_bpe import BPE_Trainer
from .tokenizer import BPE_Tokenizer

__all__ = [
    "SymbolStore",
    "AliveWalker",
    "PairWindow",
    "TOMBSTONE",
    "count_pairs",
    "count_pairs_mp",
    "most_frequent_pair",
    "replace_pair",
    "BPE_Trainer",
    "BPE_Tokenizer"
]
