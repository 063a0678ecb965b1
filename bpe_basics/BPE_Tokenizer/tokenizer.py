import os
from collections import Counter
from typing import (
    Dict,
    Iterable,
    List,
    Tuple,
    Union
)

from bpe_basics.BPE_Tokenizer.symbol_store import N_BYTES
from bpe_basics.Trainer.Checkpointing import load_tokens


TokenId = int
Vocab = Dict[TokenId, bytes]
Pair = Tuple[TokenId, TokenId]
MergeRanks = Dict[Pair, int]


class BPE_Tokenizer:
    """
    Byte Pair Encoding (BPE) tokenizer over a vocabulary learned by BPE_Trainer.
    """
    def __init__(
        self,
        vocab: Vocab,
        merges: List[Pair],
    ):
        """
        Initialize the tokenizer.

        Parameters:
        - vocab (Vocab): Dictionary mapping token IDs to their byte expansion.
        - merges (List[Pair]): Merged id pairs in training order; merge i created id N_BYTES + i.
        """
        self.vocab: Vocab = vocab
        self.merges: List[Pair] = merges
        self.merge_ranks: MergeRanks = {
            merge: i for i, merge in enumerate(merges) # lower index = earlier merge
        }

        for rank, (a, b) in enumerate(merges):
            new_id = N_BYTES + rank
            if vocab.get(new_id) != vocab.get(a, b"") + vocab.get(b, b""):
                raise ValueError(f"merge {rank} ({a}, {b}) does not match vocab entry {new_id}")


    def decode_bytes(
        self,
        token_ids: Iterable[TokenId],
    ) -> bytes:
        """
        Concatenate the byte expansions of `token_ids`.
        """
        try:
            return b"".join(self.vocab[int(i)] for i in token_ids)
        except KeyError as e:
            raise KeyError(f"token id {e.args[0]} is not in the vocabulary") from None


    def decode(
        self,
        token_ids: Iterable[TokenId],
    ) -> str:
        """
        Decode a list of token IDs into a string.
        """
        return self.decode_bytes(token_ids).decode("utf-8", errors = "replace")


    def decode_file(
        self,
        tokens_path: Union[str, os.PathLike],
    ) -> bytes:
        """
        Decode a token stream file written by the trainer back to raw bytes.
        """
        return self.decode_bytes(load_tokens(tokens_path))


    def encode(
        self,
        input: Union[bytes, str],
    ) -> List[TokenId]:
        """
        Encode raw bytes by replaying the merges in training order.

        Each round applies the lowest-ranked pair present in the sequence to
        all of its occurrences, left to right, which is exactly what the trainer
        did on its corpus. Encoding the training corpus therefore reproduces
        the trained token stream.
        """
        if isinstance(input, str):
            input = input.encode("utf-8")

        tokens = list(input)
        while len(tokens) >= 2:
            # lowest-ranked pair present in the current sequence
            ranks = [
                self.merge_ranks[pair]
                for pair in zip(tokens, tokens[1:])
                if pair in self.merge_ranks
            ]
            if not ranks:
                break
            rank = min(ranks)
            tokens = _merge_all(tokens, self.merges[rank], N_BYTES + rank)

        return tokens


    def token_frequencies(
        self,
        token_ids: Iterable[TokenId],
        top_k: int = 20,
    ) -> List[Tuple[TokenId, int, bytes]]:
        """
        Most frequent tokens of a stream with their expansions, most frequent first.
        Ties are listed by ascending token id.
        """
        counts = Counter(int(i) for i in token_ids)
        ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
        return [(token, n, self.vocab[token]) for token, n in ranked[:top_k]]


def _merge_all(
    tokens: List[TokenId],
    pair: Pair,
    new_id: TokenId,
) -> List[TokenId]:
    a, b = pair
    merged = []
    i = 0
    while i < len(tokens):
        if i < len(tokens) - 1 and tokens[i] == a and tokens[i + 1] == b:
            merged.append(new_id)
            i += 2
        else:
            merged.append(tokens[i])
            i += 1
    return merged
