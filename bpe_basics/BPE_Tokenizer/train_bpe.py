"""
Byte Pair Encoding (BPE) trainer over a raw byte corpus.

Features:
- Whole corpus kept in one tombstone-marked uint32 array (no re-allocation per merge)
- Pair histogram built once, optionally in parallel, then updated incrementally
- Deterministic most-frequent-pair selection with lexicographic tie-break
- Density-triggered compaction and periodic token stream checkpoints
"""

import os
import time
import argparse
from typing import (
    Dict,
    List,
    Optional,
    Tuple
)

from bpe_basics.BPE_Tokenizer.symbol_store import (
    SymbolStore,
    TOMBSTONE,
    N_BYTES,
    TokenId
)
from bpe_basics.BPE_Tokenizer.pair_histogram import (
    Pair,
    PairCounter,
    count_pairs_mp,
    most_frequent_pair,
    replace_pair,
    MAX_NUM_COUNTERS,
    MIN_CHUNK_SIZE
)
from bpe_basics.BPE_Tokenizer.tokenizer import BPE_Tokenizer
from bpe_basics.Trainer.Checkpointing import save_tokens

Vocab = Dict[TokenId, bytes]

MAX_MERGES = 65000
CHECKPOINT_EVERY = 1000
LOG_EVERY = 100
COMPACTION_DENSITY = 0.707 # compact once fewer than ~70.7% of slots are live
TOKEN_SUFFIX = ".ptok"
DEFAULT_INPUT = "enw3"
REPORT_TOP_K = 20


class BPE_Trainer():
    def __init__(
        self,
        max_merges: int = MAX_MERGES,
        checkpoint_every: int = CHECKPOINT_EVERY,
        log_every: int = LOG_EVERY,
        compaction_density: float = COMPACTION_DENSITY,
        max_num_counters: int = MAX_NUM_COUNTERS,
        min_chunk_size: int = MIN_CHUNK_SIZE,
    ):
        """
        Parameters:
        - max_merges (int): ceiling on the number of merge rounds.
        - checkpoint_every (int): write the token stream every N rounds.
        - log_every (int): print a progress line every N rounds.
        - compaction_density (float): compact the store when the histogram total
          falls below this fraction of the store length.
        - max_num_counters (int): maximum processes for the initial pair count.
        - min_chunk_size (int): minimum symbols per counting process.
        """
        if max_merges < 0:
            raise ValueError(f"max_merges must be non-negative, got {max_merges}")

        if N_BYTES + max_merges >= TOMBSTONE:
            raise ValueError(f"max_merges = {max_merges} would overflow the symbol id range")

        if checkpoint_every <= 0:
            raise ValueError(f"checkpoint_every must be positive, got {checkpoint_every}")

        if log_every <= 0:
            raise ValueError(f"log_every must be positive, got {log_every}")

        if not 0.0 < compaction_density <= 1.0:
            raise ValueError(f"compaction_density must be in (0, 1], got {compaction_density}")

        self.max_merges = max_merges
        self.checkpoint_every = checkpoint_every
        self.log_every = log_every
        self.compaction_density = compaction_density
        self.max_num_counters = max_num_counters
        self.min_chunk_size = min_chunk_size

        # training state, owned exclusively by this trainer
        self.store: Optional[SymbolStore] = None
        self.pair_counts: Optional[PairCounter] = None
        self.vocab: Vocab = {i: bytes([i]) for i in range(N_BYTES)} # every byte
        self.merges: List[Pair] = []
        self.next_id: TokenId = N_BYTES
        self.tokens_path: Optional[str] = None


    def train_bpe(
        self,
        input_path: str,
    ) -> Tuple[Vocab, List[Pair]]:
        """
        Train a BPE vocabulary on the raw bytes of `input_path`.

        This method performs the full pipeline:
        1. Loads the file into a SymbolStore (one symbol per byte).
        2. Runs train(), checkpointing the token stream to `<input_path>.ptok`.
        3. Prints the most frequent tokens of the final stream.

        Parameters:
        - input_path (str): Path to the training corpus.

        Returns:
        - vocab (Vocab): Dictionary mapping token IDs to their byte expansion.
        - merges (List[Pair]): Merged id pairs in order; merge i created id 256 + i.
        """
        start_time = time.perf_counter()
        store = SymbolStore.from_file(input_path)
        end_time = time.perf_counter()
        print(f"[load] {input_path}: {len(store)} bytes in {end_time - start_time:.2f} sec")

        vocab, merges = self.train(store, tokens_path = os.fspath(input_path) + TOKEN_SUFFIX)

        self.print_report()
        return vocab, merges


    def train(
        self,
        store: SymbolStore,
        tokens_path: Optional[str] = None,
    ) -> Tuple[Vocab, List[Pair]]:
        """
        Run merge rounds on `store` until no pair repeats or max_merges is reached.

        The store is mutated in place. When `tokens_path` is given, the alive token
        stream is written there every `checkpoint_every` rounds and once at the end.
        A failing periodic checkpoint is reported and training continues; a failing
        final checkpoint raises.
        """
        self.store = store
        self.tokens_path = tokens_path

        start_time = time.perf_counter()
        self.pair_counts = count_pairs_mp(
            store,
            max_num_counters = self.max_num_counters,
            min_chunk_size = self.min_chunk_size,
        )
        end_time = time.perf_counter()
        print(f"[histogram] {len(self.pair_counts)} unique pairs in {end_time - start_time:.2f} sec")

        start_time = time.perf_counter()
        for step in range(1, self.max_merges + 1):
            if self.one_step(step):
                break
            if step % self.checkpoint_every == 0:
                self.checkpoint(final = False)
        end_time = time.perf_counter()
        print(
            f"[done] {len(self.merges)} merges, {self.store.num_alive()} tokens "
            f"in {end_time - start_time:.2f} sec"
        )

        self.checkpoint(final = True)
        return self.vocab, self.merges


    def one_step(
        self,
        step: int,
    ) -> bool:
        """
        Perform one merge round.

        1. Select the most frequent pair and the histogram total.
        2. Stop if no pair occurs more than once.
        3. Compact the store if the live density has dropped low enough.
        4. Merge the pair into a new id, updating store and histogram.
        5. Extend the vocabulary and advance the id counter.

        Returns:
        - bool: True when training is complete and nothing was merged.
        """
        pair, count, total = most_frequent_pair(self.pair_counts)
        if count <= 1:
            return True

        if total < self.compaction_density * len(self.store):
            old_len = len(self.store)
            removed = self.store.compact()
            if removed:
                print(f"[compact] step {step}: {old_len} -> {len(self.store)} slots")

        new_id = self.next_id
        if step % self.log_every == 0:
            print(f"[step {step:6d}] n = {count} {pair[0]},{pair[1]} -> {new_id}")

        replace_pair(self.store, pair, new_id, self.pair_counts)
        self.pair_counts[pair] = 0 # never re-select a consumed pair

        self._extend_vocab(pair, new_id)
        self.next_id += 1
        return False


    def _extend_vocab(
        self,
        pair: Pair,
        new_id: TokenId,
    ) -> None:
        a, b = pair
        assert a in self.vocab and b in self.vocab, f"merge {pair} uses an unassigned symbol id"
        assert new_id not in self.vocab, f"symbol id {new_id} is already assigned"

        self.vocab[new_id] = self.vocab[a] + self.vocab[b]
        self.merges.append(pair)


    def checkpoint(
        self,
        final: bool = False,
    ) -> Optional[int]:
        """
        Write the current alive token stream to `tokens_path`.
        OSError is re-raised for the final checkpoint only.
        """
        if self.tokens_path is None:
            return None

        try:
            n_tokens = save_tokens(self.store.alive_tokens(), self.tokens_path)
        except OSError as e:
            print(f"[checkpoint] failed to write {self.tokens_path}: {e}")
            if final:
                raise
            return None

        print(f"[checkpoint] {n_tokens} tokens -> {self.tokens_path}")
        return n_tokens


    def print_report(
        self,
        top_k: int = REPORT_TOP_K,
    ) -> None:
        """
        Print the most frequent tokens of the current stream with their expansions.
        """
        tokenizer = BPE_Tokenizer(self.vocab, self.merges)
        for token, n, expansion in tokenizer.token_frequencies(self.store.alive_tokens(), top_k):
            print(f"N = {n} \t tok = {token}: \t {expansion!r}")


def main(
    argv: Optional[List[str]] = None,
) -> None:
    parser = argparse.ArgumentParser(
        description = "Train a byte-level BPE vocabulary and write the corpus token stream."
    )
    parser.add_argument(
        "input_path",
        nargs = "?",
        default = DEFAULT_INPUT,
        help = f"corpus file; tokens are written to <input_path>{TOKEN_SUFFIX}"
    )
    args = parser.parse_args(argv)

    trainer = BPE_Trainer()
    trainer.train_bpe(args.input_path)


if __name__ == "__main__":
    main()
