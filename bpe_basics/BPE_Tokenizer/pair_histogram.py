"""
Adjacent-pair histogram for BPE training.

Features:
- One full scan to build the histogram (optionally split across processes)
- Deterministic most-frequent-pair selection with lexicographic tie-break
- In-place pair replacement that updates the histogram incrementally,
  touching only the neighbors of each merge site
"""

import os
import multiprocessing as mp
import numpy as np
from collections import defaultdict, Counter
from typing import (
    DefaultDict,
    List,
    Optional,
    Tuple
)

from bpe_basics.utils import find_chunk_boundaries
from bpe_basics.BPE_Tokenizer.symbol_store import (
    SymbolStore,
    TOMBSTONE,
    TokenId
)

Pair = Tuple[TokenId, TokenId]
PairCounter = DefaultDict[Pair, int]

MIN_CHUNK_SIZE = 4 * 1024 * 1024 # 4M symbols
MAX_NUM_COUNTERS = 64


def count_pairs(store: SymbolStore) -> PairCounter:
    """
    Count every ordered pair of consecutive alive symbols with a single
    PairWindow scan over the store.
    """
    pair_counts = defaultdict(int)
    data = store.data
    for p1, p2 in store.pairs():
        pair_counts[(int(data[p1]), int(data[p2]))] += 1
    return pair_counts


def count_pairs_mp(
    store: SymbolStore,
    max_num_counters: int = MAX_NUM_COUNTERS,
    min_chunk_size: int = MIN_CHUNK_SIZE,
) -> PairCounter:
    """
    Count pairs in parallel over disjoint ranges of the alive sequence.

    Steps:
    1. Gather the alive symbols into a dense array.
    2. Split it into ranges; each range also carries the first symbol of the
       next range so the pair straddling a boundary is counted exactly once.
    3. Count each range in a worker process and sum the partial counters.

    Falls back to count_pairs() when everything fits into a single chunk.

    Parameters:
    - store (SymbolStore): corpus to scan.
    - max_num_counters (int): maximum number of counting processes.
    - min_chunk_size (int): minimum number of symbols per chunk.

    Returns:
    - PairCounter: same histogram count_pairs() would produce.
    """
    alive = store.data[store.data != TOMBSTONE]
    boundaries = find_chunk_boundaries(
        num_items = len(alive),
        desired_num_chunks = max_num_counters,
        min_chunk_size = min_chunk_size,
    )

    if len(boundaries) <= 2:
        return count_pairs(store)

    chunks = [
        alive[boundaries[i] : boundaries[i + 1] + 1]
        for i in range(len(boundaries) - 1)
    ]

    # leave half CPUs free for OS and I/O
    num_procs = min(
        max(1, (os.cpu_count() or 2) // 2),
        len(chunks),
    )

    pair_counts = Counter()
    with mp.Pool(processes=num_procs) as pool:
        for c in pool.imap_unordered(_count_chunk_process, chunks, chunksize=1):
            pair_counts.update(c)

    return defaultdict(int, pair_counts)


def _count_chunk_process(chunk: np.ndarray) -> Counter:
    symbols = chunk.tolist()
    return Counter(zip(symbols, symbols[1:]))


def most_frequent_pair(
    pair_counts: PairCounter,
) -> Tuple[Optional[Pair], int, int]:
    """
    Select the pair to merge next.

    The highest count wins; on a tie the lexicographically smaller pair wins.
    Entries with a count <= 0 can never win. The sum of all counts is
    accumulated in the same pass.

    Returns:
    - pair (Optional[Pair]): winning pair, None if no entry has a positive count.
    - count (int): its count (0 when pair is None).
    - total (int): sum of all histogram counts.
    """
    best_pair = None
    best_count = 0
    total = 0
    for pair, count in pair_counts.items():
        total += count
        if count > best_count or (count == best_count and best_pair is not None and pair < best_pair):
            best_pair = pair
            best_count = count
    return best_pair, best_count, total


def _decrement(pair_counts: PairCounter, pair: Pair) -> None:
    assert pair in pair_counts, f"histogram inconsistency: pair {pair} was never counted"
    pair_counts[pair] -= 1


def replace_pair(
    store: SymbolStore,
    pair_to_be_merged: Pair,
    new_id: TokenId,
    pair_counts: PairCounter,
) -> int:
    """
    Merge every occurrence of `pair_to_be_merged` into `new_id`, left to right,
    and update the histogram for the neighbors of each merge site.

    For an occurrence (a, b) with left neighbor l and right neighbor r:
        (l, a) -= 1, (l, new_id) += 1
        (b, r) -= 1, (new_id, r) += 1

    The count of (a, b) itself is left stale; the caller zeroes it.
    The vocabulary is not touched.

    Returns:
    - int: number of occurrences merged.
    """
    a, b = pair_to_be_merged
    data = store.data
    pairs = store.pairs()
    n_merged = 0

    for p1, p2 in pairs:
        if data[p1] != a or data[p2] != b:
            continue

        data[p1] = new_id
        data[p2] = TOMBSTONE
        n_merged += 1

        left, right = pairs.after_replace(p1)

        if left is not None:
            left_val = int(data[left])
            _decrement(pair_counts, (left_val, a))
            pair_counts[(left_val, new_id)] += 1

        if right is not None:
            right_val = int(data[right])
            _decrement(pair_counts, (b, right_val))
            pair_counts[(new_id, right_val)] += 1

    return n_merged


def positive_counts(pair_counts: PairCounter) -> List[Tuple[Pair, int]]:
    """Sorted (pair, count) entries with a positive count, for comparisons and reports."""
    return sorted((pair, count) for pair, count in pair_counts.items() if count > 0)
