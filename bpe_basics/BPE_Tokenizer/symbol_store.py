"""
Tombstone-based corpus storage for incremental BPE training.

The corpus is held as one dense uint32 array with one slot per input byte.
Merging a pair never moves data: the merged symbol is written at the first
position and the second position is overwritten with TOMBSTONE. Positions
stay stable, so neighbors of a merge site can be found with a short skip-scan.

- SymbolStore: the array plus load/compaction helpers
- AliveWalker: ascending iterator over non-tombstone positions
- PairWindow: sliding (p1, p2) view over consecutive alive positions
"""

import os
import numpy as np
from typing import (
    Iterator,
    Optional,
    Tuple,
    Union
)

TokenId = int
Position = int

N_BYTES = 256
SYMBOL_DTYPE = np.uint32
TOMBSTONE = int(np.iinfo(SYMBOL_DTYPE).max) # never a literal byte nor an assignable id


class SymbolStore:
    """
    Mutable sequence of symbol ids representing the corpus.
    """
    def __init__(
        self,
        data: Union[bytes, bytearray, np.ndarray, list],
    ):
        if isinstance(data, (bytes, bytearray)):
            data = np.frombuffer(data, dtype=np.uint8)
        self.data: np.ndarray = np.array(data, dtype=SYMBOL_DTYPE) # always a private copy

        if self.data.ndim != 1:
            raise ValueError(f"symbol store must be 1D, got shape {self.data.shape}")


    @classmethod
    def from_file(
        cls,
        input_path: Union[str, os.PathLike],
    ) -> "SymbolStore":
        """
        Read the whole corpus into memory, one symbol per byte.
        I/O errors propagate to the caller.
        """
        with open(input_path, "rb") as f:
            raw = f.read()
        return cls(raw)


    def __len__(self) -> int:
        return len(self.data)

    def __getitem__(self, pos: Position) -> TokenId:
        return int(self.data[pos])

    def __setitem__(self, pos: Position, value: TokenId) -> None:
        self.data[pos] = value


    def is_alive(self, pos: Position) -> bool:
        return self.data[pos] != TOMBSTONE

    def num_alive(self) -> int:
        return int(np.count_nonzero(self.data != TOMBSTONE))

    def walk(self) -> "AliveWalker":
        return AliveWalker(self)

    def pairs(self) -> "PairWindow":
        return PairWindow(self)


    def alive_tokens(self) -> Iterator[TokenId]:
        """Drain a fresh walker and yield the surviving symbol ids in order."""
        data = self.data
        for pos in AliveWalker(self):
            yield int(data[pos])


    def compact(self) -> int:
        """
        Drop every tombstone slot, keeping the relative order of survivors,
        and shrink the store accordingly.

        Returns:
        - int: number of slots removed (0 means the store was already dense).
        """
        mask = self.data != TOMBSTONE
        n_alive = int(np.count_nonzero(mask))
        removed = len(self.data) - n_alive
        if removed == 0:
            return 0

        # boolean indexing keeps order and releases the old buffer
        self.data = self.data[mask]
        return removed


class AliveWalker:
    """
    Lazy ascending walk over the positions of a SymbolStore that do not hold
    TOMBSTONE. A walker is bound to the array it was created on; create a new
    one after compaction.
    """
    def __init__(self, store: SymbolStore):
        self.data = store.data
        self.pos = 0
        self._skip_tombstones()

    def _skip_tombstones(self) -> None:
        data = self.data
        n = len(data)
        while self.pos < n and data[self.pos] == TOMBSTONE:
            self.pos += 1

    def __iter__(self) -> "AliveWalker":
        return self

    def __next__(self) -> Position:
        if self.pos >= len(self.data):
            raise StopIteration
        p = self.pos
        self.pos += 1
        self._skip_tombstones()
        return p


class PairWindow:
    """
    Two-position sliding window over an AliveWalker.

    Iterating yields (p1, p2) position pairs of consecutive alive slots.
    after_replace() resynchronizes the window right after the merge engine
    wrote a merged symbol at p1 and tombstoned p2.
    """
    def __init__(self, store: SymbolStore):
        self.data = store.data
        self.walker = AliveWalker(store)
        self.p1: Optional[Position] = next(self.walker, None)
        self.p2: Optional[Position] = next(self.walker, None)

    def __iter__(self) -> "PairWindow":
        return self

    def __next__(self) -> Tuple[Position, Position]:
        if self.p1 is None or self.p2 is None:
            raise StopIteration
        result = (self.p1, self.p2)
        self.p1 = self.p2
        self.p2 = next(self.walker, None)
        return result


    def after_replace(
        self,
        replace_pos: Position,
    ) -> Tuple[Optional[Position], Optional[Position]]:
        """
        Slide past the tombstone just left behind the merge at `replace_pos`.

        Parameters:
        - replace_pos (Position): slot that now holds the merged symbol.

        Returns:
        - left (Optional[Position]): nearest alive slot before `replace_pos`, or None.
        - right (Optional[Position]): nearest alive slot after the merge site
          (the new p1), or None at end of stream.
        """
        # p1 currently points at the tombstoned second half of the merge
        self.p1 = self.p2
        self.p2 = next(self.walker, None)

        data = self.data
        i = replace_pos - 1
        while i >= 0 and data[i] == TOMBSTONE:
            i -= 1
        left = i if i >= 0 else None

        return left, self.p1
