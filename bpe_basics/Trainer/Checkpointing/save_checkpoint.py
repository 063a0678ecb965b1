import os
import numpy as np
from itertools import islice
from typing import BinaryIO, IO, Iterable, Union

TOKEN_DTYPE = np.dtype("<u4") # little-endian, same width as the symbol ids
CHUNK_SIZE = 1000000


def save_tokens(
    tokens: Iterable[int],
    out: Union[str, os.PathLike, BinaryIO, IO[bytes]],
    chunk_size: int = CHUNK_SIZE,
) -> int:
    """
    Write a token stream snapshot as fixed-width little-endian unsigned integers.

    The output is overwritten on every call; it holds the current stream only.

    Args:
        - tokens: Iterable of symbol ids, e.g. SymbolStore.alive_tokens().
        - out: Output path or writable binary file object.
        - chunk_size: Number of tokens buffered per write.

    Returns:
        - Number of tokens written.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    if hasattr(out, "write"):
        return _write_chunks(iter(tokens), out, chunk_size)

    with open(out, "wb") as f:
        return _write_chunks(iter(tokens), f, chunk_size)


def _write_chunks(
    it,
    f: Union[BinaryIO, IO[bytes]],
    chunk_size: int,
) -> int:
    n_written = 0
    while True:
        chunk = np.fromiter(islice(it, chunk_size), dtype=TOKEN_DTYPE)
        if chunk.size == 0:
            break
        f.write(chunk.tobytes())
        n_written += chunk.size
    return n_written
