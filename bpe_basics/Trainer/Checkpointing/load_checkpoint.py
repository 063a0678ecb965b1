import os
import numpy as np
from typing import BinaryIO, IO, Union

from .save_checkpoint import TOKEN_DTYPE


def load_tokens(
    src: Union[str, os.PathLike, BinaryIO, IO[bytes]],
) -> np.ndarray:
    """
    Load a token stream written by save_tokens().

    Args:
        - src: Token file path or readable binary file object.

    Returns:
        - 1D array of symbol ids in native uint32.
    """
    if hasattr(src, "read"):
        raw = src.read()
    else:
        with open(src, "rb") as f:
            raw = f.read()

    if len(raw) % TOKEN_DTYPE.itemsize != 0:
        raise ValueError(
            f"token stream size {len(raw)} is not a multiple of {TOKEN_DTYPE.itemsize} bytes"
        )

    return np.frombuffer(raw, dtype=TOKEN_DTYPE).astype(np.uint32)
