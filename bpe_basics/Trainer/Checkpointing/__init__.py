from .save_checkpoint import save_tokens, TOKEN_DTYPE
from .load_checkpoint import load_tokens

__all__ = [
    "save_tokens",
    "load_tokens",
    "TOKEN_DTYPE"
]
