"""
Unit tests for the tokenizer over a learned vocabulary and for the
token stream checkpoint files.
"""

import io
import os
import tempfile
import unittest

import numpy as np

from bpe_basics.BPE_Tokenizer import BPE_Tokenizer
from bpe_basics.Trainer.Checkpointing import save_tokens, load_tokens


def _ababc_vocab():
    vocab = {i: bytes([i]) for i in range(256)}
    vocab[256] = b"ab"
    vocab[257] = b"abab"
    return vocab


class TestBPETokenizer(unittest.TestCase):
    """
    Unit tests for BPE Tokenizer
    """
    def setUp(self):
        self.tokenizer = BPE_Tokenizer(_ababc_vocab(), [(97, 98), (256, 256)])


    def test_01_decode(self):
        self.assertEqual(self.tokenizer.decode_bytes([257, 99, 0]), b"ababc\x00")
        self.assertEqual(self.tokenizer.decode([256, 32, 99]), "ab c")
        self.assertEqual(self.tokenizer.decode([0xff]), "\ufffd")


    def test_02_decode_unknown_id(self):
        with self.assertRaises(KeyError):
            self.tokenizer.decode_bytes([97, 999])


    def test_03_encode_replays_merges_in_order(self):
        self.assertEqual(self.tokenizer.encode(b"ababc"), [257, 99])
        self.assertEqual(self.tokenizer.encode(b"abababc"), [257, 256, 99])
        self.assertEqual(self.tokenizer.encode("xab"), [120, 256])
        self.assertEqual(self.tokenizer.encode(b""), [])


    def test_04_inconsistent_merges_rejected(self):
        with self.assertRaises(ValueError):
            BPE_Tokenizer(_ababc_vocab(), [(98, 97)])


    def test_05_token_frequencies(self):
        report = self.tokenizer.token_frequencies([99, 256, 99, 257, 256, 0], top_k = 2)
        self.assertEqual(report, [(99, 2, b"c"), (256, 2, b"ab")])


class TestTokenCheckpoint(unittest.TestCase):
    def test_01_little_endian_uint32_layout(self):
        buf = io.BytesIO()
        n = save_tokens([1, 256, 65536 + 7], buf)

        self.assertEqual(n, 3)
        self.assertEqual(
            buf.getvalue(),
            b"\x01\x00\x00\x00" b"\x00\x01\x00\x00" b"\x07\x00\x01\x00"
        )


    def test_02_chunked_write_and_load(self):
        tokens = list(range(250, 275))
        buf = io.BytesIO()
        n = save_tokens(iter(tokens), buf, chunk_size = 4)

        self.assertEqual(n, len(tokens))
        buf.seek(0)
        loaded = load_tokens(buf)
        self.assertEqual(loaded.dtype, np.uint32)
        self.assertEqual(loaded.tolist(), tokens)


    def test_03_snapshot_overwrites_previous_content(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            tokens_path = os.path.join(tmpdir, "corpus.ptok")
            save_tokens(range(100), tokens_path)
            save_tokens([7, 8], tokens_path)

            self.assertEqual(os.path.getsize(tokens_path), 8)
            self.assertEqual(load_tokens(tokens_path).tolist(), [7, 8])


    def test_04_truncated_file_rejected(self):
        with self.assertRaises(ValueError):
            load_tokens(io.BytesIO(b"\x01\x00\x00"))


    def test_05_invalid_chunk_size(self):
        with self.assertRaises(ValueError):
            save_tokens([1], io.BytesIO(), chunk_size = 0)


if __name__ == "__main__":
    unittest.main()
