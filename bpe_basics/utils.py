from typing import List


class TeeStdout:
    """
    Helper class to tee stdout to multiple streams, e.g. console and a log file
    """
    def __init__(self, *streams):
        self.streams = streams

    # write progress lines to every stream immediately
    def write(self, data):
        for s in self.streams:
            s.write(data)
            s.flush()
        return len(data)

    def flush(self):
        for s in self.streams:
            s.flush()


def find_chunk_boundaries(
    num_items: int,
    desired_num_chunks: int = 64,
    min_chunk_size: int = 4 * 1024 * 1024,
) -> List[int]:
    """
    Split the index range [0, num_items) into parts that can be counted independently.
    May return fewer chunks than desired when min_chunk_size dominates.

    Returns:
    - List[int]: sorted unique boundaries, starting at 0 and ending at num_items.
    """
    if desired_num_chunks <= 0:
        raise ValueError(f"desired_num_chunks must be positive, got {desired_num_chunks}")

    if min_chunk_size <= 0:
        raise ValueError(f"min_chunk_size must be positive, got {min_chunk_size}")

    chunk_size = max(min_chunk_size, num_items // desired_num_chunks)

    # uniformly spaced boundaries, clipped to the end of the range
    chunk_boundaries = [min(i * chunk_size, num_items) for i in range(desired_num_chunks + 1)]
    chunk_boundaries[-1] = num_items

    return sorted(set(chunk_boundaries))
