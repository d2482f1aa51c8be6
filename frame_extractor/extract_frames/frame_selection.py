import numbers
from typing import List, Sequence

from .errors import InvalidConfigurationError
from .types import FrameRecord


def rank_frames(records: Sequence[FrameRecord]) -> List[FrameRecord]:
    """Order frames by score, best first. Equal scores keep ascending frame index."""
    return sorted(records, key=lambda record: (-record.score, record.index))


def get_keep_count(n_frames: int, percentage: int) -> int:
    """Number of frames kept by a top-N% selection: ceil(n * p / 100), at least one."""
    if (
        isinstance(percentage, bool)
        or not isinstance(percentage, numbers.Integral)
        or not 1 <= percentage <= 100
    ):
        raise InvalidConfigurationError(
            f"Top frames percentage must be in [1, 100], got {percentage!r}"
        )
    if n_frames == 0:
        return 0

    # Integer ceiling
    return max(1, -(-n_frames * percentage // 100))


def select_top_frames(records: Sequence[FrameRecord], percentage: int) -> List[FrameRecord]:
    """Highest-ranked prefix of the frames, sized as a percentage of the total."""
    keep_count = get_keep_count(len(records), percentage)
    return rank_frames(records)[:keep_count]


def select_all_frames(records: Sequence[FrameRecord]) -> List[FrameRecord]:
    return list(records)
