from typing import Dict, Iterable, Optional, Sequence, Union

import numpy as np

UNSET = -1
DEFAULT_TARGETS = (50, 95, 99)


def _check(completed: int, total: int):
    if total <= 0:
        raise ValueError(f"total must be positive, got {total}")
    if not 0 <= completed <= total:
        raise ValueError(f"completed={completed} outside [0, {total}]")


class DensePercentiles:
    """
    Time at which completion first reached each integer percent, 0..100.

    A batch update can jump several buckets at once. With backfill on, the
    skipped buckets take the time of the jump; with it off they stay UNSET.
    """

    def __init__(self, backfill: bool = True):
        self.backfill = backfill
        self.table = np.full(101, UNSET, dtype=np.int64)

    def observe(self, completed: int, total: int, time: int) -> None:
        _check(completed, total)
        bucket = 100 * completed // total
        if not self.backfill:
            if self.table[bucket] == UNSET:
                self.table[bucket] = time
            return
        # buckets fill contiguously from 0, so stop at the first one already set
        for b in range(bucket, -1, -1):
            if self.table[b] != UNSET:
                break
            self.table[b] = time

    @property
    def record(self) -> np.ndarray:
        out = self.table.copy()
        out.flags.writeable = False
        return out

    def is_complete(self) -> bool:
        return bool(self.table[100] != UNSET)

    def time_to(self, percent: int) -> Optional[int]:
        t = int(self.table[percent])
        return None if t == UNSET else t


class SparsePercentiles:
    def __init__(self, targets: Iterable[int] = DEFAULT_TARGETS):
        self.targets = tuple(sorted(set(int(t) for t in targets)))
        if not self.targets:
            raise ValueError("at least one percentile target is required")
        for t in self.targets:
            if not 0 <= t <= 100:
                raise ValueError(f"percentile target {t} outside [0, 100]")
        self.times: Dict[int, Optional[int]] = dict.fromkeys(self.targets)

    def observe(self, completed: int, total: int, time: int) -> None:
        _check(completed, total)
        for t in self.targets:
            if self.times[t] is None and 100 * completed >= t * total:
                self.times[t] = time

    @property
    def record(self) -> Dict[int, Optional[int]]:
        return dict(self.times)

    def is_complete(self) -> bool:
        return all(v is not None for v in self.times.values())

    def time_to(self, percent: int) -> Optional[int]:
        return self.times[percent]

    def ratios(self, base: int = 50) -> Dict[int, Optional[float]]:
        return tail_ratios(self.times, base)


def tail_ratios(times: Dict[int, Optional[int]], base: int = 50) -> Dict[int, Optional[float]]:
    """Tail blow-up: time-to-p / time-to-base for every recorded target above base."""
    t0 = times.get(base)
    out = {}
    for p in sorted(times):
        if p <= base:
            continue
        tp = times[p]
        out[p] = tp / t0 if tp is not None and t0 else None
    return out


Sampler = Union[DensePercentiles, SparsePercentiles]


def make_sampler(policy: Union[str, Sequence[int], None] = "sparse") -> Sampler:
    if policy is None or policy == "sparse":
        return SparsePercentiles()
    if policy == "dense":
        return DensePercentiles(backfill=True)
    if policy == "dense-raw":
        return DensePercentiles(backfill=False)
    if isinstance(policy, str):
        raise ValueError(f"unknown percentile policy {policy!r}")
    return SparsePercentiles(policy)
