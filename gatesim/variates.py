import numpy as np


class VariateGenerator:
    """
    Seeded source of breakage trials and jittered durations for one run.

    Every run builds its own generator; nothing here touches numpy's global
    state, so runs with different seeds can share a process or a pool.
    """

    def __init__(self, break_chance: float, seed: int):
        self.break_chance = break_chance
        self.rng = np.random.default_rng(seed)

    def breaks(self) -> bool:
        return bool(self.rng.random() < self.break_chance)

    def jittered(self, mean: int) -> int:
        # Gaussian with sd = mean/4; negative draws clamp to 0, which squashes the left tail
        dt = self.rng.normal(mean, mean / 4.0)
        return max(0, int(round(dt)))
