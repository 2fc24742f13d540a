import concurrent.futures
import logging
import math
import os
from typing import Iterable, List, Optional

from .config import SimulationConfig
from .errors import DidNotConverge
from .models import simulate

logger = logging.getLogger(__name__)


def run_one(config: SimulationConfig, seed: int, model: str, percentiles):
    try:
        return simulate(config, seed, model, percentiles)
    except DidNotConverge as e:
        # the exception takes this seed's slot in place of a record
        logger.debug("seed %s: %s", seed, e)
        return e


def run_chunk(config: SimulationConfig, seeds: List[int], model: str, percentiles) -> list:
    return [run_one(config, seed, model, percentiles) for seed in seeds]


def run_chunk_star(args):
    return run_chunk(*args)


def run_many(
    config: SimulationConfig,
    seeds: Iterable[int],
    model: str = "event",
    percentiles=None,
    workers: Optional[int] = None,
) -> list:
    """
    Run one independent simulation per seed and return the records in seed order.

    Seeds are split into one contiguous chunk per worker process. Each run
    builds its own generator from its seed, so results do not depend on the
    worker count. Nothing is aggregated across seeds.

    A seed that hits a configured ceiling gets its DidNotConverge exception
    in its slot instead of a record; every other failure propagates.
    """
    seeds = list(seeds)
    if not seeds:
        return []
    n_workers = min(workers or os.cpu_count() or 2, len(seeds))
    if n_workers <= 1:
        return run_chunk(config, seeds, model, percentiles)

    chunk_size = math.ceil(len(seeds) / n_workers)
    args_list = [
        (config, seeds[start : start + chunk_size], model, percentiles)
        for start in range(0, len(seeds), chunk_size)
    ]
    logger.info("running %d seeds on %d workers", len(seeds), len(args_list))
    with concurrent.futures.ProcessPoolExecutor(max_workers=len(args_list)) as executor:
        chunked_results = executor.map(run_chunk_star, args_list)
        return [item for chunk in chunked_results for item in chunk]
