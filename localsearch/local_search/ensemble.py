from concurrent.futures import ProcessPoolExecutor
from typing import Optional, Sequence

from localsearch.base_model.problem_instance import ProblemInstance
from localsearch.local_search.search_config import SearchConfig
from localsearch.local_search.search_controller import SearchResult, solve

_worker_instance: Optional[ProblemInstance] = None


def _worker_initializer(instance: ProblemInstance) -> None:
    global _worker_instance
    _worker_instance = instance


def _run_in_worker(config: SearchConfig) -> SearchResult:
    return solve(_worker_instance, config)


def pick_best(results: Sequence[SearchResult]) -> SearchResult:
    """Lowest best cost wins. On a tie the earlier run is kept."""
    best = results[0]
    for result in results[1:]:
        if result.best_cost < best.best_cost:
            best = result
    return best


def run_ensemble(instance: ProblemInstance, configs: Sequence[SearchConfig],
                 max_workers: Optional[int] = None) -> tuple[list[SearchResult], SearchResult]:
    """
    Run independent searches on the same instance, one per config, in separate processes.

    Each run builds its own schedule and random source from its config, so the instance is the only
    thing the runs share. Results come back in the order of `configs`, together with the best of them.
    With max_workers=1 the runs execute one after another in this process.
    """
    if not configs:
        raise ValueError("run_ensemble needs at least one config")
    for config in configs:
        config.validate()

    if max_workers == 1:
        results = [solve(instance, config) for config in configs]
    else:
        with ProcessPoolExecutor(max_workers=max_workers, initializer=_worker_initializer, initargs=(instance,)) as executor:
            results = list(executor.map(_run_in_worker, configs))

    return results, pick_best(results)
