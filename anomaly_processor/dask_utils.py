"""
Dask Utilities Module

Chooses a Dask scheduler for the per-region tasks and runs them behind a
single compute barrier.
"""

import logging
from typing import Any, Dict, List, Tuple

import dask
import psutil
from dask.delayed import Delayed
from dask.diagnostics import ProgressBar

logger = logging.getLogger(__name__)


def configure_dask_resources(config: Dict[str, Any], n_tasks: int) -> Dict[str, Any]:
    """
    Configure Dask scheduler settings based on system capabilities and configuration.

    Args:
        config: Configuration dictionary
        n_tasks: Number of independent tasks to run

    Returns:
        Keyword arguments for dask.compute
    """
    if not config['parallel_processing']:
        logger.info("Parallel processing disabled; using synchronous scheduler")
        return {'scheduler': 'synchronous'}

    cpu_count = psutil.cpu_count(logical=True) or 1

    # Use configured max_workers as upper limit, never more threads than tasks
    n_workers = max(1, min(config['max_workers'], cpu_count, n_tasks))

    dask_config = {
        'scheduler': 'threads',
        'num_workers': n_workers
    }

    logger.info(f"Dask configuration: {dask_config}")
    return dask_config


def compute_tasks(tasks: List[Tuple[str, Delayed]], dask_config: Dict[str, Any],
                  show_progress: bool = False) -> Dict[str, Any]:
    """
    Compute keyed delayed tasks together.

    Results are matched to keys by submission order, never by completion
    order.

    Args:
        tasks: List of (key, delayed task) pairs
        dask_config: Output of configure_dask_resources
        show_progress: Display a Dask progress bar while computing

    Returns:
        Dictionary of results by key
    """
    keys = [key for key, _ in tasks]
    lazy_results = [task for _, task in tasks]

    logger.debug(f"Computing {len(tasks)} tasks: {keys}")

    if show_progress:
        with ProgressBar():
            results = dask.compute(*lazy_results, **dask_config)
    else:
        results = dask.compute(*lazy_results, **dask_config)

    return dict(zip(keys, results))
