"""Monte Carlo simulation over random action sequences."""

from dataclasses import dataclass
from typing import Any, Dict, List

import numpy as np

from ..config.schema import Config
from .runner import SimulationResult, SimulationRunner


@dataclass
class MonteCarloSummary:
    """Aggregate statistics across runs."""
    runs: int
    distribution_ratio_mean: float
    distribution_ratio_p5: float
    distribution_ratio_p95: float
    undistributed_mean: float
    runs_with_invariant_errors: int
    rejected_operations: int

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


class MonteCarloRunner:
    """Run the simulator over many seeds."""

    def __init__(self, config: Config):
        """
        Initialize Monte Carlo runner.

        Args:
            config: Base configuration
        """
        self.config = config

    def run(self, num_runs: int = None, random_seed: int = None) -> List[SimulationResult]:
        """
        Run Monte Carlo simulation.

        Args:
            num_runs: Number of runs (defaults to config value)
            random_seed: Base seed; run i uses ``random_seed + i``

        Returns:
            List of simulation results
        """
        if num_runs is None:
            num_runs = self.config.simulation.monte_carlo_runs
        if random_seed is None:
            random_seed = self.config.simulation.random_seed

        runner = SimulationRunner(self.config)
        return [runner.run(random_seed=random_seed + run_idx) for run_idx in range(num_runs)]

    @staticmethod
    def summarize(results: List[SimulationResult]) -> MonteCarloSummary:
        """Compute distribution statistics over a set of runs."""
        if not results:
            raise ValueError("No results to summarize")

        ratios = np.array([r.final_metrics['distribution_ratio'] for r in results], dtype=float)
        # Reward units overflow int64; float is fine for summary statistics
        undistributed = np.array(
            [float(r.final_metrics['undistributed_total']) for r in results], dtype=float
        )
        return MonteCarloSummary(
            runs=len(results),
            distribution_ratio_mean=float(np.mean(ratios)),
            distribution_ratio_p5=float(np.percentile(ratios, 5)),
            distribution_ratio_p95=float(np.percentile(ratios, 95)),
            undistributed_mean=float(np.mean(undistributed)),
            runs_with_invariant_errors=sum(1 for r in results if r.invariant_errors),
            rejected_operations=sum(len(r.rejected) for r in results),
        )
