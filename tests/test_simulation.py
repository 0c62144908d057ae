"""Tests for the random-action simulator, exports and CLI.

The simulator checks every ledger invariant after each step, so a clean
run over many interleavings of stake, withdraw, claim, exit and re-funding
is itself the conservation and monotonicity test.
"""

import json

import pytest
import sys
import os

import plotly.graph_objects as go

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from stakeledger.cli import main
from stakeledger.config.loader import config_from_dict
from stakeledger.reporting.charts import create_claims_chart, create_rewards_chart, create_staking_chart
from stakeledger.reporting.export import (
    export_csv,
    export_events_csv,
    export_html_report,
    export_json,
    states_frame,
)
from stakeledger.simulation.monte_carlo import MonteCarloRunner
from stakeledger.simulation.runner import FRACTION_SCALE, SimulationRunner, stake_size


def small_config(**simulation):
    settings = {'num_accounts': 4, 'steps': 150, 'max_step_seconds': 12 * 3600, 'monte_carlo_runs': 3}
    settings.update(simulation)
    return config_from_dict({'simulation': settings})


@pytest.fixture(scope="module")
def result():
    return SimulationRunner(small_config()).run(random_seed=7)


class TestSimulationRunner:
    """Tests for a single simulated run."""

    def test_runs_all_steps(self, result):
        assert len(result.states) == 150

    def test_invariants_hold(self, result):
        assert result.invariant_errors == []

    def test_rewards_never_exceed_funding(self, result):
        metrics = result.final_metrics
        assert metrics['distributed_total'] <= metrics['funded_total']
        assert 0.0 <= metrics['distribution_ratio'] <= 1.0
        for state in result.states:
            assert state.claimed_cumulative + state.unclaimed <= state.funded_cumulative

    def test_accumulator_monotonic(self, result):
        values = [s.reward_per_unit for s in result.states]
        assert values == sorted(values)

    def test_fundings_counted(self, result):
        metrics = result.final_metrics
        assert metrics['fundings'] >= 1
        assert metrics['funded_total'] == metrics['fundings'] * 20 * 10 ** 18

    def test_claims_add_up(self, result):
        metrics = result.final_metrics
        assert sum(metrics['claimed_by_account'].values()) == metrics['claimed_total']

    def test_deterministic_for_seed(self):
        runner = SimulationRunner(small_config(steps=60))
        assert runner.run(random_seed=3).final_metrics == runner.run(random_seed=3).final_metrics

    def test_idle_pool_keeps_rewards_undistributed(self):
        """With only idle actions nothing is staked and nothing is distributed."""
        idle_only = {'stake': 0, 'withdraw': 0, 'claim': 0, 'exit': 0, 'idle': 1}
        result = SimulationRunner(small_config(steps=20, actions=idle_only)).run()
        assert result.final_metrics['distributed_total'] == 0
        assert result.final_metrics['num_accounts_touched'] == 0
        assert result.invariant_errors == []


class TestStakeSize:
    """Stake sizing stays exact for 18-decimal balances."""

    def test_exact_for_large_balances(self):
        free = 10 ** 27 + 7
        assert stake_size(free, FRACTION_SCALE, 1.0) == free
        assert stake_size(free, FRACTION_SCALE, 0.5) == free // 2
        assert stake_size(free, FRACTION_SCALE // 4, 0.5) == free // 8

    def test_small_draws_round_down(self):
        assert stake_size(10, 1, 0.5) == 0


class TestMonteCarlo:
    """Tests for multi-seed runs."""

    def test_summary(self):
        config = small_config(steps=40)
        runner = MonteCarloRunner(config)
        results = runner.run()
        summary = runner.summarize(results)
        assert summary.runs == 3
        assert summary.runs_with_invariant_errors == 0
        assert 0.0 <= summary.distribution_ratio_p5 <= summary.distribution_ratio_p95 <= 1.0

    def test_empty_summary_rejected(self):
        with pytest.raises(ValueError):
            MonteCarloRunner.summarize([])


class TestReporting:
    """Tests for exports and charts."""

    def test_states_frame(self, result):
        df = states_frame(result)
        assert len(df) == 150
        assert 't_days' in df.columns
        assert int(df['funded_cumulative'].iloc[-1]) == result.final_metrics['funded_total']

    def test_export_csv(self, result, tmp_path):
        path = tmp_path / "states.csv"
        export_csv(result, str(path))
        lines = path.read_text().splitlines()
        assert lines[0].startswith("t,")
        assert len(lines) == 151

    def test_export_events_csv(self, result, tmp_path):
        path = tmp_path / "events.csv"
        export_events_csv(result, str(path))
        assert "action" in path.read_text().splitlines()[0]

    def test_export_json(self, result, tmp_path):
        path = tmp_path / "result.json"
        export_json(result, str(path))
        data = json.loads(path.read_text())
        assert data['config_hash'] == result.config.compute_hash()
        assert len(data['states']) == 150
        assert data['final_metrics']['funded_total'] == result.final_metrics['funded_total']

    def test_charts(self, result):
        staking = create_staking_chart(result.states)
        rewards = create_rewards_chart(result.states)
        claims = create_claims_chart(result.final_metrics['claimed_by_account'])
        assert isinstance(staking, go.Figure)
        assert len(staking.data) == 2
        assert len(rewards.data) == 3
        assert len(claims.data) == 1

    def test_html_report(self, result, tmp_path):
        path = tmp_path / "report.html"
        export_html_report(result, str(path), [create_rewards_chart(result.states)])
        html = path.read_text()
        assert "Staking Ledger Simulation Report" in html
        assert result.config.compute_hash() in html


class TestCli:
    """Tests for the command-line entry point."""

    def test_simulate(self, tmp_path, capsys):
        out = tmp_path / "run.json"
        code = main(["simulate", "--steps", "30", "--seed", "1", "--json", str(out)])
        assert code == 0
        assert out.exists()
        printed = json.loads(capsys.readouterr().out)
        assert printed['funded_total'] > 0

    def test_check_config(self, capsys):
        assert main(["check-config"]) == 0

    def test_montecarlo(self, tmp_path, capsys):
        config_path = tmp_path / "small.yaml"
        config_path.write_text("simulation:\n  steps: 20\n  num_accounts: 3\n")
        assert main(["--config", str(config_path), "montecarlo", "--runs", "2"]) == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary['runs'] == 2
