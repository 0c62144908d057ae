"""Export functionality for CSV, JSON, and HTML."""

import json
from dataclasses import asdict
from typing import Any, List

import pandas as pd

from ..simulation.runner import SimulationResult


def states_frame(result: SimulationResult) -> pd.DataFrame:
    """Per-step pool states as a DataFrame.

    Reward quantities exceed int64, so integer columns are kept as Python
    ints (object dtype) rather than coerced to floats.
    """
    df = pd.DataFrame([asdict(state) for state in result.states])
    if not df.empty:
        df['t_days'] = df['t'] / 86400
    return df


def export_csv(result: SimulationResult, filepath: str):
    """Export per-step pool states to CSV."""
    states_frame(result).to_csv(filepath, index=False)


def export_events_csv(result: SimulationResult, filepath: str):
    """Export the simulated action log to CSV."""
    pd.DataFrame(result.events).to_csv(filepath, index=False)


def export_json(result: SimulationResult, filepath: str):
    """Export simulation results to JSON."""
    export_data = {
        'config': result.config.to_dict(),
        'config_hash': result.config.compute_hash(),
        'states': [asdict(state) for state in result.states],
        'events': result.events,
        'final_metrics': result.final_metrics,
        'invariant_errors': result.invariant_errors,
        'rejected': result.rejected,
    }

    with open(filepath, 'w') as f:
        json.dump(export_data, f, indent=2)


def export_html_report(result: SimulationResult, filepath: str, charts: List[Any] = None):
    """Export HTML report with charts."""
    metrics = result.final_metrics
    chart_html = "\n".join(
        f'<div class="chart">{fig.to_html(full_html=False, include_plotlyjs=False)}</div>'
        for fig in (charts or [])
    )
    status = "OK" if not result.invariant_errors else f"{len(result.invariant_errors)} violations"
    html = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <title>Staking Ledger Simulation Report</title>
        <script src="https://cdn.plot.ly/plotly-latest.min.js"></script>
        <style>
            body {{ font-family: Arial, sans-serif; margin: 20px; }}
            h1 {{ color: #333; }}
            .metric {{ margin: 10px 0; padding: 10px; background: #f5f5f5; }}
            .chart {{ margin: 20px 0; }}
        </style>
    </head>
    <body>
        <h1>Staking Ledger Simulation Report</h1>

        <div class="metric">
            <h2>Configuration Hash</h2>
            <p>{result.config.compute_hash()}</p>
        </div>

        <div class="metric">
            <h2>Final Metrics</h2>
            <ul>
                <li>Funded: {metrics.get('funded_total', 0)}</li>
                <li>Claimed: {metrics.get('claimed_total', 0)}</li>
                <li>Owed: {metrics.get('unclaimed_total', 0)}</li>
                <li>Distribution ratio: {metrics.get('distribution_ratio', 0.0):.4f}</li>
                <li>Invariants: {status}</li>
            </ul>
        </div>
        {chart_html}
        <div class="metric">
            <h2>Configuration</h2>
            <pre>{json.dumps(result.config.to_dict(), indent=2)}</pre>
        </div>
    </body>
    </html>
    """

    with open(filepath, 'w') as f:
        f.write(html)
