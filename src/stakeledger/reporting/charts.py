"""Chart generation using Plotly."""

from typing import Dict, List

import plotly.graph_objects as go

from ..simulation.runner import PoolState

THEME = {
    "text": "#e8eaed",
    "text_secondary": "#9aa0a6",
    "grid": "rgba(30, 33, 36, 0.8)",
    "cyan": "#00d4ff",
    "cyan_fill": "rgba(0, 212, 255, 0.12)",
    "amber": "#ffab00",
    "amber_fill": "rgba(255, 171, 0, 0.12)",
    "red": "#ff5252",
    "green": "#00e676",
}

TOKEN_UNIT = 10 ** 18


def apply_dark_layout(fig: go.Figure, title: str, x_title: str, y_title: str, showlegend: bool = True) -> None:
    """Apply the dark chart theme."""
    fig.update_layout(
        title={"text": title, "x": 0, "xanchor": "left",
               "font": {"size": 11, "color": THEME["text_secondary"]}},
        xaxis_title=x_title,
        yaxis_title=y_title,
        hovermode="x unified",
        template="plotly_dark",
        height=340,
        margin=dict(l=50, r=20, t=40, b=40),
        showlegend=showlegend,
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="left", x=0,
                    bgcolor="rgba(0,0,0,0)"),
        plot_bgcolor="rgba(8, 9, 10, 1)",
        paper_bgcolor="rgba(8, 9, 10, 1)",
        font={"color": THEME["text"], "size": 11},
        xaxis=dict(gridcolor=THEME["grid"], zerolinecolor=THEME["grid"]),
        yaxis=dict(gridcolor=THEME["grid"], zerolinecolor=THEME["grid"]),
    )


def _days(states: List[PoolState]) -> List[float]:
    return [s.t / 86400 for s in states]


def create_staking_chart(states: List[PoolState]) -> go.Figure:
    """Total staked (left axis) and reward rate (right axis) over time."""
    times = _days(states)

    fig = go.Figure()

    fig.add_trace(go.Scatter(
        x=times,
        y=[s.total_staked / TOKEN_UNIT for s in states],
        name='Total Staked',
        mode='lines',
        line=dict(color=THEME["cyan"], width=2),
        fill='tozeroy',
        fillcolor=THEME["cyan_fill"]
    ))

    fig.add_trace(go.Scatter(
        x=times,
        y=[s.reward_rate / TOKEN_UNIT * 86400 for s in states],
        name='Reward Rate (per day)',
        mode='lines',
        line=dict(color=THEME["amber"], width=2, shape='hv'),
        yaxis='y2'
    ))
    apply_dark_layout(fig, "Stake and Reward Rate", "Time (days)", "Tokens staked")
    fig.update_layout(yaxis2=dict(overlaying='y', side='right', showgrid=False,
                                  title='Rewards per day'))

    return fig


def create_rewards_chart(states: List[PoolState]) -> go.Figure:
    """Funded, claimed and owed rewards over time."""
    times = _days(states)

    fig = go.Figure()

    fig.add_trace(go.Scatter(
        x=times,
        y=[s.funded_cumulative / TOKEN_UNIT for s in states],
        name='Funded',
        mode='lines',
        line=dict(color=THEME["text_secondary"], width=2, dash='dot', shape='hv')
    ))

    fig.add_trace(go.Scatter(
        x=times,
        y=[s.claimed_cumulative / TOKEN_UNIT for s in states],
        name='Claimed',
        mode='lines',
        line=dict(color=THEME["green"], width=2),
        fill='tozeroy',
    ))

    fig.add_trace(go.Scatter(
        x=times,
        y=[(s.claimed_cumulative + s.unclaimed) / TOKEN_UNIT for s in states],
        name='Claimed + Owed',
        mode='lines',
        line=dict(color=THEME["amber"], width=2),
        fill='tonexty',
        fillcolor=THEME["amber_fill"]
    ))
    apply_dark_layout(fig, "Reward Distribution", "Time (days)", "Reward tokens")

    return fig


def create_claims_chart(claimed_by_account: Dict[str, int]) -> go.Figure:
    """Bar chart of rewards claimed per account."""
    accounts = sorted(claimed_by_account)
    fig = go.Figure(go.Bar(
        x=accounts,
        y=[claimed_by_account[a] / TOKEN_UNIT for a in accounts],
        marker_color=THEME["cyan"],
    ))
    apply_dark_layout(fig, "Claimed Rewards by Account", "Account", "Reward tokens", showlegend=False)
    return fig
