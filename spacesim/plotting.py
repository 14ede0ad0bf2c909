"""Post-flight visualization using Plotly.

Builds an interactive dashboard from a simulator's ``FlightHistory``:
- Altitude and speed vs time
- Pitch and throttle vs time
- Apoapsis and periapsis vs time
- Mass vs time

Stage intervals are shaded on every panel.
"""

import plotly.graph_objects as go
from plotly.subplots import make_subplots

from spacesim.simulator import FlightHistory

STAGE_COLORS = [
    'rgba(255,0,0,0.12)',
    'rgba(255,165,0,0.12)',
    'rgba(100,100,255,0.12)',
    'rgba(0,255,0,0.12)',
]


def plot_launch_dashboard(
    history: FlightHistory,
    title: str = "Ascent Telemetry",
    target_altitude: float | None = None,
) -> go.Figure:
    """Create a launch telemetry dashboard.

    Args:
        history: Recorded flight samples
        title: Dashboard title
        target_altitude: Target orbit altitude [m] for reference lines

    Returns:
        Plotly Figure
    """
    df = history.to_dataframe()
    if df.height == 0:
        raise ValueError("Flight history is empty")

    times = df["time"].to_numpy()
    alt_km = df["altitude"].to_numpy() / 1000.0
    apo_km = df["apoapsis"].clip(upper_bound=1e7).to_numpy() / 1000.0
    peri_km = df["periapsis"].to_numpy() / 1000.0
    stages = df["stage_index"].to_numpy()

    fig = make_subplots(
        rows=2, cols=2,
        specs=[
            [{"secondary_y": True}, {"secondary_y": True}],
            [{}, {}],
        ],
        subplot_titles=(
            "Altitude & Speed",
            "Pitch & Throttle",
            "Apoapsis & Periapsis",
            "Mass",
        ),
        vertical_spacing=0.12,
        horizontal_spacing=0.10,
    )

    def add_stage_shading(row, col):
        start = 0
        for i in range(1, len(stages) + 1):
            if i == len(stages) or stages[i] != stages[start]:
                fig.add_vrect(
                    x0=times[start], x1=times[i - 1],
                    fillcolor=STAGE_COLORS[int(stages[start]) % len(STAGE_COLORS)],
                    layer="below", line_width=0,
                    row=row, col=col,
                )
                start = i

    for row, col in ((1, 1), (1, 2), (2, 1), (2, 2)):
        add_stage_shading(row, col)

    # Altitude & Speed
    fig.add_trace(go.Scatter(
        x=times, y=df["surface_speed"].to_numpy(),
        mode='lines',
        line=dict(color='orange', width=2),
        name='Surface Speed',
        hovertemplate='T=%{x:.0f}s<br>V_srf: %{y:.0f} m/s<extra></extra>'
    ), row=1, col=1, secondary_y=False)
    fig.add_trace(go.Scatter(
        x=times, y=df["speed"].to_numpy(),
        mode='lines',
        line=dict(color='white', width=2),
        name='Orbital Speed',
        hovertemplate='T=%{x:.0f}s<br>V: %{y:.0f} m/s<extra></extra>'
    ), row=1, col=1, secondary_y=False)
    fig.add_trace(go.Scatter(
        x=times, y=alt_km,
        mode='lines',
        line=dict(color='cyan', width=3),
        name='Altitude',
        hovertemplate='T=%{x:.0f}s<br>Alt: %{y:.1f} km<extra></extra>'
    ), row=1, col=1, secondary_y=True)

    # Pitch & Throttle
    fig.add_trace(go.Scatter(
        x=times, y=df["pitch"].to_numpy(),
        mode='lines',
        line=dict(color='magenta', width=2),
        name='Pitch',
        hovertemplate='T=%{x:.0f}s<br>Pitch: %{y:.1f} deg<extra></extra>'
    ), row=1, col=2, secondary_y=False)
    fig.add_trace(go.Scatter(
        x=times, y=df["throttle"].to_numpy() * 100.0,
        mode='lines',
        line=dict(color='lime', width=2, dash='dot'),
        name='Throttle',
        hovertemplate='T=%{x:.0f}s<br>Throttle: %{y:.0f}%<extra></extra>'
    ), row=1, col=2, secondary_y=True)

    # Apoapsis & Periapsis
    fig.add_trace(go.Scatter(
        x=times, y=apo_km,
        mode='lines',
        line=dict(color='red', width=2),
        name='Apoapsis',
        hovertemplate='T=%{x:.0f}s<br>Apo: %{y:.1f} km<extra></extra>'
    ), row=2, col=1)
    fig.add_trace(go.Scatter(
        x=times, y=peri_km,
        mode='lines',
        line=dict(color='cyan', width=2),
        name='Periapsis',
        hovertemplate='T=%{x:.0f}s<br>Peri: %{y:.1f} km<extra></extra>'
    ), row=2, col=1)
    if target_altitude is not None:
        fig.add_hline(y=target_altitude / 1000.0, line_dash="dash",
                      line_color="yellow", annotation_text="Target", row=2, col=1)

    # Mass
    fig.add_trace(go.Scatter(
        x=times, y=df["mass"].to_numpy(),
        mode='lines',
        line=dict(color='yellow', width=2),
        name='Mass',
        hovertemplate='T=%{x:.0f}s<br>Mass: %{y:.0f} kg<extra></extra>'
    ), row=2, col=2)

    fig.update_layout(
        title=dict(text=title, font=dict(size=24), x=0.5),
        template='plotly_dark',
        height=800,
        showlegend=True,
        legend=dict(
            orientation="h",
            yanchor="bottom",
            y=1.04,
            xanchor="center",
            x=0.5
        )
    )

    for row, col in ((1, 1), (1, 2), (2, 1), (2, 2)):
        fig.update_xaxes(title_text="Time (s)", row=row, col=col)
    fig.update_yaxes(title_text="Speed (m/s)", row=1, col=1, secondary_y=False)
    fig.update_yaxes(title_text="Altitude (km)", row=1, col=1, secondary_y=True,
                     title_font=dict(color='cyan'), tickfont=dict(color='cyan'))
    fig.update_yaxes(title_text="Pitch (deg)", row=1, col=2, secondary_y=False)
    fig.update_yaxes(title_text="Throttle (%)", row=1, col=2, secondary_y=True)
    fig.update_yaxes(title_text="Altitude (km)", row=2, col=1)
    fig.update_yaxes(title_text="Mass (kg)", row=2, col=2)

    return fig
