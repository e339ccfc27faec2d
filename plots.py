import plotly.graph_objects as go
from dash import html

from utils import AppState, COLOR_BANDS, FALLBACK_COLOR, buoy_units, diff_colors

# ============================================
# 🔹 Map / chart defaults
# ============================================
MAP_CENTER = {'lat': 43.5, 'lon': 34.5}  # Black Sea
MAP_ZOOM = 6
MAP_STYLE = 'open-street-map'
MAP_STYLES = [
    'open-street-map', 'carto-positron', 'carto-darkmatter', 'carto-voyager',
    'basic', 'streets', 'outdoors', 'light', 'dark', 'satellite', 'satellite-streets',
]

TRACK_COLOR = '#FF0000'
MARKER_SIZE = 8
MAP_MARKER_SIZE = 12

MODEL_STYLE = dict(name='NEMO', line=dict(color='red'))
OBS_STYLE = dict(name='ARGO', line=dict(color='blue', dash='dash'))

AXIS_STYLE = dict(
    showgrid=True, gridcolor='rgba(0, 0, 0, 0.1)',
    showline=True, linecolor='black', mirror=True,
    ticks='outside', tickwidth=1, tickcolor='black'
)


def _base_layout(fig, title):
    fig.update_layout(
        title=title,
        showlegend=True,
        paper_bgcolor='white',
        plot_bgcolor='white',
        font=dict(color='black'),
    )
    return fig


def placeholder_figure(text):
    """Empty figure with a centered hint, used before the first selection."""
    fig = go.Figure().add_annotation(
        text=text, x=0.5, y=0.5, xref="paper", yref="paper",
        showarrow=False, font=dict(size=14, color="gray")
    )
    fig.update_layout(
        paper_bgcolor='white', plot_bgcolor='white',
        xaxis=dict(visible=False), yaxis=dict(visible=False)
    )
    return fig


# ============================================================
# === Map: one track and one colored marker per record ===
# ============================================================
def map_figure(state: AppState, center=None, zoom=MAP_ZOOM, style=MAP_STYLE) -> go.Figure:
    """
    Build the buoy map from scratch.

    Each buoy gets a line trace (track, in record order) and a marker trace
    whose colors come from the model-minus-observation difference. Marker
    customdata carries [buoy_id, ISO time, depth] for click handling.
    """
    fig = go.Figure()

    for buoy_id in state.buoy_ids:
        df = state.data[state.data['buoy_id'] == buoy_id]
        if df.empty:
            continue

        fig.add_trace(go.Scattermap(
            lat=df['latitude'],
            lon=df['longitude'],
            mode='lines',
            line=dict(color=TRACK_COLOR, width=2),
            hoverinfo='skip',
            showlegend=False,
            name=f'Track {buoy_id}',
        ))

        hover = [
            f"Buoy {buoy_id}<br>Date: {t:%Y-%m-%d}<br>Depth: {z:g} m"
            for t, z in zip(df['times'], df['depth'])
        ]
        fig.add_trace(go.Scattermap(
            lat=df['latitude'],
            lon=df['longitude'],
            mode='markers',
            marker=dict(size=MAP_MARKER_SIZE, color=diff_colors(df['model_temp'] - df['obs_temp']), opacity=1),
            hovertext=hover,
            hoverinfo='text',
            customdata=[[buoy_id, t.isoformat(), float(z)] for t, z in zip(df['times'], df['depth'])],
            showlegend=False,
            name=f'Buoy {buoy_id}',
        ))

    fig.update_layout(
        map=dict(style=style, center=center or MAP_CENTER, zoom=zoom),
        margin=dict(l=0, r=0, t=0, b=0),
        clickmode='event',
        # keep pan/zoom when the figure is rebuilt
        uirevision='keep',
    )
    return fig


def color_legend():
    """HTML legend for the seven difference bands."""
    bands = [(color, label) for _, color, label in COLOR_BANDS] + [FALLBACK_COLOR]
    return html.Div([
        html.Label('NEMO − ARGO (°C):', className='section-label'),
        *[
            html.Div([
                html.Span(style={
                    'display': 'inline-block', 'width': '12px', 'height': '12px',
                    'borderRadius': '50%', 'backgroundColor': color, 'marginRight': '6px'
                }),
                html.Span(label)
            ])
            for color, label in bands
        ]
    ], className='legend')


# ============================================================
# === Depth profile & anomaly ===
# ============================================================
def profile_figure(df, buoy_id, date) -> go.Figure:
    """Temperature against depth for both sources on one day."""
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=df['model_temp'], y=df['depth'], mode='lines+markers',
                             marker=dict(size=MARKER_SIZE), **MODEL_STYLE))
    fig.add_trace(go.Scatter(x=df['obs_temp'], y=df['depth'], mode='lines+markers',
                             marker=dict(size=MARKER_SIZE), **OBS_STYLE))

    _base_layout(fig, f"Temperature profiles for buoy {buoy_id} ({date:%Y-%m-%d})")
    fig.update_xaxes(title=f"Temperature ({buoy_units['model_temp']})", **AXIS_STYLE)
    # Depth increases downward
    fig.update_yaxes(title=f"Depth ({buoy_units['depth']})", autorange='reversed', **AXIS_STYLE)
    return fig


def anomaly_figure(df, buoy_id) -> go.Figure:
    anomaly = df['model_temp'] - df['obs_temp']

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=anomaly, y=df['depth'], mode='lines+markers',
        name='Anomaly (NEMO - ARGO)',
        line=dict(color='black'),
        marker=dict(size=MARKER_SIZE),
    ))

    _base_layout(fig, f"Temperature anomalies for buoy {buoy_id}")
    fig.update_xaxes(title=f"Temperature anomaly ({buoy_units['anomaly']})", **AXIS_STYLE)
    fig.update_yaxes(title=f"Depth ({buoy_units['depth']})", autorange='reversed', **AXIS_STYLE)
    fig.update_layout(shapes=[dict(
        type='line', x0=0, x1=0,
        y0=float(df['depth'].min()), y1=float(df['depth'].max()),
        xref='x', yref='y',
        line=dict(color='gray', dash='dot')
    )])
    return fig


# ============================================================
# === Time series at one depth ===
# ============================================================
def time_series_figure(df, buoy_id, depth) -> go.Figure:
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=df['times'], y=df['model_temp'], mode='lines+markers',
                             marker=dict(size=MARKER_SIZE), **MODEL_STYLE))
    fig.add_trace(go.Scatter(x=df['times'], y=df['obs_temp'], mode='lines+markers',
                             marker=dict(size=MARKER_SIZE), **OBS_STYLE))

    _base_layout(fig, f"Temperature at {depth:g} m for buoy {buoy_id}")
    fig.update_xaxes(title='Date', **AXIS_STYLE)
    fig.update_yaxes(title=f"Temperature ({buoy_units['model_temp']})", **AXIS_STYLE)
    return fig
