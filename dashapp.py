import logging
from pathlib import Path
import dash
from dash import dcc, html, ctx, Output, Input, State, no_update

from utils import (
    AppState, initialise, list_buoys, list_depths, parse_date_range,
    filter_selection, filter_profile, filter_time_series, depth_matches, parse_time,
)
from plots import (
    MAP_STYLE, MAP_STYLES, map_figure, color_legend, placeholder_figure,
    profile_figure, anomaly_figure, time_series_figure,
)

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(levelname)s - %(message)s",
    level=logging.INFO
)

# ============================================
# 🔹 Global Constants
# ============================================
WORK_DIR = Path("/dash_data") if Path("/dash_data").is_dir() else Path(".")
DATA_FILE = WORK_DIR / "data" / "buoy_data.json"

PLOT_IDS = ('temp-profile-plot', 'anomaly-plot', 'time-series-plot')
NO_CHANGE = (no_update,) * len(PLOT_IDS)

STATE = AppState()
MAP_SETTINGS = {'style': MAP_STYLE}


# ============================================
# 🔹 Map Renderer
# ============================================
def plot_buoy_tracks(state: AppState, style=MAP_STYLE):
    """Replace the current map with a freshly built one."""
    state.map_figure = map_figure(state, style=style)
    return state.map_figure


# ============================================
# 🔹 Event handlers (independent of Dash)
# ============================================
def on_buoy_changed(state: AppState, buoy_id):
    """Regenerate the depth dropdown for the selected buoy."""
    depths = list_depths(state, buoy_id)
    options = [{'label': f'{z:g} m', 'value': z} for z in depths]
    return options, (depths[0] if depths else None)


def update_plots(state: AppState, buoy_id, date, depth, start=None, end=None):
    """
    Rebuild profile, anomaly and time-series figures for one selection.

    Returns NO_CHANGE when the buoy has no record on that day at that depth,
    so the last good view stays on screen.
    """
    profile = filter_profile(state.data, buoy_id, date)
    if profile.empty or not depth_matches(profile['depth'], depth).any():
        logging.info(f"No records for buoy {buoy_id} on {date} at {depth} m")
        return NO_CHANGE

    day = profile['times'].iloc[0]
    series = filter_time_series(state.data, buoy_id, depth, start, end)
    if series.empty:
        # Selected day lies outside the picked range, show the whole record
        series = filter_time_series(state.data, buoy_id, depth)

    return (
        profile_figure(profile, buoy_id, day),
        anomaly_figure(profile, buoy_id),
        time_series_figure(series, buoy_id, depth),
    )


def on_update_requested(state: AppState, buoy_id, start_date, end_date, depth):
    """Update button: first matching record in range drives the profile."""
    if buoy_id is None or depth is None:
        return NO_CHANGE
    depth = float(depth)
    start, end = parse_date_range(start_date, end_date)
    matches = filter_selection(state.data, buoy_id, start, end, depth)
    if matches.empty:
        logging.info(f"No records for buoy {buoy_id} between {start_date} and {end_date} at {depth} m")
        return NO_CHANGE
    return update_plots(state, buoy_id, matches['times'].iloc[0], depth, start_date, end_date)


def on_marker_clicked(state: AppState, click_data, start_date=None, end_date=None):
    """Map click: customdata of the clicked marker is [buoy_id, time, depth]."""
    try:
        buoy_id, raw_time, depth = click_data['points'][0]['customdata'][:3]
        depth = float(depth)
    except (TypeError, KeyError, IndexError, ValueError):
        return NO_CHANGE
    return update_plots(state, buoy_id, parse_time(raw_time), depth, start_date, end_date)


def dispatch_plots(state: AppState, trigger, click_data, buoy_id, start_date, end_date, depth):
    """Route a plot refresh to the marker or update-button handler."""
    if trigger == 'map':
        return on_marker_clicked(state, click_data, start_date, end_date)
    return on_update_requested(state, buoy_id, start_date, end_date, depth)


# ============================================
# 🔹 CLI Interface
# ============================================
def cli():
    import argparse
    parser = argparse.ArgumentParser(description="NEMO vs ARGO Buoy Dashboard Server")
    parser.add_argument("--host", type=str, default="0.0.0.0", help="Host IP for Dash app")
    parser.add_argument("--port", type=int, default=8050, help="Port for Dash app")
    parser.add_argument("--data", type=Path, default=DATA_FILE, help=f"Buoy JSON file, default is {DATA_FILE}")
    parser.add_argument("--map-style", type=str, default=MAP_STYLE, choices=MAP_STYLES, help="Base map style")
    parser.add_argument("--debug", action="store_true", help="Run Dash in debug mode")
    return parser.parse_args()


# ============================================
# 🔹 Initialize Dash
# ============================================
app = dash.Dash(__name__)
app.title = 'NEMO vs ARGO'


def serve_layout():
    """Page layout, rebuilt (map included) on every page load."""
    buoys = list_buoys(STATE)
    data = STATE.data
    first_day = data['times'].min().date() if not data.empty else None
    last_day = data['times'].max().date() if not data.empty else None

    return html.Div([

        # ===== HEADER =====
        html.Div([
            html.Span('NEMO vs ARGO BUOY DASHBOARD', className='header-title'),
        ], className='header-sub flex-row'),

        # ===== MAIN BODY =====
        html.Div([

            # --- LEFT CONTROLS ---
            html.Div([
                html.Div([
                    html.Label('Buoy:'),
                    dcc.Dropdown(
                        id='buoy-select',
                        options=[{'label': f'Buoy {b}', 'value': b} for b in buoys],
                        value=buoys[0] if buoys else None,
                        clearable=False
                    ),
                ]),
                html.Div([
                    html.Label('Depth:'),
                    dcc.Dropdown(id='depth-select', clearable=False),
                ]),
                html.Div([
                    html.Label('Date range:'),
                    dcc.DatePickerRange(
                        id='date-range',
                        start_date=first_day,
                        end_date=last_day,
                        display_format='YYYY-MM-DD',
                        first_day_of_week=1,
                        start_date_placeholder_text='From',
                        end_date_placeholder_text='To',
                    ),
                ]),
                html.Button('Update', id='update-btn'),
                color_legend(),
            ], className='left-panel panel'),

            # --- MAP + PLOTS ---
            html.Div([
                html.Div([
                    dcc.Graph(id='map', figure=plot_buoy_tracks(STATE, style=MAP_SETTINGS['style']))
                ], className='map-graph'),
                html.Div([
                    dcc.Graph(id='temp-profile-plot',
                              figure=placeholder_figure('Click a marker or press Update')),
                    dcc.Graph(id='anomaly-plot', figure=placeholder_figure('')),
                ], className='flex-row'),
                dcc.Graph(id='time-series-plot', figure=placeholder_figure('')),
            ], className='middle-panel'),

        ], className='flex-row'),
    ])


app.layout = serve_layout

# ============================================================
# === Callbacks ===
# ============================================================

@app.callback(
    Output('depth-select', 'options'),
    Output('depth-select', 'value'),
    Input('buoy-select', 'value'),
)
def update_depth_options(buoy_id):
    """Refresh the depth list when the buoy changes."""
    return on_buoy_changed(STATE, buoy_id)


@app.callback(
    [Output(plot_id, 'figure') for plot_id in PLOT_IDS],
    Input('update-btn', 'n_clicks'),
    Input('map', 'clickData'),
    State('buoy-select', 'value'),
    State('date-range', 'start_date'),
    State('date-range', 'end_date'),
    State('depth-select', 'value'),
    prevent_initial_call=True
)
def update_plots_callback(n_clicks, click_data, buoy_id, start_date, end_date, depth):
    return dispatch_plots(STATE, ctx.triggered_id, click_data, buoy_id, start_date, end_date, depth)


if __name__ == '__main__':
    # Command-line arguments
    args = cli()
    MAP_SETTINGS['style'] = args.map_style
    initialise(STATE, args.data)
    app.run(host=args.host, port=str(args.port), debug=args.debug)
else:
    # WSGI-compatible Flask server (eg gunicorn)
    initialise(STATE, DATA_FILE)
    application = app.server
