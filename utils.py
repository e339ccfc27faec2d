### Import libraries
import json
import logging
import numbers
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
import pandas as pd
import plotly.graph_objects as go


# column_mappings.py
buoy_columns = {
    'latA': 'latitude',
    'lonA': 'longitude',
    'timeM': 'times',
    'zM': 'depth',
    'tM': 'model_temp',
    'tA': 'obs_temp',
}

buoy_units = {
    'latitude': '°',
    'longitude': '°',
    'depth': 'm',
    'model_temp': '°C',
    'obs_temp': '°C',
    'anomaly': '°C',
}

required_columns = ['latitude', 'longitude', 'times', 'depth', 'model_temp', 'obs_temp']

# Depths are sampled on discrete rungs, never compare them exactly
DEPTH_TOLERANCE = 0.1

# (exclusive lower bound, color, label), evaluated top-down
COLOR_BANDS = [
    (2.0, '#ff0000', 'diff > 2'),
    (1.0, '#ff6600', '1 < diff ≤ 2'),
    (0.5, '#ffcc00', '0.5 < diff ≤ 1'),
    (-0.5, '#00cc00', '-0.5 < diff ≤ 0.5'),
    (-1.0, '#0066ff', '-1 < diff ≤ -0.5'),
    (-2.0, '#0000ff', '-2 < diff ≤ -1'),
]
FALLBACK_COLOR = ('#9900cc', 'diff ≤ -2')


@dataclass
class AppState:
    """Everything the dashboard owns for the lifetime of the process."""
    buoy_ids: list = field(default_factory=list)
    data: pd.DataFrame = field(default_factory=lambda: records_to_frame({})[1])
    source: Path | None = None
    map_figure: go.Figure | None = None

    @property
    def loaded(self) -> bool:
        return bool(self.buoy_ids)


def parse_time(value):
    """Convert one timeM value to a naive timestamp (NaT when unparseable)."""
    if value is None or isinstance(value, bool):
        return pd.NaT
    try:
        if isinstance(value, numbers.Number):
            # Epoch values are milliseconds
            if np.isnan(value):
                return pd.NaT
            return pd.Timestamp(value, unit='ms')
        ts = pd.Timestamp(value)
    except (ValueError, TypeError, OverflowError):
        return pd.NaT
    if ts is pd.NaT:
        return pd.NaT
    # Keep the wall time, drop the zone
    return ts.tz_localize(None) if ts.tzinfo is not None else ts


def parse_times(values) -> pd.Series:
    return pd.Series([parse_time(v) for v in values], dtype='datetime64[ns]')


def records_to_frame(raw) -> tuple[list[str], pd.DataFrame]:
    """
    Flatten the buoy JSON document into one DataFrame.

    The document maps buoy id -> list of records. Record order is kept as in
    the source, buoy order follows the key order of the document.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"Expected a JSON object of buoys, got {type(raw).__name__}")

    buoy_ids, rows = [], []
    for buoy_id, records in raw.items():
        if not isinstance(records, list):
            raise ValueError(f"Buoy {buoy_id}: expected a list of records, got {type(records).__name__}")
        buoy_ids.append(str(buoy_id))
        for rec in records:
            if not isinstance(rec, dict):
                raise ValueError(f"Buoy {buoy_id}: record is not an object")
            rows.append({'buoy_id': str(buoy_id), **rec})

    df = pd.DataFrame(rows)
    df = df.rename(columns=buoy_columns).reindex(columns=['buoy_id'] + required_columns)

    # Convert numeric types
    for col in ['latitude', 'longitude', 'depth', 'model_temp', 'obs_temp']:
        df[col] = pd.to_numeric(df[col], errors='coerce')
    df['times'] = parse_times(df['times'])

    valid = df[required_columns].notna().all(axis=1)
    if not valid.all():
        logging.warning(f"Dropped {int((~valid).sum())} incomplete record(s)")
    df = df[valid].reset_index(drop=True)
    df['buoy_id'] = df['buoy_id'].astype(str)

    return buoy_ids, df


def load_buoy_data(path) -> tuple[list[str], pd.DataFrame]:
    """Read data/buoy_data.json (or any file in the same format)."""
    path = Path(path)
    with path.open('r', encoding='utf-8') as f:
        raw = json.load(f)
    return records_to_frame(raw)


def initialise(state: AppState, path) -> AppState:
    """Load the dataset into state once. Failures are logged, state stays empty."""
    try:
        buoy_ids, df = load_buoy_data(path)
    except (OSError, json.JSONDecodeError, ValueError) as e:
        logging.error(f"Error loading buoy data from {path}: {e}")
        return state

    state.buoy_ids = buoy_ids
    state.data = df
    state.source = Path(path)
    logging.info(f"Loaded {len(df)} records for {len(buoy_ids)} buoys from {path}")
    return state


# ============================================
# 🔹 Selection helpers
# ============================================
def list_buoys(state: AppState) -> list[str]:
    return list(state.buoy_ids)


def buoy_records(data: pd.DataFrame, buoy_id) -> pd.DataFrame:
    return data[data['buoy_id'] == str(buoy_id)]


def list_depths(state: AppState, buoy_id) -> list[float]:
    """Distinct depths for a buoy, ascending. Empty for unknown buoys."""
    if buoy_id is None:
        return []
    depths = buoy_records(state.data, buoy_id)['depth']
    return [float(z) for z in np.unique(depths.to_numpy(dtype=float))]


def depth_matches(depths, depth) -> pd.Series:
    return (pd.Series(depths, dtype=float) - float(depth)).abs() < DEPTH_TOLERANCE


def to_day(value):
    """Normalise anything date-like to midnight, NaT if it cannot be parsed."""
    ts = parse_time(value)
    return ts.normalize() if ts is not pd.NaT else pd.NaT


def parse_date_range(start, end):
    """Date picker values -> inclusive calendar-day bounds."""
    return to_day(start), to_day(end)


def in_day_range(times: pd.Series, start, end) -> pd.Series:
    # NaT bounds compare False, so a malformed range matches nothing
    days = times.dt.normalize()
    return (days >= start) & (days <= end)


def filter_selection(data: pd.DataFrame, buoy_id, start, end, depth) -> pd.DataFrame:
    """Records of one buoy inside [start, end] at the selected depth, source order."""
    df = buoy_records(data, buoy_id)
    if df.empty or depth is None:
        return df.iloc[0:0]
    mask = depth_matches(df['depth'], depth).to_numpy()
    mask = mask & in_day_range(df['times'], start, end).to_numpy()
    return df[mask]


def filter_profile(data: pd.DataFrame, buoy_id, date) -> pd.DataFrame:
    """All depths sampled by one buoy on one calendar day."""
    df = buoy_records(data, buoy_id)
    day = to_day(date)
    if df.empty or day is pd.NaT:
        return df.iloc[0:0]
    df = df[(df['times'].dt.normalize() == day).to_numpy()]
    return df.sort_values('depth', kind='stable')


def filter_time_series(data: pd.DataFrame, buoy_id, depth, start=None, end=None) -> pd.DataFrame:
    """One buoy at one depth over time, optionally bounded by calendar days."""
    df = buoy_records(data, buoy_id)
    if df.empty or depth is None:
        return df.iloc[0:0]
    mask = depth_matches(df['depth'], depth).to_numpy()
    if start is not None or end is not None:
        lo = to_day(start) if start is not None else df['times'].min().normalize()
        hi = to_day(end) if end is not None else df['times'].max().normalize()
        mask = mask & in_day_range(df['times'], lo, hi).to_numpy()
    return df[mask].sort_values('times', kind='stable')


# ============================================
# 🔹 Marker colors
# ============================================
def color_for_diff(diff) -> str:
    """Marker color for a single model-minus-observation difference."""
    for lower, color, _ in COLOR_BANDS:
        if diff > lower:
            return color
    return FALLBACK_COLOR[0]


def diff_colors(diffs) -> np.ndarray:
    """Vectorised color_for_diff; np.select takes the first true band."""
    diffs = np.asarray(diffs, dtype=float)
    return np.select(
        [diffs > lower for lower, _, _ in COLOR_BANDS],
        [color for _, color, _ in COLOR_BANDS],
        default=FALLBACK_COLOR[0],
    )
