from types import SimpleNamespace

import pandas as pd
import pytest
from dash import no_update

import dashapp
from dashapp import (
    NO_CHANGE, dispatch_plots, on_buoy_changed, on_marker_clicked, on_update_requested,
    plot_buoy_tracks, update_plots,
)
from utils import AppState, records_to_frame


def click(buoy_id, time, depth):
    return {'points': [{'customdata': [buoy_id, time, depth]}]}


def test_on_buoy_changed(state):
    options, value = on_buoy_changed(state, "B1")
    assert [o['value'] for o in options] == [2.0, 5.0, 10.0, 10.05]
    assert options[0]['label'] == '2 m'
    assert value == 2.0


def test_on_buoy_changed_unknown_buoy(state):
    assert on_buoy_changed(state, "B9") == ([], None)


def test_marker_click_renders_profile(state):
    profile, anomaly, series = on_marker_clicked(state, click("B1", "2020-01-01T00:00:00", 5.0))
    assert list(profile.data[0].y) == [2, 5, 10]
    assert len(anomaly.data) == 1
    assert list(series.data[0].x) == [pd.Timestamp(2020, 1, 1), pd.Timestamp(2020, 1, 5)]


def test_single_record_scenario():
    state = AppState()
    state.buoy_ids, state.data = records_to_frame({"B1": [
        {"latA": 43, "lonA": 35, "timeM": "2020-01-01T00:00", "zM": 5, "tM": 15, "tA": 13}
    ]})
    fig = plot_buoy_tracks(state)
    assert state.map_figure is fig
    assert list(fig.data[1].marker.color) == ['#ff6600']

    profile, _, _ = on_marker_clicked(state, {'points': [{'customdata': list(fig.data[1].customdata[0])}]})
    assert list(profile.data[0].y) == [5]
    assert list(profile.data[1].y) == [5]


def test_marker_click_honours_date_range(state):
    # clicked day inside the range, series limited to it
    _, _, series = on_marker_clicked(state, click("B1", "2020-01-05T00:00:00", 5.0), "2020-01-03", "2020-01-31")
    assert list(series.data[0].x) == [pd.Timestamp(2020, 1, 5)]


def test_marker_click_bad_payload(state):
    assert on_marker_clicked(state, None) == NO_CHANGE
    assert on_marker_clicked(state, {'points': []}) == NO_CHANGE
    assert on_marker_clicked(state, click("B1", "2020-01-01", "deep")) == NO_CHANGE


def test_update_requested_uses_first_match(state):
    profile, anomaly, series = on_update_requested(state, "B1", "2020-01-01", "2020-01-31", 5.0)
    assert '2020-01-01' in profile.layout.title.text
    assert len(series.data[0].x) == 2


def test_update_requested_with_string_depth(state):
    profile, _, _ = on_update_requested(state, "B1", "2020-01-04", "2020-01-31", "10.0")
    assert '2020-01-05' in profile.layout.title.text


def test_update_requested_no_match_keeps_view(state):
    result = on_update_requested(state, "B1", "2021-01-01", "2021-12-31", 5.0)
    assert result == NO_CHANGE
    assert all(r is no_update for r in result)


def test_update_requested_malformed_range(state):
    assert on_update_requested(state, "B1", "not-a-date", "2020-01-31", 5.0) == NO_CHANGE
    assert on_update_requested(state, "B1", None, None, 5.0) == NO_CHANGE


def test_update_requested_missing_selection(state):
    assert on_update_requested(state, None, "2020-01-01", "2020-01-31", 5.0) == NO_CHANGE
    assert on_update_requested(state, "B1", "2020-01-01", "2020-01-31", None) == NO_CHANGE


def test_update_plots_empty_profile(state):
    assert update_plots(state, "B1", pd.Timestamp(2020, 3, 1), 5.0) == NO_CHANGE
    # right day, wrong depth
    assert update_plots(state, "B1", pd.Timestamp(2020, 1, 1), 30.0) == NO_CHANGE


def test_update_plots_series_outside_range_shows_full_record(state):
    profile, _, series = update_plots(state, "B1", pd.Timestamp(2020, 1, 1), 5.0, "2020-06-01", "2020-06-30")
    assert len(profile.data) == 2
    assert list(series.data[0].x) == [pd.Timestamp(2020, 1, 1), pd.Timestamp(2020, 1, 5)]


def test_series_follows_clicked_buoy(state):
    on_update_requested(state, "B1", "2020-01-01", "2020-01-31", 5.0)
    profile, _, series = on_marker_clicked(state, click("B2", "2020-02-01T12:00:00", 20.0), "2020-01-01", "2020-01-31")
    assert "B2" in profile.layout.title.text
    assert "B2" in series.layout.title.text
    assert list(series.data[0].x) == [pd.Timestamp(2020, 2, 1, 12)]


def test_empty_state_is_inert():
    state = AppState()
    assert on_buoy_changed(state, None) == ([], None)
    assert on_update_requested(state, "B1", "2020-01-01", "2020-01-31", 5.0) == NO_CHANGE
    assert len(plot_buoy_tracks(state).data) == 0


def test_layout_builds_with_state(state, monkeypatch):
    monkeypatch.setattr(dashapp, 'STATE', state)
    layout = dashapp.serve_layout()
    assert state.map_figure is not None
    assert 'B1' in str(layout)


def test_dispatch_plots_routes_by_trigger(state):
    from_map = dispatch_plots(state, 'map', click("B2", "2020-02-01T12:00:00", 20.0), "B1", "2020-01-01", "2020-03-01", 5.0)
    assert "B2" in from_map[0].layout.title.text

    from_button = dispatch_plots(state, 'update-btn', None, "B1", "2020-01-01", "2020-03-01", 5.0)
    assert "B1" in from_button[0].layout.title.text


@pytest.mark.parametrize("trigger, expected", [('map', "B2"), ('update-btn', "B1")])
def test_update_plots_callback(state, monkeypatch, trigger, expected):
    monkeypatch.setattr(dashapp, 'STATE', state)
    monkeypatch.setattr(dashapp, 'ctx', SimpleNamespace(triggered_id=trigger))
    callback = getattr(dashapp.update_plots_callback, '__wrapped__', dashapp.update_plots_callback)

    profile, anomaly, series = callback(
        1, click("B2", "2020-02-01T12:00:00", 20.0), "B1", "2020-01-01", "2020-03-01", 5.0
    )
    assert expected in profile.layout.title.text
    assert expected in series.layout.title.text


def test_update_requested_bounds_series_by_range(state):
    _, _, series = on_update_requested(state, "B1", "2020-01-02", "2020-01-31", 5.0)
    assert list(series.data[0].x) == [pd.Timestamp(2020, 1, 5)]
