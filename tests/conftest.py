import pytest

from utils import AppState, records_to_frame


def record(lat, lon, time, z, tm, ta):
    return {"latA": lat, "lonA": lon, "timeM": time, "zM": z, "tM": tm, "tA": ta}


@pytest.fixture
def raw_data():
    return {
        "B1": [
            record(43.0, 35.0, "2020-01-01T00:00", 5, 15.0, 13.0),
            record(43.0, 35.0, "2020-01-01T06:00", 10, 14.0, 14.2),
            record(43.0, 35.0, "2020-01-01T00:00", 2, 16.0, 16.4),
            record(43.2, 35.1, "2020-01-05T00:00", 5, 12.0, 13.5),
            record(43.2, 35.1, "2020-01-05T00:00", 10.05, 11.0, 11.1),
        ],
        "B2": [
            record(42.0, 34.0, "2020-02-01T12:00", 20, 9.0, 12.0),
        ],
    }


@pytest.fixture
def state(raw_data):
    buoy_ids, df = records_to_frame(raw_data)
    return AppState(buoy_ids=buoy_ids, data=df)
