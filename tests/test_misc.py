from camview.config import APIConfig, DateFormat
from camview.utils.misc import format_duration, parse_date_string, parse_start_time, parse_timestamp


def test_parse_date_string_slices_fixed_offsets():
    parts = parse_date_string("2024051114")
    assert (parts.year, parts.month, parts.day, parts.hour) == ("2024", "05", "11", "14")
    assert parts.formatted == "2024-05-11 14:00"


def test_parse_date_string_custom_layout_and_no_validation():
    fmt = DateFormat(year_start=4, month_start=2, day_start=0, hour_start=8)
    parts = parse_date_string("1105202414", fmt)
    assert parts.formatted == "2024-05-11 14:00"
    # not numeric, still sliced
    assert parse_date_string("abcdefghij").formatted == "abcd-ef-gh ij:00"


def test_format_duration_zero_pads_and_does_not_roll_over_hours():
    assert format_duration(0) == "00:00"
    assert format_duration(330.9) == "05:30"
    assert format_duration(3725) == "62:05"
    assert format_duration(-4) == "00:00"


def test_parse_start_time_tokens():
    assert parse_start_time("00M00S") == "00:00"
    assert parse_start_time("05m30s") == "05:30"
    assert parse_start_time("55M55S") == "55:55"
    assert parse_start_time("clip") == "clip"


def test_parse_timestamp_defaults_to_zero():
    assert parse_timestamp("1715774400") == 1715774400
    assert parse_timestamp("") == 0
    assert parse_timestamp("abc") == 0


def test_camera_names_parsing_skips_bad_pairs():
    cfg = APIConfig(CAMERA_NAMES="a1:Garage, b2 : Balcony ,broken,:nameless,c3:")
    assert cfg.camera_names == {"a1": "Garage", "b2": "Balcony"}
