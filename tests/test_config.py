"""Unit tests for mission parameters and their textual parsing."""

import dataclasses

import pytest

from ascent.config import LaunchDirection, MissionParameters, WarpMode
from ascent.errors import ParameterError


class TestDefaults:
    """Test the default mission."""

    def test_defaults(self):
        params = MissionParameters()
        assert params.target_altitude == 80e3
        assert params.target_inclination == 0.0
        assert params.launch_direction is LaunchDirection.NORTH
        assert params.turn_start_altitude == 130.0
        assert params.pitchover_angle == 10.0
        assert params.steering_duration == 30.0
        assert params.warp_mode is WarpMode.NONE
        assert params.countdown == 10.0
        assert params.launch_sync is False
        assert params.sync_period == 180.0

    def test_frozen(self):
        params = MissionParameters()
        with pytest.raises(dataclasses.FrozenInstanceError):
            params.target_altitude = 100e3

    def test_whole_numbers_become_floats(self):
        params = MissionParameters(target_altitude=80000, target_inclination=6, countdown=5)
        assert isinstance(params.target_altitude, float)
        assert params.target_altitude == 80000.0
        assert isinstance(params.target_inclination, float)
        assert isinstance(params.countdown, float)
        assert params.countdown == 5.0


class TestValidation:
    """Test rejection of impossible missions."""

    @pytest.mark.parametrize(
        "field,value",
        [
            ("target_altitude", 0.0),
            ("target_altitude", -5.0),
            ("target_inclination", -1.0),
            ("target_inclination", 180.5),
            ("turn_start_altitude", -1.0),
            ("pitchover_angle", 90.0),
            ("pitchover_angle", -5.0),
            ("steering_duration", -1.0),
            ("countdown", -1.0),
            ("sync_period", 0.0),
        ],
    )
    def test_rejects(self, field, value):
        with pytest.raises(ParameterError):
            MissionParameters(**{field: value})

    def test_parameter_error_is_value_error(self):
        with pytest.raises(ValueError):
            MissionParameters(target_altitude=-1.0)


class TestFromStrings:
    """Test operator input parsing."""

    def test_full_input(self):
        params = MissionParameters.from_strings(
            "100", "6", "SOUTH", "250", "12.5", "45", "RAILS", "5", "SYNC",
        )
        assert params.target_altitude == 100e3
        assert params.target_inclination == 6.0
        assert params.launch_direction is LaunchDirection.SOUTH
        assert params.turn_start_altitude == 250.0
        assert params.pitchover_angle == 12.5
        assert params.steering_duration == 45.0
        assert params.warp_mode is WarpMode.RAILS
        assert params.countdown == 5.0
        assert params.launch_sync is True

    def test_defaults_match_dataclass(self):
        assert MissionParameters.from_strings() == MissionParameters()

    @pytest.mark.parametrize(
        "text,mode",
        [("NOWARP", WarpMode.NONE), ("physics", WarpMode.PHYSICS), (" Rails ", WarpMode.RAILS)],
    )
    def test_warp_modes(self, text, mode):
        assert MissionParameters.from_strings(warp_mode=text).warp_mode is mode

    def test_case_insensitive_direction(self):
        params = MissionParameters.from_strings(launch_direction="north")
        assert params.launch_direction is LaunchDirection.NORTH

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"target_altitude_km": "eighty"},
            {"launch_direction": "EAST"},
            {"warp_mode": "FAST"},
            {"sync": "MAYBE"},
            {"target_altitude_km": "-10"},
        ],
    )
    def test_invalid_input(self, kwargs):
        with pytest.raises(ParameterError):
            MissionParameters.from_strings(**kwargs)

    def test_summary(self):
        summary = MissionParameters.from_strings("100", "6", "SOUTH").summary()
        assert summary["target_altitude"] == "100.0 km"
        assert summary["target_inclination"] == "6.00 deg"
        assert summary["launch_direction"] == "SOUTH"
