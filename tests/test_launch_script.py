"""Tests for the launch-to-orbit driver script."""

import importlib.util
from pathlib import Path

import pytest

from ascent import AscentPhase
from ascent.vehicle import VesselStatus

SCRIPT = Path(__file__).parents[1] / "scripts" / "launch_to_orbit.py"


@pytest.fixture(scope="module")
def launch_script():
    spec = importlib.util.spec_from_file_location("launch_to_orbit", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestExitCode:
    """Test the process exit status reported to the operator."""

    def test_orbit_is_success(self, launch_script):
        assert launch_script.exit_code(AscentPhase.COMPLETE, VesselStatus.ORBITING) == 0

    def test_suborbital_completion_fails(self, launch_script):
        """Finishing the program on a ballistic arc is not a success."""
        assert launch_script.exit_code(AscentPhase.COMPLETE, VesselStatus.SUB_ORBITAL) == 1

    def test_unfinished_program_fails(self, launch_script):
        assert launch_script.exit_code(AscentPhase.ABORTED, VesselStatus.ORBITING) == 1


class TestMain:
    """Test the script end to end."""

    def test_invalid_input(self, launch_script, capsys):
        assert launch_script.main(["80", "0", "EAST", "--no-plot"]) == 2
        assert "launch direction" in capsys.readouterr().err

    @pytest.mark.slow
    def test_mun_orbit(self, launch_script, capsys):
        argv = ["30", "0", "NORTH", "130", "10", "30", "RAILS", "3", "NOSYNC", "--mun", "--no-plot"]
        assert launch_script.main(argv) == 0
        assert "Orbit achieved" in capsys.readouterr().out
