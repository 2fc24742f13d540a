import pytest

from gatesim.cli import format_failure, format_record, main
from gatesim.config import SimulationConfig
from gatesim.errors import DidNotConverge
from gatesim.models import simulate

SMALL = ["--passengers", "10", "--gates", "2", "--break-chance", "0", "--processing-time", "5"]

# P=20 on one flaky gate with a tight time ceiling: some seeds finish, some do not
MIXED = [
    "--model", "tick", "--passengers", "20", "--gates", "1", "--break-chance", "0.3",
    "--repair-time", "50", "--processing-time", "1", "--max-time", "300",
    "--seed", "0", "--replications", "20", "--workers", "1",
]
MIXED_CONFIG = SimulationConfig(
    passenger_count=20, gate_count=1, break_chance=0.3, repair_time=50, processing_time=1,
    max_time=300,
)


def expected_line(seed):
    try:
        return format_record(seed, simulate(MIXED_CONFIG, seed, "tick", "sparse"))
    except DidNotConverge as e:
        return format_failure(seed, e)


class TestMain:

    def test_sparse_output(self, capsys):
        assert main(SMALL) == 0
        out = capsys.readouterr().out.strip()
        assert out == "seed=100 p50=15 p95=25 p99=25 p95/p50=1.667 p99/p50=1.667"

    def test_dense_output(self, capsys):
        assert main(SMALL + ["--percentiles", "dense"]) == 0
        out = capsys.readouterr().out.strip()
        assert out.startswith("seed=100 p0=5 p10=5 p20=5 p30=10 p40=10 p50=15")
        assert out.endswith("p90=25 p99=25 p100=25")

    def test_one_line_per_replication(self, capsys):
        assert main(SMALL + ["--seed", "7", "--replications", "3", "--workers", "1"]) == 0
        lines = capsys.readouterr().out.strip().splitlines()
        assert [line.split()[0] for line in lines] == ["seed=7", "seed=8", "seed=9"]

    def test_invalid_config_exits_with_usage_error(self):
        with pytest.raises(SystemExit) as exc:
            main(["--gates", "0"])
        assert exc.value.code == 2

    def test_did_not_converge(self, capsys):
        argv = [
            "--model", "event", "--passengers", "1", "--gates", "1",
            "--break-chance", "1", "--repair-time", "100", "--max-time", "500",
        ]
        assert main(argv) == 1
        out = capsys.readouterr().out.strip()
        assert out.startswith("seed=100 did-not-converge done=0 t=")
        assert len(out.splitlines()) == 1

    def test_max_steps_flag(self, capsys):
        # zero-length repairs never move time forward, only the step ceiling stops it
        argv = [
            "--model", "event", "--passengers", "1", "--gates", "1",
            "--break-chance", "1", "--repair-time", "0", "--max-steps", "50",
        ]
        assert main(argv) == 1
        assert capsys.readouterr().out.strip() == "seed=100 did-not-converge done=0 t=0"

    def test_invalid_max_steps_exits_with_usage_error(self):
        with pytest.raises(SystemExit) as exc:
            main(SMALL + ["--max-steps", "0"])
        assert exc.value.code == 2

    def test_mixed_seeds_keep_converged_records(self, capsys):
        assert main(MIXED) == 1
        lines = capsys.readouterr().out.strip().splitlines()
        assert lines == [expected_line(seed) for seed in range(20)]
        failed = [line for line in lines if "did-not-converge" in line]
        assert 0 < len(failed) < len(lines)
        assert all(line.startswith("seed=") for line in lines)


class TestFormatRecord:

    def test_unset_entries(self):
        line = format_record(1, {50: 4, 95: None, 99: None})
        assert line == "seed=1 p50=4 p95=- p99=- p95/p50=- p99/p50=-"

    def test_failure_without_state(self):
        assert format_failure(3, DidNotConverge("stuck")) == "seed=3 did-not-converge"
