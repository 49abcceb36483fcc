"""
Unit Tests: Command Line

Tests:
    - hash/lookup/distribution subcommands
    - Exit codes for configuration and ring errors
    - Environment defaults and --metrics export
"""

import pytest

from flexiring.__main__ import main
from flexiring.hashing import crc32_hash, md5_hash


@pytest.fixture(autouse=True)
def isolated(monkeypatch, restore_root_logging):
    """Clear FLEXIRING_* variables; main() reconfigures root logging."""
    for name in (
        "REPLICAS", "HASHER", "DEFAULT_WEIGHT",
        "LOG_LEVEL", "LOG_JSON", "METRICS_ENABLED",
    ):
        monkeypatch.delenv(f"FLEXIRING_{name}", raising=False)


class TestHashCommand:

    def test_default_crc32(self, capsys):
        assert main(["hash", "test"]) == 0
        assert capsys.readouterr().out == "test\t-662733300\n"

    def test_md5(self, capsys):
        assert main(["hash", "test", "", "--hasher", "md5"]) == 0
        assert capsys.readouterr().out.splitlines() == ["test\t160394189", "\t3558706393"]

    def test_hasher_from_environment(self, capsys, monkeypatch):
        monkeypatch.setenv("FLEXIRING_HASHER", "md5")
        assert main(["hash", "object-a"]) == 0
        assert capsys.readouterr().out == f"object-a\t{md5_hash('object-a')}\n"

    def test_unknown_hasher_rejected_by_parser(self):
        with pytest.raises(SystemExit) as info:
            main(["hash", "x", "--hasher", "sha1"])
        assert info.value.code == 2


class TestLookupCommand:

    def test_single_target(self, capsys):
        assert main(["lookup", "k1", "k2", "--targets", "only"]) == 0
        assert capsys.readouterr().out.splitlines() == ["k1 -> only", "k2 -> only"]

    def test_count_returns_distinct_targets(self, capsys):
        assert main(["lookup", "object-a", "-t", "a,b,c", "-n", "3", "--hasher", "md5"]) == 0
        line = capsys.readouterr().out.strip()
        key, _, targets = line.partition(" -> ")
        names = targets.split(", ")
        assert key == "object-a"
        assert len(names) == len(set(names))
        assert set(names) <= {"a", "b", "c"}

    def test_weights(self, capsys):
        assert main(["lookup", "k", "-t", "a,b", "-w", "a=2", "-w", "b=0.5"]) == 0
        assert capsys.readouterr().out.startswith("k -> ")

    def test_invalid_count(self, capsys):
        assert main(["lookup", "k", "-t", "a", "-n", "0"]) == 1
        assert "RING_INVALID_COUNT" in capsys.readouterr().err

    def test_zero_replicas(self, capsys):
        assert main(["lookup", "k", "-t", "a", "-r", "0"]) == 2
        assert "replicas must be >= 1" in capsys.readouterr().err

    def test_weight_for_unknown_target(self, capsys):
        assert main(["lookup", "k", "-t", "a", "-w", "ghost=2"]) == 2
        assert "ghost" in capsys.readouterr().err

    def test_malformed_weight(self):
        with pytest.raises(SystemExit):
            main(["lookup", "k", "-t", "a", "-w", "a:2"])

    def test_targets_required(self):
        with pytest.raises(SystemExit):
            main(["lookup", "k"])

    def test_metrics_export(self, capsys):
        assert main(["--metrics", "lookup", "k", "-t", "a,b"]) == 0
        out = capsys.readouterr().out
        assert "# TYPE flexiring_lookups_total counter" in out
        assert 'flexiring_lookups_total{kind="list"} 1.0' in out
        assert 'flexiring_mutations_total{op="add"} 2.0' in out

    def test_metrics_disabled_by_environment(self, capsys, monkeypatch):
        monkeypatch.setenv("FLEXIRING_METRICS_ENABLED", "false")
        assert main(["--metrics", "lookup", "k", "-t", "a"]) == 0
        assert "flexiring_" not in capsys.readouterr().out


class TestDistributionCommand:

    def test_summary(self, capsys):
        assert main(["distribution", "-t", "s1,s2,s3", "-k", "300", "--hasher", "md5"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("300 keys over 3 targets")
        for target in ("s1", "s2", "s3"):
            assert f"  {target}: " in out

    def test_remove(self, capsys):
        argv = ["distribution", "-t", "s1,s2,s3,s4", "-k", "400", "--remove", "s2"]
        assert main(argv) == 0
        out = capsys.readouterr().out
        assert "After removing s2:" in out
        assert "keys moved:" in out
        assert "~25%" in out

    def test_remove_unknown(self, capsys):
        assert main(["distribution", "-t", "s1", "--remove", "ghost"]) == 1
        assert "RING_UNKNOWN_TARGET" in capsys.readouterr().err


class TestEnvironment:

    def test_invalid_environment(self, capsys, monkeypatch):
        monkeypatch.setenv("FLEXIRING_REPLICAS", "0")
        assert main(["hash", "x"]) == 2
        assert "Replica count" in capsys.readouterr().err

    def test_replicas_from_environment(self, capsys, monkeypatch):
        monkeypatch.setenv("FLEXIRING_REPLICAS", "1")
        assert main(["lookup", "k", "-t", "a,b"]) == 0
        # one position per target: the key lands on the first position past its hash
        positions = sorted([(crc32_hash("a0"), "a"), (crc32_hash("b0"), "b")])
        point = crc32_hash("k")
        expected = next((t for p, t in positions if p > point), positions[0][1])
        assert capsys.readouterr().out == f"k -> {expected}\n"
