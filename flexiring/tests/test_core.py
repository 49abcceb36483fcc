"""
Unit Tests: Core Types, Errors and Configuration

Tests:
    - Result monad (Ok/Err) chaining
    - Error codes, context and serialization
    - Environment-driven configuration and validation
"""

import pytest

from flexiring.core.config import FlexiRingConfig, ObservabilityConfig, RingConfig
from flexiring.core.errors import ConfigurationError, ErrorCode, FlexiRingError, RingError
from flexiring.core.types import Err, Ok, Timestamp


class TestResult:
    """Tests for the Result monad."""

    def test_ok(self):
        result = Ok(3)
        assert result.is_ok()
        assert not result.is_err()
        assert result.unwrap() == 3
        assert result.unwrap_or(0) == 3

    def test_err(self):
        result = Err("boom")
        assert result.is_err()
        assert result.unwrap_or(0) == 0
        with pytest.raises(RuntimeError, match="boom"):
            result.unwrap()

    def test_map_and_flat_map(self):
        assert Ok(2).map(lambda v: v * 10) == Ok(20)
        assert Ok(2).flat_map(lambda v: Err(f"bad {v}")) == Err("bad 2")
        err = Err("first")
        assert err.map(lambda v: v * 10) is err
        assert err.flat_map(lambda v: Ok(v)) is err

    def test_pattern_matching(self):
        match Err(RingError.no_targets("k")):
            case Err(RingError(code=ErrorCode.RING_NO_TARGETS)):
                matched = True
            case _:
                matched = False
        assert matched


class TestTimestamp:

    def test_arithmetic(self):
        earlier = Timestamp.from_seconds(1.5)
        later = Timestamp(nanos=2_000_000_000)
        assert later - earlier == 500_000_000
        assert earlier.millis == 1500
        assert later.seconds == 2.0
        assert earlier < later

    def test_now_is_recent(self):
        assert Timestamp.now().seconds > 1_600_000_000


class TestErrors:
    """Tests for the error hierarchy."""

    def test_ring_error_factories(self):
        cases = [
            (RingError.duplicate_target("a"), ErrorCode.RING_DUPLICATE_TARGET, {"target": "a"}),
            (RingError.unknown_target("a"), ErrorCode.RING_UNKNOWN_TARGET, {"target": "a"}),
            (RingError.invalid_count(0), ErrorCode.RING_INVALID_COUNT, {"count": 0}),
            (RingError.no_targets("k"), ErrorCode.RING_NO_TARGETS, {"resource": "k"}),
        ]
        for error, code, context in cases:
            assert isinstance(error, FlexiRingError)
            assert error.code == code
            assert error.context == context

    def test_messages(self):
        assert RingError.duplicate_target("a").message == "Target 'a' already exists."
        assert RingError.no_targets("k").message == "No targets exist"
        assert RingError.invalid_count(-1).message == "Invalid count requested: -1"

    def test_raisable(self):
        with pytest.raises(RingError) as info:
            raise RingError.unknown_target("ghost")
        assert "RING_UNKNOWN_TARGET" in str(info.value)
        assert "ghost" in str(info.value)

    def test_with_context_keeps_identity(self):
        error = RingError.duplicate_target("a")
        enriched = error.with_context(ring="primary")
        assert isinstance(enriched, RingError)
        assert enriched.error_id == error.error_id
        assert enriched.context == {"target": "a", "ring": "primary"}
        assert error.context == {"target": "a"}

    def test_to_dict(self):
        data = RingError.invalid_count(0).to_dict()
        assert data["code"] == "RING_INVALID_COUNT"
        assert data["code_value"] == 1003
        assert data["context"] == {"count": 0}
        assert set(data) == {
            "error_id", "code", "code_value", "message", "timestamp_nanos", "context",
        }

    def test_error_ids_unique(self):
        assert RingError.no_targets("k").error_id != RingError.no_targets("k").error_id

    def test_configuration_errors(self):
        error = ConfigurationError.unknown_strategy("sha1", ["crc32", "md5"])
        assert error.code == ErrorCode.HASHING_UNKNOWN_STRATEGY
        assert "sha1" in error.message
        invalid = ConfigurationError.invalid("replicas must be >= 1")
        assert invalid.code == ErrorCode.INTERNAL_CONFIGURATION_ERROR
        assert invalid.context == {"reason": "replicas must be >= 1"}


class TestConfig:
    """Tests for environment configuration."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in (
            "REPLICAS", "HASHER", "DEFAULT_WEIGHT",
            "LOG_LEVEL", "LOG_JSON", "METRICS_ENABLED",
        ):
            monkeypatch.delenv(f"FLEXIRING_{name}", raising=False)

    def test_defaults(self):
        config = FlexiRingConfig.from_env().unwrap()
        assert config.ring == RingConfig(replicas=64, hasher="crc32", default_weight=1.0)
        assert config.observability == ObservabilityConfig()
        assert config.validate().is_ok()

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("FLEXIRING_REPLICAS", "128")
        monkeypatch.setenv("FLEXIRING_HASHER", " MD5 ")
        monkeypatch.setenv("FLEXIRING_DEFAULT_WEIGHT", "2.5")
        monkeypatch.setenv("FLEXIRING_LOG_LEVEL", "debug")
        monkeypatch.setenv("FLEXIRING_LOG_JSON", "yes")
        monkeypatch.setenv("FLEXIRING_METRICS_ENABLED", "0")

        config = FlexiRingConfig.from_env().unwrap()

        assert config.ring.replicas == 128
        assert config.ring.hasher == "md5"
        assert config.ring.default_weight == 2.5
        assert config.observability.log_level == "DEBUG"
        assert config.observability.log_json is True
        assert config.observability.metrics_enabled is False
        assert config.validate().is_ok()

    def test_unparseable_number(self, monkeypatch):
        monkeypatch.setenv("FLEXIRING_REPLICAS", "many")
        result = FlexiRingConfig.from_env()
        assert result.is_err()
        assert result.error.startswith("Configuration error")

    @pytest.mark.parametrize(
        "config,fragment",
        [
            (FlexiRingConfig(ring=RingConfig(replicas=0)), "Replica count"),
            (FlexiRingConfig(ring=RingConfig(hasher="sha1")), "Unknown hasher"),
            (FlexiRingConfig(ring=RingConfig(default_weight=0)), "Default weight"),
            (
                FlexiRingConfig(observability=ObservabilityConfig(log_level="LOUD")),
                "Unknown log level",
            ),
        ],
    )
    def test_validation_failures(self, config, fragment):
        result = config.validate()
        assert result.is_err()
        assert fragment in result.error

    def test_frozen(self):
        config = FlexiRingConfig()
        with pytest.raises(AttributeError):
            config.ring = RingConfig()
