"""Unit tests for the Limit entity."""

import json
from datetime import datetime
from unittest.mock import Mock

import pytest

from client_ratelimit.core.errors import InvalidConfigurationError, MalformedLimitDataError
from client_ratelimit.limits.limit import Limit


def _limit(clock: Mock, allow: int = 10, threshold: float = 1) -> Limit:
    return Limit.allow(allow, threshold, clock=clock).every_minute().set_object_name("Api")


class TestHasReachedLimit:
    def test_reached_after_allow_hits(self, clock: Mock) -> None:
        limit = _limit(clock)

        assert limit.has_reached_limit() is False
        for _ in range(9):
            limit.hit()
        assert limit.has_reached_limit() is False

        limit.hit()
        assert limit.has_reached_limit() is True

    @pytest.mark.parametrize(
        ("allow", "threshold", "below", "at"),
        [
            (10, 0.5, 4, 5),
            (100, 0.25, 24, 25),
            (3, 1, 2, 3),
        ],
    )
    def test_threshold_boundary_is_inclusive(
        self, clock: Mock, allow: int, threshold: float, below: int, at: int
    ) -> None:
        limit = _limit(clock, allow=allow, threshold=threshold)

        limit.hit(below)
        assert limit.has_reached_limit() is False

        limit.hit(at - below)
        assert limit.has_reached_limit() is True

    def test_threshold_override(self, clock: Mock) -> None:
        limit = _limit(clock).hit(5)

        assert limit.has_reached_limit() is False
        assert limit.has_reached_limit(0.5) is True

    def test_zero_threshold_is_always_reached(self, clock: Mock) -> None:
        assert _limit(clock, threshold=0).has_reached_limit() is True

    @pytest.mark.parametrize("threshold", [-0.1, 1.01, 2, float("nan")])
    def test_invalid_threshold_override(self, clock: Mock, threshold: float) -> None:
        with pytest.raises(InvalidConfigurationError):
            _limit(clock).has_reached_limit(threshold)


class TestConstruction:
    @pytest.mark.parametrize("threshold", [-0.5, 1.5, float("nan")])
    def test_invalid_threshold_fails_fast(self, threshold: float) -> None:
        with pytest.raises(InvalidConfigurationError) as exc_info:
            Limit.allow(10, threshold)

        assert exc_info.value.code == "invalid_threshold"

    def test_invalid_allow(self) -> None:
        with pytest.raises(InvalidConfigurationError):
            Limit.allow(0)

    def test_invalid_window(self) -> None:
        with pytest.raises(InvalidConfigurationError):
            Limit.allow(10).every_seconds(0)

    def test_validate_requires_window(self) -> None:
        limit = Limit.allow(10).set_object_name("Api")

        with pytest.raises(InvalidConfigurationError) as exc_info:
            limit.validate()

        assert exc_info.value.code == "missing_window"

    def test_validate_requires_name_or_owner(self) -> None:
        with pytest.raises(InvalidConfigurationError) as exc_info:
            Limit.allow(10).every_minute().validate()

        assert exc_info.value.code == "missing_limit_name"

    @pytest.mark.parametrize(
        ("selector", "seconds"),
        [
            ("every_minute", 60),
            ("every_five_minutes", 300),
            ("every_thirty_minutes", 1800),
            ("every_hour", 3600),
            ("every_six_hours", 21600),
            ("every_twelve_hours", 43200),
            ("every_day", 86400),
        ],
    )
    def test_window_presets(self, selector: str, seconds: int) -> None:
        limit = getattr(Limit.allow(1), selector)()

        assert limit.get_release_in_seconds() == seconds

    def test_last_window_selector_wins(self) -> None:
        limit = Limit.allow(10).every_day().every_seconds(30, "half-minute").every_hour()

        assert limit.get_release_in_seconds() == 3600
        assert limit.set_object_name("Api").get_name() == "Api_allow_10_every_3600"

    def test_until_midnight_tonight(self) -> None:
        clock = Mock(return_value=datetime(2024, 1, 1, 23, 59, 0).timestamp())
        limit = Limit.allow(10, clock=clock).until_midnight_tonight()

        assert limit.get_release_in_seconds() == 60
        assert limit.set_object_name("Api").get_name() == "Api_allow_10_every_midnight"

    def test_until_midnight_follows_replaced_clock(self) -> None:
        limit = Limit.allow(10).until_midnight_tonight()

        limit.use_clock(Mock(return_value=datetime(2024, 1, 1, 23, 0, 0).timestamp()))

        assert limit.get_release_in_seconds() == 3600

    def test_later_window_selector_replaces_midnight(self) -> None:
        limit = Limit.allow(10).until_midnight_tonight().every_minute()

        limit.use_clock(Mock(return_value=datetime(2024, 1, 1, 23, 0, 0).timestamp()))

        assert limit.get_release_in_seconds() == 60


class TestNaming:
    def test_default_name(self) -> None:
        limit = Limit.allow(60).every_minute().set_object_name("GitHubConnector")

        assert limit.get_name() == "GitHubConnector_allow_60_every_60"

    def test_time_to_live_key_replaces_seconds(self) -> None:
        limit = Limit.allow(5).every_seconds(10, "burst").set_object_name("Api")

        assert limit.get_name() == "Api_allow_5_every_burst"

    def test_explicit_name_wins(self) -> None:
        limit = Limit.allow(60).every_minute().set_object_name("Api").name("search")

        assert limit.get_name() == "search"


class TestHits:
    def test_hit_adds_amount(self, clock: Mock) -> None:
        limit = _limit(clock)

        assert limit.hit() is limit
        limit.hit(4)

        assert limit.get_hits() == 5

    def test_exceeded_pins_hits_at_allow(self, clock: Mock) -> None:
        limit = _limit(clock).hit(3)

        limit.exceeded()
        limit.hit(7)
        limit.hit()

        assert limit.get_hits() == 10
        assert limit.has_exceeded() is True
        assert limit.has_reached_limit() is True

    def test_exceeded_with_release_restarts_window(self, clock: Mock) -> None:
        limit = _limit(clock)
        assert limit.get_expiry_timestamp() == 1060

        limit.exceeded(30)

        assert limit.get_expiry_timestamp() == 1030

    def test_reached_is_not_exceeded(self, clock: Mock) -> None:
        limit = _limit(clock).hit(10)

        assert limit.has_reached_limit() is True
        assert limit.has_exceeded() is False


class TestExpiry:
    def test_expiry_is_computed_once(self, clock: Mock) -> None:
        limit = _limit(clock)

        assert limit.get_expiry_timestamp() == 1060

        clock.return_value = 1010.0
        assert limit.get_expiry_timestamp() == 1060
        assert limit.get_remaining_seconds() == 50

    def test_set_expiry_timestamp_resets_cache(self, clock: Mock) -> None:
        limit = _limit(clock)
        limit.get_expiry_timestamp()

        limit.set_expiry_timestamp(None)
        clock.return_value = 1100.0

        assert limit.get_expiry_timestamp() == 1160


class TestStoreData:
    def test_serialize(self, clock: Mock) -> None:
        limit = _limit(clock).hit(3)

        assert json.loads(limit.serialize_store_data()) == {"timestamp": 1060, "hits": 3}

    def test_round_trip_within_window(self, clock: Mock) -> None:
        payload = _limit(clock).hit(3).serialize_store_data()

        clock.return_value = 1030.0
        restored = _limit(clock).unserialize_store_data(payload)

        assert restored.get_hits() == 3
        assert restored.get_expiry_timestamp() == 1060

    def test_expired_payload_is_discarded(self, clock: Mock) -> None:
        limit = _limit(clock)

        limit.unserialize_store_data(json.dumps({"timestamp": 999, "hits": 4}))

        assert limit.get_hits() == 0
        clock.return_value = 1005.0
        assert limit.get_expiry_timestamp() == 1065

    def test_accepts_bytes(self, clock: Mock) -> None:
        limit = _limit(clock).unserialize_store_data(b'{"timestamp": 1030, "hits": 2}')

        assert limit.get_hits() == 2

    @pytest.mark.parametrize(
        "payload",
        [
            '{"hits": 1}',
            '{"timestamp": 1030}',
            '{"timestamp": "soon", "hits": 1}',
            '{"timestamp": 1030, "hits": -1}',
            "not json",
            "[]",
        ],
    )
    def test_malformed_payload(self, clock: Mock, payload: str) -> None:
        with pytest.raises(MalformedLimitDataError) as exc_info:
            _limit(clock).unserialize_store_data(payload)

        assert exc_info.value.code == "malformed_limit_data"
        assert exc_info.value.details["limit_name"] == "Api_allow_10_every_60"
