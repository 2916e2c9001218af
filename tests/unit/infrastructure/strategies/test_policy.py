"""Unit tests for wait policies."""

import pytest

from chatbot.infrastructure.configuration import StrategySettings
from chatbot.infrastructure.strategies import PolicySet, WaitPolicy

pytestmark = pytest.mark.unit


class TestWaitPolicy:
    """Test suite for WaitPolicy."""

    def test_exponential_backoff(self):
        policy = WaitPolicy(base_delay_seconds=0.5, max_delay_seconds=8)

        delays = [policy.delay_for(attempt) for attempt in range(1, 7)]

        assert delays == [0.5, 1.0, 2.0, 4.0, 8.0, 8.0]

    def test_retry_after_lengthens_delay(self):
        policy = WaitPolicy(base_delay_seconds=0.5, max_delay_seconds=8)

        assert policy.delay_for(1, retry_after=3) == 3.0

    def test_retry_after_is_capped(self):
        policy = WaitPolicy(base_delay_seconds=0.5, max_delay_seconds=8)

        assert policy.delay_for(1, retry_after=60) == 8.0

    def test_retry_after_never_shortens_delay(self):
        policy = WaitPolicy(base_delay_seconds=2, max_delay_seconds=8)

        assert policy.delay_for(2, retry_after=1) == 4.0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_attempts": 0},
            {"base_delay_seconds": -1},
            {"base_delay_seconds": 5, "max_delay_seconds": 1},
            {"max_wait_seconds": -1},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            WaitPolicy(**kwargs)


class TestPolicySet:
    """Test suite for PolicySet."""

    def test_default_for_unknown_phase(self):
        policies = PolicySet()

        assert policies.for_phase("anything") == WaitPolicy()

    def test_from_mapping_overrides_fields(self):
        default = WaitPolicy(max_attempts=5, max_wait_seconds=30)

        policies = PolicySet.from_mapping(
            default, {"waitconversation": {"max_attempts": 10}}
        )

        override = policies.for_phase("waitconversation")
        assert override.max_attempts == 10
        assert override.max_wait_seconds == 30
        assert policies.for_phase("sendmessage") is default

    def test_from_mapping_rejects_unknown_fields(self):
        with pytest.raises(ValueError, match="Unknown policy fields"):
            PolicySet.from_mapping(WaitPolicy(), {"sendmessage": {"retries": 3}})

    def test_from_settings(self):
        settings = StrategySettings(
            max_attempts=4,
            base_delay_seconds=1,
            max_delay_seconds=2,
            max_wait_seconds=10,
            phase_policies={"sendmessage": {"max_attempts": 2}},
        )

        policies = PolicySet.from_settings(settings)

        assert policies.default == WaitPolicy(
            max_attempts=4,
            base_delay_seconds=1,
            max_delay_seconds=2,
            max_wait_seconds=10,
        )
        assert policies.for_phase("sendmessage").max_attempts == 2
        assert policies.for_phase("sendmessage").max_wait_seconds == 10
