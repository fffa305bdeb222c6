"""Tests for environment configuration."""

from datetime import timedelta

import pytest

from cards import config
from cards.fsrs.constants import DEFAULT_WEIGHTS


class TestDurations:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("90s", timedelta(seconds=90)),
            ("10m", timedelta(minutes=10)),
            ("1.5h", timedelta(minutes=90)),
            (" 2d ", timedelta(days=2)),
        ],
    )
    def test_parse_duration(self, text, expected):
        assert config.parse_duration(text) == expected

    @pytest.mark.parametrize("text", ["", "10", "m", "10w", "-5m"])
    def test_invalid_duration(self, text):
        with pytest.raises(ValueError):
            config.parse_duration(text)

    def test_parse_steps(self):
        assert config.parse_steps("1m, 10m") == (timedelta(minutes=1), timedelta(minutes=10))
        assert config.parse_steps("") == ()


class TestSchedulerParameters:
    def test_defaults(self, monkeypatch):
        for name in (
            "FSRS_WEIGHTS",
            "FSRS_DESIRED_RETENTION",
            "FSRS_LEARNING_STEPS",
            "FSRS_RELEARNING_STEPS",
            "FSRS_MAXIMUM_INTERVAL",
        ):
            monkeypatch.delenv(name, raising=False)
        params = config.load_scheduler_parameters()
        assert params.weights == DEFAULT_WEIGHTS
        assert params.learning_steps == (timedelta(minutes=1), timedelta(minutes=10))

    def test_overrides(self, monkeypatch):
        weights = list(DEFAULT_WEIGHTS)
        weights[0] = 0.5
        monkeypatch.setenv("FSRS_WEIGHTS", ",".join(str(w) for w in weights))
        monkeypatch.setenv("FSRS_DESIRED_RETENTION", "0.85")
        monkeypatch.setenv("FSRS_RELEARNING_STEPS", "")
        monkeypatch.setenv("FSRS_MAXIMUM_INTERVAL", "365")

        params = config.load_scheduler_parameters()
        assert params.weights[0] == 0.5
        assert params.desired_retention == 0.85
        assert params.relearning_steps == ()
        assert params.maximum_interval == 365

    def test_bad_weights(self, monkeypatch):
        monkeypatch.setenv("FSRS_WEIGHTS", "1,2,3")
        with pytest.raises(ValueError):
            config.load_scheduler_parameters()


def test_database_url_default(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    assert config.get_database_url() == config.DEFAULT_DATABASE_URL


def test_default_user(monkeypatch):
    monkeypatch.setenv("DEFAULT_USER_ID", "carol")
    assert config.get_default_user_id() == "carol"
