"""Tests for configuration loading."""

import pytest

from indexbench.config.settings import Settings, get_settings


class TestSettings:
    """Test Settings defaults and environment overrides."""

    def test_defaults(self, monkeypatch) -> None:
        """Defaults describe a local server with the benchmark collections."""
        monkeypatch.delenv("MONGODB_URI", raising=False)
        monkeypatch.delenv("MONGODB_DATABASE", raising=False)
        settings = Settings(_env_file=None)

        assert settings.mongodb_uri.get_secret_value() == "mongodb://localhost:27017"
        assert settings.mongodb_database == "index_benchmark"
        assert settings.default_limit == 100
        assert settings.baseline_repetitions == 5
        assert settings.comparison_repetitions == 3
        assert settings.unindexed_warmup_iterations == 1
        assert settings.indexed_warmup_iterations == 2

    def test_environment_override(self, monkeypatch) -> None:
        monkeypatch.setenv("MONGODB_URI", "mongodb://user:pw@db.example.net:27017")
        monkeypatch.setenv("MONGODB_DATABASE", "perf")
        monkeypatch.setenv("COMPARISON_REPETITIONS", "7")

        settings = Settings(_env_file=None)

        assert settings.mongodb_database == "perf"
        assert settings.comparison_repetitions == 7
        assert "pw" not in repr(settings)

    def test_rejects_zero_repetitions(self) -> None:
        with pytest.raises(ValueError):
            Settings(_env_file=None, baseline_repetitions=0)

    @pytest.mark.parametrize(
        ("tag", "expected"),
        [("1m", "products_1m"), ("10m", "products_10m"), (None, "products_10m"), ("", "products_10m")],
    )
    def test_collection_for(self, tag, expected) -> None:
        """Only the small tag selects the small collection."""
        assert Settings(_env_file=None).collection_for(tag) == expected

    def test_endpoint(self, settings) -> None:
        endpoint = settings.endpoint()
        assert endpoint.uri == "mongodb://fake:27017"
        assert endpoint.database == "bench"


def test_get_settings_is_cached() -> None:
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()
