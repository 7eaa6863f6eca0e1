import pytest
from pydantic import ValidationError as PydanticValidationError

from leaguecore.league_engine import config as config_module
from leaguecore.league_engine.config import DEFAULT_DB_URL, load_config
from leaguecore.league_engine.settings import LeagueSettings

ENV_VARS = ("LEAGUE_DB_URL", "LEAGUE_RANDOM_SEED", "LEAGUE_LOG_LEVEL", "LEAGUE_DEFAULT_ROUNDS")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.setattr(config_module, "load_dotenv", lambda: None)
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = load_config()
    assert config.db_url == DEFAULT_DB_URL
    assert config.random_seed is None
    assert config.log_level == "INFO"
    assert config.default_rounds == 15


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("LEAGUE_DB_URL", "sqlite://")
    monkeypatch.setenv("LEAGUE_RANDOM_SEED", "42")
    monkeypatch.setenv("LEAGUE_LOG_LEVEL", "debug")
    monkeypatch.setenv("LEAGUE_DEFAULT_ROUNDS", "12")

    config = load_config()

    assert config.db_url == "sqlite://"
    assert config.random_seed == 42
    assert config.log_level == "DEBUG"
    assert config.default_rounds == 12


def test_bad_seed_names_variable(monkeypatch):
    monkeypatch.setenv("LEAGUE_RANDOM_SEED", "abc")
    with pytest.raises(ValueError, match="LEAGUE_RANDOM_SEED must be an integer"):
        load_config()


def test_rounds_out_of_range(monkeypatch):
    monkeypatch.setenv("LEAGUE_DEFAULT_ROUNDS", "25")
    with pytest.raises(ValueError, match="LEAGUE_DEFAULT_ROUNDS"):
        load_config()


class TestLeagueSettings:
    def test_defaults(self):
        settings = LeagueSettings()
        assert settings.starter_count == 9
        assert settings.bench_count == 7
        assert settings.trades_enabled
        assert settings.trade_deadline_week is None
        assert settings.draft_timer_seconds == 120

    def test_negative_counts_rejected(self):
        with pytest.raises(PydanticValidationError):
            LeagueSettings(bench_count=-1)

    def test_from_json_validates(self):
        settings = LeagueSettings.from_json('{"bench_count": 3, "scoring_format": "ppr"}')
        assert settings.bench_count == 3
        assert settings.scoring_format == "ppr"
        with pytest.raises(PydanticValidationError):
            LeagueSettings.from_json('{"scoring_format": "points"}')

    def test_missing_json_means_defaults(self):
        assert LeagueSettings.from_json(None) == LeagueSettings()
