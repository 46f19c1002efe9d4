"""Tests for configuration loading and saving."""

import pytest

from junkfilter.config import Config, ConfigError, get_xdg_config_home, get_xdg_data_home
from junkfilter.junk import Params


@pytest.fixture
def xdg(temp_dir, monkeypatch):
    """Point the XDG directories into the temporary directory."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(temp_dir / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(temp_dir / "data"))
    return temp_dir


def test_xdg_directories(xdg):
    assert get_xdg_config_home() == xdg / "config" / "junkfilter"
    assert get_xdg_data_home() == xdg / "data" / "junkfilter"


def test_defaults_without_config_file(xdg):
    config = Config.load()

    assert config.params == Params()
    assert config.evaluation.spam_threshold == 0.95
    assert config.evaluation.train_ratio == 0.5
    assert config.database_path() == xdg / "data" / "junkfilter" / "words.json"
    assert config.bloom_path() == xdg / "data" / "junkfilter" / "words.bloom"


def test_load_config_file(temp_dir):
    path = temp_dir / "config.toml"
    path.write_text(
        "[params]\n"
        "one_grams = true\n"
        "top_words = 15\n"
        "\n"
        "[evaluation]\n"
        "spam_threshold = 0.9\n"
        "\n"
        "[paths]\n"
        f'database = "{temp_dir / "db.json"}"\n'
    )

    config = Config.load(path)

    assert config.params.one_grams
    assert config.params.two_grams
    assert config.params.top_words == 15
    assert config.evaluation.spam_threshold == 0.9
    assert config.evaluation.train_ratio == 0.5
    assert config.database_path() == temp_dir / "db.json"


def test_invalid_toml(temp_dir):
    path = temp_dir / "config.toml"
    path.write_text("[params\none_grams = ")

    with pytest.raises(ConfigError):
        Config.load(path)


def test_invalid_params(temp_dir):
    path = temp_dir / "config.toml"
    path.write_text("[params]\none_grams = false\ntwo_grams = false\n")

    with pytest.raises(ConfigError):
        Config.load(path)


def test_invalid_train_ratio(temp_dir):
    path = temp_dir / "config.toml"
    path.write_text("[evaluation]\ntrain_ratio = 1.5\n")

    with pytest.raises(ConfigError):
        Config.load(path)


def test_save_and_load(xdg):
    config = Config()
    config.params = Params(three_grams=True, rare_words=2)
    config.evaluation.train_ratio = 0.7

    path = config.save()
    assert path == xdg / "config" / "junkfilter" / "config.toml"

    loaded = Config.load()
    assert loaded.params == config.params
    assert loaded.evaluation == config.evaluation
    assert loaded.database_path() == config.database_path()
