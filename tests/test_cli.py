"""Tests for the command line interface."""

import pytest

from junkfilter.cli import main
from tests.conftest import make_message


@pytest.fixture
def cli_env(temp_dir, monkeypatch):
    """Keep the CLI away from the real config and data directories."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(temp_dir / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(temp_dir / "data"))
    return temp_dir


def filter_args(filter_paths):
    db_path, bloom_path = filter_paths
    return ["--one-grams", "--dbpath", str(db_path), "--bloompath", str(bloom_path)]


def test_train_then_check(cli_env, corpus, filter_paths, capsys):
    args = filter_args(filter_paths)

    assert main(["train", *args, str(corpus.ham_dir), str(corpus.spam_dir)]) == 0
    out = capsys.readouterr().out
    assert "trained, nham 10, nsent 0, nspam 10, malformed 0" in out

    message = cli_env / "incoming.eml"
    message.write_bytes(make_message("Question", "free viagra now"))
    assert main(["check", *args, str(message)]) == 0
    assert float(capsys.readouterr().out) > 0.95

    message.write_bytes(make_message("Question", "meeting agenda"))
    assert main(["check", *args, str(message)]) == 0
    assert float(capsys.readouterr().out) < 0.05


def test_train_with_sent_dir(cli_env, corpus, filter_paths, capsys):
    args = filter_args(filter_paths) + ["--sent-dir", str(corpus.sent_dir)]
    assert main(["train", *args, str(corpus.ham_dir), str(corpus.spam_dir)]) == 0
    assert "nsent 3" in capsys.readouterr().out


def test_train_refuses_existing_filter(cli_env, corpus, filter_paths, capsys):
    args = filter_args(filter_paths)
    assert main(["train", *args, str(corpus.ham_dir), str(corpus.spam_dir)]) == 0
    assert main(["train", *args, str(corpus.ham_dir), str(corpus.spam_dir)]) == 1


def test_train_missing_directory(cli_env, corpus, filter_paths):
    args = filter_args(filter_paths)
    assert main(["train", *args, str(cli_env / "nope"), str(corpus.spam_dir)]) == 1


def test_test_command(cli_env, corpus, filter_paths, capsys):
    args = filter_args(filter_paths)
    main(["train", *args, str(corpus.ham_dir), str(corpus.spam_dir)])
    capsys.readouterr()

    assert main(["test", *args, str(corpus.ham_dir), str(corpus.spam_dir)]) == 0
    out = capsys.readouterr().out
    assert "total ham, ok 10, bad 0" in out
    assert "total spam, ok 10, bad 0" in out
    assert "accuracy: 1.000000" in out


def test_analyze_command(cli_env, corpus, filter_paths, capsys):
    args = filter_args(filter_paths)
    assert main(["analyze", *args, str(corpus.ham_dir), str(corpus.spam_dir)]) == 0
    out = capsys.readouterr().out
    assert "training done, nham 5, nsent 0, nspam 5" in out
    assert "specificity" in out


def test_play_command(cli_env, corpus, filter_paths, capsys):
    args = filter_args(filter_paths) + ["--sent-dir", str(corpus.sent_dir)]
    assert main(["play", *args, str(corpus.ham_dir), str(corpus.spam_dir)]) == 0
    out = capsys.readouterr().out
    assert "completed, nham 10, nsent 3, nspam 10, nbad 0, nwithoutdate 0" in out


def test_invalid_parameter(cli_env, filter_paths):
    with pytest.raises(SystemExit):
        main(["check", *filter_args(filter_paths), "--max-power", "0.7", "message.eml"])


def test_config_command(cli_env, capsys):
    assert main(["config", "--top-words", "20"]) == 0
    path = cli_env / "config" / "junkfilter" / "config.toml"
    assert f"wrote {path}" in capsys.readouterr().out
    assert "top_words = 20" in path.read_text()


def test_paths(cli_env, capsys):
    assert main(["--paths"]) == 0
    out = capsys.readouterr().out
    assert "Word store:" in out
    assert str(cli_env / "data" / "junkfilter" / "words.json") in out


def test_no_command_prints_help(cli_env, capsys):
    assert main([]) == 2
    assert "usage:" in capsys.readouterr().out


def test_check_does_not_write_rebuilt_rarity_filter(cli_env, corpus, filter_paths, capsys):
    args = filter_args(filter_paths)
    main(["train", *args, str(corpus.ham_dir), str(corpus.spam_dir)])
    _, bloom_path = filter_paths
    bloom_path.unlink()

    message = cli_env / "incoming.eml"
    message.write_bytes(make_message("Question", "free viagra now"))
    assert main(["check", *args, str(message)]) == 0
    assert main(["test", *args, str(corpus.ham_dir), str(corpus.spam_dir)]) == 0

    assert not bloom_path.exists()
