"""Tests for the winstance-slayer CLI."""

from unittest.mock import patch

from winstance_slayer.cli import main


@patch("winstance_slayer.workflow.resolve_aws_credentials")
@patch("boto3.session.Session")
def test_missing_pattern_exits_1_without_network(mock_session, mock_resolve, monkeypatch, capsys):
    monkeypatch.delenv("WORKERTYPE_PATTERN", raising=False)
    assert main([]) == 1
    assert "specify WORKERTYPE_PATTERN" in capsys.readouterr().out
    mock_resolve.assert_not_called()
    mock_session.assert_not_called()


@patch("winstance_slayer.cli.run")
def test_flags_override_environment(mock_run, monkeypatch, tmp_path):
    monkeypatch.setenv("WORKERTYPE_PATTERN", "from-env-*")
    monkeypatch.delenv("DRY_RUN", raising=False)
    log_file = str(tmp_path / "log.yml")

    assert main(["--pattern", "gecko-t-*", "--dry-run", "--log-file", log_file]) == 0

    settings = mock_run.call_args.kwargs["settings"]
    assert settings.workertype_pattern == "gecko-t-*"
    assert settings.is_dry_run is True
    assert settings.termination_log_path == log_file


@patch("winstance_slayer.cli.run")
def test_dry_run_presence_flag_from_environment(mock_run, monkeypatch):
    monkeypatch.setenv("WORKERTYPE_PATTERN", "gecko-*")
    monkeypatch.setenv("DRY_RUN", "yes")

    assert main([]) == 0
    assert mock_run.call_args.kwargs["settings"].is_dry_run is True
