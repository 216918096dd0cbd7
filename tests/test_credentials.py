"""Tests for the secrets-service credential bootstrap."""

from unittest.mock import MagicMock, patch

import httpx
import pytest

from winstance_slayer.config import Settings
from winstance_slayer.credentials.secrets import (
    SecretsFetchError,
    _parse_credentials,
    fetch_aws_credentials,
    resolve_aws_credentials,
)


def _mock_http(mock_client_class, payload=None, status_error=None):
    mock_response = MagicMock()
    if status_error is not None:
        mock_response.raise_for_status.side_effect = status_error
    mock_response.json.return_value = payload
    mock_client = MagicMock()
    mock_client.get.return_value = mock_response
    mock_client_class.return_value.__enter__.return_value = mock_client
    return mock_client


def test_parse_credentials():
    creds = _parse_credentials(
        {"secret": {"AWS_ACCESS_KEY_ID": "AKIA123", "AWS_SECRET_ACCESS_KEY": "s3cr3t"}}
    )
    assert creds.access_key_id == "AKIA123"
    assert creds.secret_access_key == "s3cr3t"


def test_parse_credentials_rejects_incomplete_payload():
    with pytest.raises(SecretsFetchError):
        _parse_credentials({})
    with pytest.raises(SecretsFetchError):
        _parse_credentials({"secret": {"AWS_ACCESS_KEY_ID": "AKIA123"}})


@patch("winstance_slayer.credentials.secrets.httpx.Client")
def test_fetch_aws_credentials_builds_secret_url(mock_client_class):
    mock_client = _mock_http(
        mock_client_class,
        payload={"secret": {"AWS_ACCESS_KEY_ID": "AKIA123", "AWS_SECRET_ACCESS_KEY": "s3cr3t"}},
    )
    creds = fetch_aws_credentials(
        "http://taskcluster/secrets/v1/", "project/releng/winstance-slayer/aws-creds"
    )
    assert creds.access_key_id == "AKIA123"
    mock_client.get.assert_called_once_with(
        "http://taskcluster/secrets/v1/secret/project/releng/winstance-slayer/aws-creds"
    )


@patch("winstance_slayer.credentials.secrets.httpx.Client")
def test_fetch_aws_credentials_http_error(mock_client_class):
    error = httpx.HTTPStatusError("404 Not Found", request=MagicMock(), response=MagicMock())
    _mock_http(mock_client_class, status_error=error)
    with pytest.raises(SecretsFetchError):
        fetch_aws_credentials("http://taskcluster/secrets/v1", "missing")


@patch("winstance_slayer.credentials.secrets.httpx.Client")
def test_fetch_aws_credentials_invalid_json(mock_client_class):
    mock_client = _mock_http(mock_client_class)
    mock_client.get.return_value.json.side_effect = ValueError("Expecting value")
    with pytest.raises(SecretsFetchError):
        fetch_aws_credentials("http://taskcluster/secrets/v1", "path")


@patch("winstance_slayer.credentials.secrets.fetch_aws_credentials")
def test_resolve_fetches_when_access_key_flag_unset(mock_fetch):
    settings = Settings(workertype_pattern="x", aws_access_key="")
    resolve_aws_credentials(settings)
    mock_fetch.assert_called_once_with(
        "http://taskcluster/secrets/v1",
        "project/releng/winstance-slayer/aws-creds",
        timeout_seconds=30.0,
    )


@patch("winstance_slayer.credentials.secrets.fetch_aws_credentials")
def test_resolve_uses_environment_pair(mock_fetch):
    settings = Settings(
        aws_access_key="set",
        aws_access_key_id="AKIA123",
        aws_secret_access_key="s3cr3t",
    )
    creds = resolve_aws_credentials(settings)
    assert creds is not None
    assert creds.access_key_id == "AKIA123"
    mock_fetch.assert_not_called()


@patch("winstance_slayer.credentials.secrets.fetch_aws_credentials")
def test_resolve_falls_back_to_default_chain(mock_fetch):
    settings = Settings(aws_access_key="set", aws_access_key_id=None, aws_secret_access_key=None)
    assert resolve_aws_credentials(settings) is None
    mock_fetch.assert_not_called()
