"""AWS credentials from the secrets service (Taskcluster secrets API over HTTP)."""

from __future__ import annotations

import logging

import httpx

from winstance_slayer.config import Settings
from winstance_slayer.models import AwsCredentials

logger = logging.getLogger(__name__)


class SecretsFetchError(RuntimeError):
    """The secrets service failed or returned an unusable payload."""


def _secret_url(base_url: str, secret_path: str) -> str:
    return f"{base_url.rstrip('/')}/secret/{secret_path.lstrip('/')}"


def _parse_credentials(payload: dict) -> AwsCredentials:
    """Extract the credential pair from a {"secret": {...}} response body."""
    secret = payload.get("secret") if isinstance(payload, dict) else None
    if not isinstance(secret, dict):
        raise SecretsFetchError("secrets response has no 'secret' object")
    key_id = secret.get("AWS_ACCESS_KEY_ID")
    secret_key = secret.get("AWS_SECRET_ACCESS_KEY")
    if not key_id or not secret_key:
        raise SecretsFetchError("secret is missing AWS_ACCESS_KEY_ID or AWS_SECRET_ACCESS_KEY")
    return AwsCredentials(access_key_id=key_id, secret_access_key=secret_key)


def fetch_aws_credentials(
    base_url: str,
    secret_path: str,
    timeout_seconds: float = 30.0,
) -> AwsCredentials:
    """
    GET {base_url}/secret/{secret_path} and return the AWS credential pair.

    No retries; HTTP and payload errors raise SecretsFetchError.
    """
    url = _secret_url(base_url, secret_path)
    logger.info("No access credentials provided; fetching from %s", url)
    try:
        with httpx.Client(timeout=timeout_seconds) as client:
            response = client.get(url)
            response.raise_for_status()
            payload = response.json()
    except httpx.HTTPError as e:
        raise SecretsFetchError(f"failed to fetch secret {secret_path}: {e}") from e
    except ValueError as e:
        raise SecretsFetchError(f"secret {secret_path} is not valid JSON") from e
    return _parse_credentials(payload)


def resolve_aws_credentials(settings: Settings) -> AwsCredentials | None:
    """
    Credentials to hand to each regional client.

    AWS_ACCESS_KEY unset: fetch from the secrets service.
    Otherwise use the explicit key pair if both halves are set, else None
    (boto3 default credential chain).
    """
    if not settings.aws_access_key:
        return fetch_aws_credentials(
            settings.secrets_base_url,
            settings.secret_path,
            timeout_seconds=settings.secrets_timeout_seconds,
        )
    if settings.aws_access_key_id and settings.aws_secret_access_key:
        return AwsCredentials(
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
        )
    return None
