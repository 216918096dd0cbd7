"""
Credential bootstrap.

Fetches the AWS credential pair from the secrets service when the
environment does not already provide one.
"""

from winstance_slayer.credentials.secrets import (
    SecretsFetchError,
    fetch_aws_credentials,
    resolve_aws_credentials,
)

__all__ = ["SecretsFetchError", "fetch_aws_credentials", "resolve_aws_credentials"]
