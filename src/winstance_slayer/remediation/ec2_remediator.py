"""Find instances impaired past the threshold in one region and reboot them."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import boto3

from winstance_slayer.config import DEFAULT_OWNER_TAGS
from winstance_slayer.models import (
    AwsCredentials,
    ImpairedInstanceStatus,
    Instance,
    Reservation,
    RunOutcome,
    RunResult,
)

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD_MINUTES = 10


def make_ec2_client(region: str, credentials: AwsCredentials | None = None) -> Any:
    """EC2 client for region; explicit credentials if given, else boto3's default chain."""
    # one Session per client; the module-level default session is not thread-safe
    kwargs: dict[str, Any] = {}
    if credentials is not None:
        kwargs["aws_access_key_id"] = credentials.access_key_id
        kwargs["aws_secret_access_key"] = credentials.secret_access_key
    session = boto3.session.Session(**kwargs)
    return session.client("ec2", region_name=region)


def list_impaired_statuses(client: Any) -> list[ImpairedInstanceStatus]:
    """All instance statuses with instance-status.status == impaired."""
    statuses: list[ImpairedInstanceStatus] = []
    next_token = None
    while True:
        kwargs: dict[str, Any] = {
            "Filters": [{"Name": "instance-status.status", "Values": ["impaired"]}],
        }
        if next_token:
            kwargs["NextToken"] = next_token
        response = client.describe_instance_status(**kwargs)
        for status in response.get("InstanceStatuses") or []:
            statuses.append(ImpairedInstanceStatus.from_api(status))
        next_token = response.get("NextToken")
        if not next_token:
            break
    return statuses


def list_matching_reservations(
    client: Any,
    instance_ids: list[str],
    owners: list[str],
    pattern: str,
) -> list[Reservation]:
    """Reservations holding instance_ids, filtered server-side by Owner and Name tags."""
    reservations: list[Reservation] = []
    next_token = None
    while True:
        kwargs: dict[str, Any] = {
            "InstanceIds": instance_ids,
            "Filters": [
                {"Name": "tag:Owner", "Values": list(owners)},
                {"Name": "tag:Name", "Values": [pattern]},
            ],
        }
        if next_token:
            kwargs["NextToken"] = next_token
        response = client.describe_instances(**kwargs)
        for reservation in response.get("Reservations") or []:
            reservations.append(Reservation.from_api(reservation))
        next_token = response.get("NextToken")
        if not next_token:
            break
    return reservations


def select_aged_impairments(
    statuses: list[ImpairedInstanceStatus],
    cutoff: datetime,
    now: datetime,
) -> list[str]:
    """IDs whose earliest impairment is strictly before cutoff."""
    return [s.instance_id for s in statuses if s.earliest_impairment(now) < cutoff]


def remediate_region(
    region: str,
    pattern: str,
    threshold_minutes: int = DEFAULT_THRESHOLD_MINUTES,
    dry_run: bool = False,
    owners: list[str] | None = None,
    credentials: AwsCredentials | None = None,
    client: Any = None,
    now: datetime | None = None,
) -> RunResult:
    """
    Reboot instances in region impaired for longer than threshold_minutes.

    Steps run strictly in order: status query, reservation query, reboot.
    Returns early (without further API calls) when nothing is left to act on.
    The reboot is issued once, never retried; API errors propagate.
    """
    if not pattern:
        raise ValueError("pattern is required")
    owners = list(owners) if owners is not None else list(DEFAULT_OWNER_TAGS)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    cutoff = now - timedelta(minutes=threshold_minutes)
    ec2 = client if client is not None else make_ec2_client(region, credentials)

    logger.info(
        "Killing impaired instances which are impaired since before %s in %s",
        cutoff.isoformat(),
        region,
    )

    statuses = list_impaired_statuses(ec2)
    impaired_ids = select_aged_impairments(statuses, cutoff, now)
    if not impaired_ids:
        logger.info("No impaired instances in %s", region)
        return RunResult(region=region, outcome=RunOutcome.NO_IMPAIRED_INSTANCES)

    reservations = list_matching_reservations(ec2, impaired_ids, owners, pattern)

    to_kill: list[str] = []
    for reservation in reservations:
        for instance in reservation.instances:
            if not instance.matches(owners, pattern):
                logger.warning(
                    "%s - %s: %s -- tags do not match, skipping",
                    region,
                    instance.instance_id,
                    instance.name,
                    extra={"owner": instance.owner},
                )
                continue
            logger.info("%s - %s: %s -- will kill", region, instance.instance_id, instance.name)
            to_kill.append(instance.instance_id)

    if not to_kill:
        logger.info('No impaired instances which match the glob "%s" in %s', pattern, region)
        return RunResult(region=region, outcome=RunOutcome.NO_MATCHING_INSTANCES)

    params = {"InstanceIds": to_kill}
    if dry_run:
        logger.info(
            "This is a dry run, but would have run reboot_instances(%s) in %s",
            json.dumps(params),
            region,
        )
        return RunResult(
            region=region,
            outcome=RunOutcome.DRY_RUN_WOULD_KILL,
            instance_ids=to_kill,
        )

    response = ec2.reboot_instances(**params)
    logger.info("Finished rebooting in %s", region, extra={"instance_ids": to_kill})
    logger.info("AWS said: %s", json.dumps(response, indent=2, default=str))
    return RunResult(region=region, outcome=RunOutcome.KILLED, instance_ids=to_kill)
