"""Shared data models for a remediation run."""

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def format_timestamp(dt: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a Z suffix."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def _glob_to_regex(pattern: str) -> re.Pattern:
    # EC2 filter wildcards: * is any run of characters, ? is a single character,
    # backslash makes the next character literal
    parts = []
    chars = iter(pattern)
    for ch in chars:
        if ch == "\\":
            parts.append(re.escape(next(chars, "\\")))
        elif ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.DOTALL)


def name_matches(name: str | None, pattern: str) -> bool:
    """True if name matches the EC2-style glob (case-sensitive, whole string)."""
    if name is None:
        return False
    return _glob_to_regex(pattern).fullmatch(name) is not None


class AwsCredentials(BaseModel):
    """Explicit AWS credential pair handed to every regional client."""

    access_key_id: str
    secret_access_key: str


class ImpairmentDetail(BaseModel):
    """One entry of InstanceStatus.Details."""

    name: str = ""
    status: str = ""
    impaired_since: datetime | None = None

    @classmethod
    def from_api(cls, detail: dict) -> "ImpairmentDetail":
        return cls(
            name=detail.get("Name") or "",
            status=detail.get("Status") or "",
            impaired_since=detail.get("ImpairedSince"),
        )


class ImpairedInstanceStatus(BaseModel):
    """An instance the status checks report as impaired."""

    instance_id: str
    details: list[ImpairmentDetail] = Field(default_factory=list)

    @classmethod
    def from_api(cls, status: dict) -> "ImpairedInstanceStatus":
        instance_status = status.get("InstanceStatus") or {}
        return cls(
            instance_id=status["InstanceId"],
            details=[ImpairmentDetail.from_api(d) for d in instance_status.get("Details") or []],
        )

    def earliest_impairment(self, now: datetime) -> datetime:
        """
        Minimum ImpairedSince across all details.

        Starts from now, so an instance without timestamped details never
        looks older than the threshold.
        """
        earliest = now
        for detail in self.details:
            if detail.impaired_since is None:
                continue
            since = detail.impaired_since
            if since.tzinfo is None:
                since = since.replace(tzinfo=timezone.utc)
            if since < earliest:
                earliest = since
        return earliest


class Instance(BaseModel):
    """An EC2 instance as returned inside a reservation."""

    instance_id: str
    tags: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_api(cls, instance: dict) -> "Instance":
        tags: dict[str, str] = {}
        for tag in instance.get("Tags") or []:
            # last occurrence wins
            tags[tag.get("Key", "")] = tag.get("Value", "")
        return cls(instance_id=instance["InstanceId"], tags=tags)

    @property
    def name(self) -> str | None:
        return self.tags.get("Name")

    @property
    def owner(self) -> str | None:
        return self.tags.get("Owner")

    def matches(self, owners: list[str], pattern: str) -> bool:
        """Owner tag in the allow-list and Name tag matching the glob."""
        return self.owner in owners and name_matches(self.name, pattern)


class Reservation(BaseModel):
    """A group of instances launched together."""

    reservation_id: str = ""
    instances: list[Instance] = Field(default_factory=list)

    @classmethod
    def from_api(cls, reservation: dict) -> "Reservation":
        return cls(
            reservation_id=reservation.get("ReservationId") or "",
            instances=[Instance.from_api(i) for i in reservation.get("Instances") or []],
        )


class RunOutcome(str, Enum):
    """What happened in one region."""

    NO_IMPAIRED_INSTANCES = "no_impaired_instances"
    NO_MATCHING_INSTANCES = "no_matching_instances"
    DRY_RUN_WOULD_KILL = "dry_run_would_kill"
    KILLED = "killed"


class RunResult(BaseModel):
    """Per-region outcome of a remediation pass."""

    region: str
    outcome: RunOutcome
    instance_ids: list[str] = Field(default_factory=list)

    def to_log_entry(self) -> dict[str, Any]:
        if self.outcome in (RunOutcome.DRY_RUN_WOULD_KILL, RunOutcome.KILLED):
            return {self.outcome.value: list(self.instance_ids)}
        return {self.outcome.value: True}


class RegionFailure(BaseModel):
    """A region whose remediation raised instead of returning a RunResult."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    region: str
    error: BaseException


class RunReport(BaseModel):
    """Aggregated result of one run across all regions."""

    started: datetime
    ended: datetime
    results: dict[str, RunResult] = Field(default_factory=dict)

    def to_log_dict(self) -> dict[str, Any]:
        """Ordered mapping: started, one key per region, ended."""
        data: dict[str, Any] = {"started": format_timestamp(self.started)}
        for region, result in self.results.items():
            data[region] = result.to_log_entry()
        data["ended"] = format_timestamp(self.ended)
        return data
