"""
One remediation run across all configured regions.

  Validate config → Resolve credentials → Fan out remediate_region per region
    → Join (all-or-nothing) → Append report to the termination log
"""

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any

from winstance_slayer.config import Settings, get_settings
from winstance_slayer.credentials import resolve_aws_credentials
from winstance_slayer.models import AwsCredentials, RegionFailure, RunReport, RunResult
from winstance_slayer.remediation import make_ec2_client, remediate_region
from winstance_slayer.termination_log import TerminationLog

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str, AwsCredentials | None], Any]


class RegionRemediationError(RuntimeError):
    """One or more regions failed; the run report is not written."""

    def __init__(self, failures: list[RegionFailure]) -> None:
        self.failures = failures
        regions = ", ".join(f.region for f in failures)
        super().__init__(f"remediation failed in: {regions}")


def _remediate_or_fail(
    region: str,
    settings: Settings,
    pattern: str,
    credentials: AwsCredentials | None,
    client_factory: ClientFactory,
    now: datetime | None,
) -> RunResult | RegionFailure:
    """Run one region, turning an exception into a RegionFailure."""
    try:
        return remediate_region(
            region,
            pattern,
            threshold_minutes=settings.impaired_threshold_minutes,
            dry_run=settings.is_dry_run,
            owners=settings.owner_tags,
            client=client_factory(region, credentials),
            now=now,
        )
    except Exception as e:
        return RegionFailure(region=region, error=e)


def remediate_all_regions(
    settings: Settings,
    pattern: str,
    credentials: AwsCredentials | None,
    client_factory: ClientFactory = make_ec2_client,
    now: datetime | None = None,
) -> dict[str, RunResult]:
    """
    Run every configured region concurrently and wait for all of them.

    Results are keyed in configured region order. If any region failed,
    raises RegionRemediationError chained from the first failure.
    """
    regions = list(settings.regions)
    if not regions:
        return {}
    with ThreadPoolExecutor(max_workers=len(regions), thread_name_prefix="region") as pool:
        futures = [
            pool.submit(
                _remediate_or_fail,
                region,
                settings,
                pattern,
                credentials,
                client_factory,
                now,
            )
            for region in regions
        ]
        outcomes = [f.result() for f in futures]

    failures = [o for o in outcomes if isinstance(o, RegionFailure)]
    if failures:
        for failure in failures:
            logger.error(
                "Remediation failed in %s: %s",
                failure.region,
                failure.error,
                exc_info=failure.error,
            )
        raise RegionRemediationError(failures) from failures[0].error
    return {o.region: o for o in outcomes}


def run(
    settings: Settings | None = None,
    client_factory: ClientFactory = make_ec2_client,
    now: datetime | None = None,
) -> RunReport:
    """
    Validate config, resolve credentials, remediate every region, log the report.

    Raises MissingPatternError before any network activity when the pattern
    is unset. Any other failure is logged with its stack trace and re-raised;
    the termination log is only written when every region succeeded.
    """
    settings = settings or get_settings()
    pattern = settings.require_pattern()

    try:
        credentials = resolve_aws_credentials(settings)

        started = datetime.now(timezone.utc)
        results = remediate_all_regions(
            settings,
            pattern,
            credentials,
            client_factory=client_factory,
            now=now,
        )
        report = RunReport(
            started=started,
            ended=datetime.now(timezone.utc),
            results=results,
        )
        TerminationLog(settings.termination_log_path).append(report)
    except Exception:
        logger.exception("Remediation run failed")
        raise

    logger.info(
        "Remediation run finished",
        extra={"regions": list(results), "dry_run": settings.is_dry_run},
    )
    return report
