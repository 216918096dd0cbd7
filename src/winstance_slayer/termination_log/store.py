"""Append run reports to a YAML-style multi-document text file."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from winstance_slayer.models import RunReport

logger = logging.getLogger(__name__)

DOCUMENT_SEPARATOR = "\n---\n"


def render_report(report: RunReport) -> str:
    """Separator followed by the report as pretty-printed JSON."""
    return DOCUMENT_SEPARATOR + json.dumps(report.to_log_dict(), indent=2)


class TerminationLog:
    """
    Append-only log of run reports.

    Each append writes one document; the file is never read back. Write
    errors (OSError) propagate to the caller.
    """

    def __init__(self, path: str | Path = "termination-log.yml") -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def append(self, report: RunReport) -> None:
        data = render_report(report)
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(data)
        logger.info("Run report appended", extra={"path": str(self._path)})
