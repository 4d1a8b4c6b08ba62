"""Job state normalization.

A job is identified by its exact encoded blob: a relay record for any other
blob is a stale or foreign job and counts as rejected, whatever state the
relay reports for it.
"""

from __future__ import annotations

from typing import Any

from .models import JobCompleted, JobExpired, JobRejected, JobState, JobSubmitted
from .protocol import parse_job_record


def normalize_job_state(raw: Any, submitted_boc: str) -> JobState:
    """Map a raw ``command_get`` record onto a job state.

    Raises:
        TonhubProtocolError: If the record is malformed.
    """
    record = parse_job_record(raw)
    state = record["state"]

    if state == "empty":
        return JobExpired()
    if record["job"] != submitted_boc:
        return JobRejected()
    if state == "expired":
        return JobExpired()
    if state == "submitted":
        return JobSubmitted()
    if state == "rejected":
        return JobRejected()
    return JobCompleted(result=record["result"])
