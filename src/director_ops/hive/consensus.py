"""Quorum resolution for consensus requests.

The resolver runs after every accepted vote:

1. Recount the votes from the full ``votes`` mapping. Each voter holds exactly
   one vote (their latest), so re-voting never double counts.
2. Walk the options in the order they were declared and resolve on the first
   one whose count reaches ``required_votes``. When several options reach the
   threshold together, the earliest declared option wins.
3. Resolved requests are frozen: no further tallying happens.
"""

from __future__ import annotations

import logging

from director_ops.hive.models import ConsensusRequest
from director_ops.state.manager import utc_now_iso

logger = logging.getLogger(__name__)


def tally(request: ConsensusRequest) -> dict[str, int]:
    """Votes per declared option, zero counts included, in declaration order."""

    counts = {option: 0 for option in request.options}
    for vote in request.votes.values():
        if vote.choice in counts:
            counts[vote.choice] += 1
    return counts


def resolve(request: ConsensusRequest, now: str | None = None) -> str | None:
    """Resolve `request` in place if an option reached quorum.

    Returns:
        The outcome when the request is (or already was) resolved, else None.
    """

    if request.status == "resolved":
        return request.outcome

    counts = tally(request)
    for option in request.options:
        if counts[option] >= request.required_votes:
            request.status = "resolved"
            request.outcome = option
            request.resolved_at = now or utc_now_iso()
            logger.info(
                "Consensus reached",
                extra={
                    "request_id": request.id,
                    "outcome": option,
                    "votes": counts[option],
                    "required_votes": request.required_votes,
                },
            )
            return option
    return None
