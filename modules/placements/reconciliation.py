"""Reconciliation: recompute confirmed offers after a bulk load.

Runs once, after internships and applications are loaded from storage
and before the engine accepts any operation.

Counting rule: an internship's confirmed offers are its SUCCESSFUL_ACCEPTED
applications whose student has exactly one application in
{PENDING, SUCCESSFUL_ACCEPTED, SUCCESSFUL_REJECTED}. After a correctly
applied acceptance cascade the accepting student has no other such
application, so the restriction only bites on snapshots edited out of band.
Kept as observed; do not "fix" without confirming intent.
"""
import logging
from collections import Counter
from typing import Iterable

from .models import Application, ApplicationStatus, Internship

logger = logging.getLogger(__name__)

ENGAGEMENT_STATUSES = frozenset({
    ApplicationStatus.PENDING,
    ApplicationStatus.SUCCESSFUL_ACCEPTED,
    ApplicationStatus.SUCCESSFUL_REJECTED,
})


def count_confirmed_offers(applications: Iterable[Application]) -> Counter:
    """Confirmed offers per internship_id under the single-engagement rule."""
    applications = list(applications)

    engagements = Counter(
        a.student_id for a in applications if a.status in ENGAGEMENT_STATUSES
    )
    return Counter(
        a.internship_id
        for a in applications
        if a.status == ApplicationStatus.SUCCESSFUL_ACCEPTED
        and engagements[a.student_id] == 1
    )


def reconcile_confirmed_offers(
    internships: Iterable[Internship],
    applications: Iterable[Application],
) -> dict:
    """Overwrite confirmed_offers (and APPROVED ⇄ FILLED) from applications.

    Internships without a qualifying acceptance are reset to 0.
    Idempotent: a second run on the result changes nothing.

    Returns:
        {"internships": N, "changed": N, "confirmed": N}
    """
    counts = count_confirmed_offers(applications)

    total = 0
    changed = 0
    for internship in internships:
        total += 1
        before = (internship.confirmed_offers, internship.status)
        internship.set_confirmed_offers(counts.get(internship.id, 0))
        after = (internship.confirmed_offers, internship.status)
        if before != after:
            changed += 1
            logger.debug(
                f"Reconciled internship {internship.id}: "
                f"{before[0]}/{before[1].value} → {after[0]}/{after[1].value}"
            )

    stats = {
        "internships": total,
        "changed": changed,
        "confirmed": sum(counts.values()),
    }
    logger.info(
        f"Reconciliation: {changed} of {total} internships changed, "
        f"{stats['confirmed']} confirmed offers"
    )
    return stats
