from __future__ import annotations

from .models import VerificationOutcome


class CompletionVerifier:
    """Strict reconciliation of succeeded units against dispatched units.

    Anything but exact equality is a failure, over-counting included.
    """

    def verify(self, total_dispatched: int, succeeded_count: int) -> VerificationOutcome:
        total = int(total_dispatched)
        ok = int(succeeded_count)
        return VerificationOutcome(
            succeeded=ok == total,
            total_dispatched=total,
            succeeded_count=ok,
            failed_count=total - ok,
        )
