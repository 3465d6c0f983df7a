from __future__ import annotations

from dataclasses import dataclass

from django.utils.translation import gettext as _

from tracking.records import Status

# Resulting state for every allowed (current, requested) pair.
ALLOWED_TRANSITIONS = {
    (Status.NONE, Status.CHECKED_IN): Status.CHECKED_IN,
    (Status.NONE, Status.CHECKED_OUT): Status.CHECKED_OUT,
    (Status.CHECKED_IN, Status.CHECKED_OUT): Status.CHECKED_OUT,
    (Status.CHECKED_OUT, Status.CHECKED_IN): Status.CHECKED_IN,
}


@dataclass(frozen=True)
class TransitionDecision:
    allowed: bool
    reason: str = ""
    code: str = ""
    same_status: bool = False


def same_status_reason(status: Status) -> tuple[str, str]:
    if status == Status.CHECKED_IN:
        return _("Cannot check in: this tag is already checked in."), "already_checked_in"
    return _("Cannot check out: this tag is already checked out."), "already_checked_out"


def check_transition(current: Status, requested: Status) -> TransitionDecision:
    current = Status(current or Status.NONE)
    requested = Status(requested)
    if (current, requested) in ALLOWED_TRANSITIONS:
        return TransitionDecision(allowed=True)

    if current == requested and requested != Status.NONE:
        reason, code = same_status_reason(requested)
        return TransitionDecision(allowed=False, reason=reason, code=code, same_status=True)

    return TransitionDecision(
        allowed=False,
        reason=_("Cannot record %(status)s: it does not match the current status.") % {"status": requested.label},
        code="inconsistent_status",
    )
