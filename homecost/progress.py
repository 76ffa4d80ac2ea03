"""Requirement tracking: which required fields are answered, and how far along.

A field only counts as answered once the user has confirmed it, meaning
its section is complete or the wizard has moved past the step that asks
it. A value that is merely present, such as a suggested loan decision or
a stale value from an earlier session, does not count on its own.
"""

import logging
from dataclasses import dataclass

from homecost import branching
from homecost.profile import Profile, is_answered
from homecost.wizard import WizardPosition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressReport:
    required_fields: tuple[str, ...]
    answered_fields: tuple[str, ...]

    @property
    def answered_count(self) -> int:
        return len(self.answered_fields)

    @property
    def total_count(self) -> int:
        return len(self.required_fields)

    @property
    def outstanding_fields(self) -> tuple[str, ...]:
        answered = set(self.answered_fields)
        return tuple(f for f in self.required_fields if f not in answered)

    @property
    def percent(self) -> int:
        if not self.required_fields:
            return 0
        return int(self.answered_count * 100 / self.total_count + 0.5)

    def as_dict(self) -> dict:
        return {
            "required_fields": list(self.required_fields),
            "answered_count": self.answered_count,
            "total_count": self.total_count,
            "percent": self.percent,
        }


def field_answered(key: str, profile: Profile, position: WizardPosition) -> bool:
    """True when ``key`` holds a value the user has moved past."""
    section, step = branching.field_step(key, profile)
    if not position.has_passed(section, step):
        return False
    return is_answered(profile.get(key))


def track(profile: Profile, position: WizardPosition) -> ProgressReport:
    required = branching.required_fields(profile, position)
    answered = [key for key in required if field_answered(key, profile, position)]
    logger.debug("%d of %d required fields answered", len(answered), len(required))
    return ProgressReport(tuple(required), tuple(answered))
