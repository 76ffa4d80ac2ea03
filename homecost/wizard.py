"""Wizard position: where the user is in each of the four survey sections."""

from dataclasses import dataclass, field, replace

from homecost.errors import InvalidInput

SECTIONS = ("property", "buyer", "loan", "seller")

NOT_STARTED = "not-started"
IN_PROGRESS = "in-progress"
COMPLETE = "complete"


@dataclass(frozen=True)
class SectionProgress:
    """Current step (1-based, 0 before the section is opened) and completion."""

    step: int = 0
    complete: bool = False

    def __post_init__(self):
        if self.step < 0:
            raise InvalidInput(f"Step must not be negative, got {self.step}")

    @property
    def state(self) -> str:
        if self.complete:
            return COMPLETE
        if self.step == 0:
            return NOT_STARTED
        return IN_PROGRESS

    def has_passed(self, step: int) -> bool:
        """True once the question asked at ``step`` has been confirmed."""
        return self.complete or self.step > step


@dataclass(frozen=True)
class WizardPosition:
    property: SectionProgress = field(default_factory=SectionProgress)
    buyer: SectionProgress = field(default_factory=SectionProgress)
    loan: SectionProgress = field(default_factory=SectionProgress)
    seller: SectionProgress = field(default_factory=SectionProgress)
    loan_section_visible: bool = False
    seller_section_visible: bool = False
    resumed: bool = False

    def section(self, name: str) -> SectionProgress:
        if name not in SECTIONS:
            raise InvalidInput(f"Unknown section '{name}'. Supported: {list(SECTIONS)}")
        return getattr(self, name)

    def has_passed(self, name: str, step: int) -> bool:
        return self.section(name).has_passed(step)

    def is_complete(self, name: str) -> bool:
        return self.section(name).complete

    def at(self, name: str, step: int) -> "WizardPosition":
        """Copy with ``name`` moved to ``step``."""
        current = self.section(name)
        return replace(self, **{name: replace(current, step=step)})

    def advance(self, name: str, steps: int = 1) -> "WizardPosition":
        return self.at(name, self.section(name).step + steps)

    def complete(self, name: str) -> "WizardPosition":
        current = self.section(name)
        return replace(self, **{name: replace(current, complete=True)})

    def visible_sections(self) -> list[str]:
        sections = ["property", "buyer"]
        if self.loan_section_visible:
            sections.append("loan")
        if self.seller_section_visible:
            sections.append("seller")
        return sections

    def current_section(self) -> str | None:
        """First visible section that is not yet complete."""
        for name in self.visible_sections():
            if not self.is_complete(name):
                return name
        return None
