"""Pre-trade reflection checklist.

Three yes/no prompts answered before the first entry of a visit. Any
answers let the trader continue. Admitting to FOMO or revenge trading
marks a high-risk pattern that is shown later but never blocks.
"""

from dataclasses import dataclass

HIGH_PROBABILITY_PROMPT = "Is this a high-probability setup from my trading plan?"
FOMO_PROMPT = "Am I chasing a candle or feeling FOMO?"
REVENGE_PROMPT = "Am I trading to recover a previous loss (Revenge)?"

PROMPTS = (HIGH_PROBABILITY_PROMPT, FOMO_PROMPT, REVENGE_PROMPT)

HIGH_RISK_WARNING = (
    "High-risk emotional state: you indicated FOMO or revenge trading."
)


@dataclass(frozen=True)
class ChecklistResponse:
    """Answers to the three reflection prompts."""
    high_probability_setup: bool
    chasing_fomo: bool
    revenge_trade: bool

    @property
    def is_high_risk(self) -> bool:
        return self.chasing_fomo or self.revenge_trade

    def warnings(self) -> list[str]:
        warnings = []
        if self.is_high_risk:
            warnings.append(HIGH_RISK_WARNING)
        if not self.high_probability_setup:
            warnings.append("Setup is not from your trading plan.")
        return warnings
