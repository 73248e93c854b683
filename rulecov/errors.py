"""
rulecov errors.

Only ``RuleValidationError`` is fatal for a rule run; everything else is
recovered into issue strings or failed results by the worker.
"""


class RulecovError(Exception):
    """Base class for all rulecov errors."""


class RuleFileError(RulecovError):
    """The rule file could not be read or is not well-formed XML."""


class RuleValidationError(RulecovError):
    """The rule cannot be tested at all (e.g. it has no examples)."""

    def __init__(self, rule_file: str, reason: str) -> None:
        self.rule_file = rule_file
        self.reason = reason
        super().__init__(f"{rule_file}: {reason}")
