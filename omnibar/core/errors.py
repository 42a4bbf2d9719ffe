"""Error taxonomy for skills and the query controller."""

from __future__ import annotations


class OmnibarError(Exception):
    """Base class for all omnibar-core errors."""


class InvalidExpression(OmnibarError, ValueError):
    """Arithmetic expression could not be parsed or evaluated."""


class UnresolvableCurrency(OmnibarError, ValueError):
    """Currency symbol or code does not map to a known currency."""


class RateUnavailable(OmnibarError, RuntimeError):
    """Exchange rates could not be fetched."""


class UnsupportedCurrency(OmnibarError, RuntimeError):
    """Currency code is absent from the fetched rate table."""

    def __init__(self, code: str) -> None:
        super().__init__(f"Unsupported currency code ({code})")
        self.code = code
