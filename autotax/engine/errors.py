"""Configuration errors raised by the calculation engine."""

from __future__ import annotations


class TaxConfigurationError(Exception):
    """A rules configuration cannot be executed as written.

    Attributes:
        jurisdiction: Jurisdiction code of the misconfigured rules.
        scheme: Scheme tag whose parameters are missing or invalid.
    """

    def __init__(
        self,
        message: str,
        jurisdiction: str | None = None,
        scheme: str | None = None,
    ) -> None:
        """Initialize TaxConfigurationError.

        Args:
            message: Human-readable error message.
            jurisdiction: Jurisdiction code of the offending configuration.
            scheme: Scheme tag that selected the failing calculator.
        """
        self.jurisdiction = jurisdiction
        self.scheme = scheme
        super().__init__(message)


class AdValoremConfigError(TaxConfigurationError):
    """Ad-valorem title tax selected without ``extras.ad_valorem``."""


class HighwayUseConfigError(TaxConfigurationError):
    """Highway-use tax selected without ``extras.highway_use``."""


class PrivilegeConfigError(TaxConfigurationError):
    """Privilege tax selected without ``extras.privilege``."""


class LeaseSchemeConfigError(TaxConfigurationError):
    """Lease special scheme selected without its extras entry."""
