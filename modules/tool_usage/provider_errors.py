"""
modules/tool_usage/provider_errors.py
--------------------------------------
Errors raised by the external-provider adapters.

ProviderUnavailable is always recovered inside the engine (geometric
fallback for travel costs, partial results for catalog fan-out) and is
never surfaced to the caller of synthesize_journey().
"""


class ProviderUnavailable(Exception):
    """An external provider could not be reached or refused the request."""

    def __init__(self, provider: str, reason: str):
        super().__init__(f"{provider} unavailable: {reason}")
        self.provider = provider
        self.reason = reason
