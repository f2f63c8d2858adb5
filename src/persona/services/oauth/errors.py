"""OAuth flow errors. Raised inside the login flow and never surfaced to the browser."""


class OAuthError(Exception):
    """Base class for OAuth login failures.

    ``indicator`` is the value put in the ``error`` query parameter of the
    redirect sent back to the browser.
    """

    indicator = "oauth_failed"


class InvalidOAuthStateError(OAuthError):
    """Flow state missing, tampered with, expired or not matching the callback."""

    indicator = "invalid_state"


class MissingClaimsError(OAuthError):
    """The validated ID token lacks a required claim (the subject)."""


class ProviderExchangeError(OAuthError):
    """Discovery, code exchange or ID token validation against the provider failed."""
