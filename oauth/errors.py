"""Error taxonomy for the OAuth relay.

Every failure the relay reports to a user is a RelayError subclass. The
status code and title drive the rendered error page; the message is shown
to the user and must never contain a token or the client secret.
"""


class RelayError(Exception):
    """Base class for failures reported to the requesting user."""

    status_code = 500
    title = "Authorization Failed"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(RelayError):
    """Client credentials or the callback URL are missing or invalid."""

    status_code = 500
    title = "Server Configuration Error"


class ProviderDeniedError(RelayError):
    """Slack (or the user on Slack's consent screen) rejected the request."""

    status_code = 400
    title = "Authorization Denied"

    def __init__(self, provider_error: str):
        super().__init__(f"OAuth Error: {provider_error}")
        self.provider_error = provider_error


class MalformedCallbackError(RelayError):
    """The callback arrived without a code or without a state."""

    status_code = 400
    title = "Missing Parameters"


class InvalidStateError(RelayError):
    """Unknown, expired or already used state parameter."""

    status_code = 400
    title = "Invalid State"


class ExchangeError(RelayError):
    """The code-for-token exchange failed on the network or at Slack."""

    status_code = 502
    title = "Token Exchange Failed"

    def __init__(self, provider_error: str):
        super().__init__(f"Token exchange failed: {provider_error}")
        self.provider_error = provider_error


class RenderError(RelayError):
    """Building a response page failed."""

    status_code = 500
    title = "Rendering Failed"
