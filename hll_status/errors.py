"""Exception types raised across the status bot."""


class StatusBotError(Exception):
    """Base class for every error the bot raises on purpose."""


class ConfigurationError(StatusBotError):
    """Required configuration is missing or malformed. Fatal at startup."""


class FetchError(StatusBotError):
    """The status endpoint could not be reached or answered with an error."""


class ExtractionError(StatusBotError):
    """The status response did not contain a usable JSON object."""


class EnrichmentError(StatusBotError):
    """The secondary A2S query failed."""


class PublishError(StatusBotError):
    """Discord rejected a send/edit request or the channel is unavailable."""
