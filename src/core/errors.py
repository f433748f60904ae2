"""Error taxonomy shared by the core and the shell.

Shell clients translate library exceptions (requests, Firestore, XML)
into these types so callers can decide what to isolate, log, or surface.
"""


class WeatherAlertsError(Exception):
    """Base class for all application errors."""


class TransportError(WeatherAlertsError):
    """An upstream could not be reached or answered with a non-2xx status."""


# A transport failure while fetching an alert feed.
FetchError = TransportError


class ParseError(WeatherAlertsError):
    """A response body could not be decoded into the expected schema."""


class NotFoundError(WeatherAlertsError):
    """A location or remote resource does not resolve."""


class PersistenceError(WeatherAlertsError):
    """The durable store failed to read or write."""
