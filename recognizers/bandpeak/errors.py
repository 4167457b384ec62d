class BandprintError(Exception):
    """Base class for errors raised by the band-peak recognizer."""


class ConfigurationError(BandprintError, ValueError):
    """Audio or band parameters are malformed. Fatal at startup."""


class InvalidSongIdError(BandprintError, ValueError):
    """An ingestion call was made with an empty or blank song id."""


class IndexPersistenceError(BandprintError):
    """The fingerprint index could not be loaded from or saved to disk."""
