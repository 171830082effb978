"""Custom exceptions for holder_sleuth package."""


class HolderSleuthError(Exception):
    """Base exception for holder_sleuth package."""
    pass


class ConfigurationError(HolderSleuthError):
    """Exception raised for configuration-related errors."""
    pass


class SchemaError(ConfigurationError):
    """Exception raised when the event schema file is missing or invalid."""
    pass


class APIError(HolderSleuthError):
    """Exception raised for API-related errors."""
    pass


class UpstreamError(APIError):
    """Exception raised when the block explorer call fails."""
    pass


class FetchError(APIError):
    """Exception raised when node log fetching fails after all retries."""
    pass


class DecodingError(HolderSleuthError):
    """Exception raised for decoding-related errors."""
    pass


class PersistenceError(HolderSleuthError):
    """Exception raised when the checkpoint or balance store fails."""
    pass


# Short names used across the pipeline
ConfigError = ConfigurationError
DecodeError = DecodingError
