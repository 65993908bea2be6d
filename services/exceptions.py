"""
Error taxonomy shared by the retrieval, ingestion and generation services
"""


class InboxIQError(Exception):
    """Base class for service errors"""
    pass


class ConfigurationError(InboxIQError):
    """Required credentials or index settings are missing. Never retried."""
    pass


class OperationTimeout(InboxIQError, TimeoutError):
    """A budgeted operation exceeded its deadline"""
    pass


class UpstreamUnavailable(InboxIQError):
    """Vector index or language model could not be reached"""
    pass


class IngestionError(InboxIQError):
    """Raised when a batch fails to index or to be flagged as processed"""
    pass


class ReplyGenerationError(InboxIQError):
    """Raised when the language model fails to produce a reply draft"""
    pass
