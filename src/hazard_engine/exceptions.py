"""Custom exception hierarchy for the hazard similarity engine."""


class HazardEngineError(Exception):
    """Base exception for all hazard engine errors."""


class StoreError(HazardEngineError):
    """Error reading from or writing to the report/chunk store."""


class ClusterError(HazardEngineError):
    """Error creating or updating a similarity cluster."""


class ClusterNotFoundError(ClusterError):
    """No report belongs to the requested cluster."""


class RetrievalError(HazardEngineError):
    """Error during knowledge-base retrieval."""


class ConfigurationError(HazardEngineError):
    """Error in system configuration."""
