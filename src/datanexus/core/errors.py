class DataNexusError(Exception):
    """Base error for all user-facing DataNexus exceptions."""


class ConfigurationError(DataNexusError):
    """Raised when configuration is invalid or incomplete."""


class ProjectNotInitializedError(DataNexusError):
    """Raised when the local data directory or store is missing."""


class SchemaVersionError(DataNexusError):
    """Raised when the store was written with a different schema version."""


class ProviderError(DataNexusError):
    """Raised when the search provider cannot deliver a response."""


class StoreWriteError(DataNexusError):
    """Raised when a batch of market items cannot be persisted."""


class BackfillError(DataNexusError):
    """Raised when backfill scheduling is used incorrectly."""
