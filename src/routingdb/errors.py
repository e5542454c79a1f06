"""Domain errors for routingdb."""


class ProvisionError(RuntimeError):
    """Raised when provisioning cannot continue safely."""


class PreconditionError(ProvisionError):
    """A required tool, file or input is missing or invalid."""


class ReconciliationError(ProvisionError):
    """Creating, starting or attaching a network or container failed."""


class ReadinessTimeoutError(ProvisionError):
    """The database never answered the readiness check."""


class ExtensionError(ProvisionError):
    """Enabling a database extension failed."""

    def __init__(self, extension: str, message: str):
        super().__init__(message)
        self.extension = extension


class OsmImportError(ProvisionError):
    """The osm2pgsql invocation exited with a nonzero status."""


class RoadsBuildError(ProvisionError):
    """The roads-derivation script failed."""
