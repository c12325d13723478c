"""Typed errors raised by the risk engine.

Every error derives from RiskEngineError so callers can treat the whole
family as "cannot evaluate" with a single except clause. A high risk score
is never an error; it is returned as a normal FraudCheckResult.
"""


class RiskEngineError(Exception):
    """Base class for all risk engine failures."""

    message: str = "Risk engine failure."

    def __init__(self, message: str | None = None):
        self.message = message or self.__class__.message
        super().__init__(self.message)


class InvalidContextError(RiskEngineError, ValueError):
    """The evaluation context is missing a required field."""

    message = "Invalid transaction context."


class InfrastructureError(RiskEngineError):
    """A collaborator (state store, geolocation) could not be reached."""

    message = "Risk engine collaborator unavailable."


class StateStoreError(InfrastructureError):
    message = "Ephemeral state store unavailable."


class GeolocationUnavailableError(InfrastructureError):
    message = "Geolocation lookup failed."


class EvaluationUnavailableError(RiskEngineError):
    """One or more checks failed and the fail-closed policy is in effect.

    ``failures`` maps check name to the exception raised by that branch.
    """

    message = "Failed to complete fraud check."

    def __init__(self, message: str | None = None, failures: dict | None = None):
        super().__init__(message)
        self.failures: dict[str, BaseException] = failures or {}


class DeviceNotFoundError(RiskEngineError, LookupError):
    message = "Device not found."
