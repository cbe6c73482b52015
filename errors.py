"""
Error taxonomy for composing the Zana deployment.

Every error propagates to the caller of ``compose()``; none of them is
recovered from inside the composition.
"""


class ZanaDeploymentError(RuntimeError):
    """Base class for all composition failures."""


class MissingConfigurationError(ZanaDeploymentError):
    """A required configuration path or process variable has no value."""

    def __init__(self, path: str, detail: str = ""):
        self.path = path
        message = f"❌ MISSING CONFIG: '{path}' could not be resolved"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class InvalidCompositionOrderError(ZanaDeploymentError):
    """A composition step ran before the step it depends on."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Composition out of order: expected {expected}, got {actual}")


class ExternalReferenceError(ZanaDeploymentError):
    """An imported external resource reference is not usable."""

    def __init__(self, path: str, value: str, reason: str):
        self.path = path
        self.value = value
        super().__init__(f"Invalid external reference at '{path}': {reason} (got {value!r})")
