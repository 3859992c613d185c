"""
Error taxonomy for the analysis flows.

Each class maps to one failure mode the HTTP layer turns into a status code:
- InputError: the request itself is unusable (400)
- ExtractionError: frames could not be produced from the video (500)
- ModelError: the model call failed or its reply was unusable (500)
- PersistenceError: storage/database writes failed after a valid analysis
  (logged; the analysis is still returned)
"""


class GuardianError(Exception):
    """Base class for all analysis errors."""
    pass


class InputError(GuardianError):
    """Raised when the request carries no usable input."""
    pass


class ExtractionError(GuardianError):
    """Raised when the transcoder fails or produces no frames."""
    pass


class ModelError(GuardianError):
    """Raised on transport failure or an unparsable model reply."""
    pass


class PersistenceError(GuardianError):
    """Raised when object storage or the document store rejects a write."""
    pass
