"""presence_audit — pre-merge validator for presence metadata descriptors."""

__all__ = [
    "__version__",
    "locate",
    "run_validation",
    "validate_presence",
]
__version__ = "0.1.0"

from presence_audit.core.locator import locate  # noqa: E402, F401
from presence_audit.core.runner import (  # noqa: E402, F401
    run_validation,
    validate_presence,
)
