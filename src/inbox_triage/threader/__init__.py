"""Thread reconstruction.

This package rebuilds conversation trees from message headers and applies
user-directed thread overrides on top of the result.
"""

from .jwz import JWZThreader
from .overrides import ManualOverrideApplication, apply_manual_overrides

__all__ = ["JWZThreader", "ManualOverrideApplication", "apply_manual_overrides"]
