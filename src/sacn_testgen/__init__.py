"""
sACN Test Generator: driven test traffic for streaming ACN receivers

Produces static, multi-step and time-varying E1.31 universe payloads from
interactive or scripted commands and transmits them at controlled rates,
following the sender interoperability test presets.
"""

__version__ = "0.1.0"
__author__ = "sACN Test Generator Team"

from sacn_testgen.core.config import Settings
from sacn_testgen.core.actions import Action

__all__ = [
    "Action",
    "Settings",
    "__version__",
]
