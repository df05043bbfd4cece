"""Report Xray - upload Cypress test results to Xray."""

__version__ = "1.0.0"

from .conversion import convert_cypress_results
from .models import NormalizedStatus
from .options import Options, options_from_env
from .phases import Clients, RunContext, RuntimeParameters
from .plugin import Phases, run_plugin

__all__ = [
    "__version__",
    "Clients",
    "NormalizedStatus",
    "Options",
    "Phases",
    "RunContext",
    "RuntimeParameters",
    "convert_cypress_results",
    "options_from_env",
    "run_plugin",
]
