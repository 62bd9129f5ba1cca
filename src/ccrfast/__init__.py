"""ccrfast: fast incremental revaluation of instruments for CCR exposure simulation.

A full pricer is wrapped once in a fast pricer, which caches everything that
does not change along a simulation path. The fast pricer then values the
instrument at many future dates on many paths, each path carrying its own
small state.

Basic usage:
    >>> import ccrfast
    >>> fast = ccrfast.build_fast_pricer(pricer)
    >>> state = fast.new_path_state()
    >>> values = [ccrfast.evaluate(fast, state, dt) for dt in fast.exposure_dates]
"""

import jax

# Curves and models work in double precision
jax.config.update("jax_enable_x64", True)

__version__ = "0.1.0"
__license__ = "Apache-2.0"

from ccrfast.config import DEFAULT_CONFIG, EngineConfig  # noqa: E402
from ccrfast.engine import ExposureProfile, simulate_exposure  # noqa: E402
from ccrfast.exceptions import (  # noqa: E402
    CalibrationError,
    CcrException,
    ConfigurationError,
    ConventionError,
    DateTimeError,
    EngineError,
    MarketDataError,
    PaymentScheduleError,
    StateTransitionError,
    UnsupportedInstrumentError,
)
from ccrfast.fast import (  # noqa: E402
    ExposureDateSet,
    FastPricer,
    PathState,
    build_fast_pricer,
    evaluate,
    get_supported_pricer_types,
    register_fast_pricer,
)
from ccrfast.logging_config import configure_logging, get_logger  # noqa: E402

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Lifecycle
    "build_fast_pricer",
    "evaluate",
    "FastPricer",
    "PathState",
    "ExposureDateSet",
    "register_fast_pricer",
    "get_supported_pricer_types",
    # Configuration
    "EngineConfig",
    "DEFAULT_CONFIG",
    # Simulation
    "simulate_exposure",
    "ExposureProfile",
    # Exceptions
    "CcrException",
    "CalibrationError",
    "ConfigurationError",
    "ConventionError",
    "DateTimeError",
    "EngineError",
    "MarketDataError",
    "PaymentScheduleError",
    "StateTransitionError",
    "UnsupportedInstrumentError",
    # Logging
    "configure_logging",
    "get_logger",
]
