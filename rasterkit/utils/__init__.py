"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Config validation (validators)
    - Color science (color)
    - Atomic I/O (fs)
    - Hashing for provenance (hashing)
    - Stage timing (profiler)
    - Unified logging (logging_config)

No module in utils/ may import from upper layers (imaging, pipeline).

Convenience imports:
    from rasterkit.utils import fs, color, validators
    from rasterkit.utils.logging_config import setup_logging, get_logger
"""

from . import color
from . import fs
from . import hashing
from . import logging_config
from . import profiler
from . import validators

from .logging_config import configure_logging, get_logger, push_context, setup_logging

__all__ = [
    # Modules
    'color',
    'fs',
    'hashing',
    'logging_config',
    'profiler',
    'validators',
    # Direct exports
    'setup_logging',
    'configure_logging',
    'get_logger',
    'push_context',
]
