"""
The flareclient module contains the most common top-level entry points for the SDK.
"""

from flareclient.impl.util import log
from flareclient.version import VERSION

from .client import FlareClient
from .config import Config, HTTPConfig
from .configuration import FlagConfiguration
from .context import EvaluationContext
from .errors import (ApiError, CancelledError, FlareError,
                     InvalidArgumentError, NetworkError, ParseError,
                     RequestTimeoutError)
from .evaluation import ErrorKind, Reason, ResolutionDetails
from .provider import FlareProvider

__version__ = VERSION

__all__ = [
    'ApiError',
    'CancelledError',
    'Config',
    'ErrorKind',
    'EvaluationContext',
    'FlagConfiguration',
    'FlareClient',
    'FlareError',
    'FlareProvider',
    'HTTPConfig',
    'InvalidArgumentError',
    'NetworkError',
    'ParseError',
    'Reason',
    'RequestTimeoutError',
    'ResolutionDetails',
    'VERSION',
    'log',
]
