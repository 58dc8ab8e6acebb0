"""
Obfuscated integer route parameters for FastAPI.

/orders/123 becomes /orders/4w9aA11avM in every generated URL, and endpoints
still receive the integer 123.
"""
from .config import Settings, get_settings
from .converter import Converter, HashidsConverter
from .declarations import hashid
from .exceptions import (
    ConfigurationError,
    DecodingFailed,
    EncodingFailed,
    HashIdError,
    HashIdException,
    HasherNotFound,
    InvalidHandlerReference,
    InvalidParameterDeclaration,
    MissingHandlerReference,
)
from .extension import HashIds, get_hashids, get_url_generator
from .ingress import HashidsRoute, HashidsRouteGuard, RequestParametersDecoder
from .metadata import ParameterMetadataResolver
from .models import HasherConfiguration, ParameterSpec
from .processors import Decode, Encode, NoOp, ParametersProcessorFactory
from .registry import HasherRegistry
from .urls import HashidsURLGenerator
from .validation import ConfigurationValidator

__version__ = "1.0.0"

__all__ = [
    "ConfigurationError",
    "ConfigurationValidator",
    "Converter",
    "Decode",
    "DecodingFailed",
    "Encode",
    "EncodingFailed",
    "HashIdError",
    "HashIdException",
    "HashIds",
    "HasherConfiguration",
    "HasherNotFound",
    "HasherRegistry",
    "HashidsConverter",
    "HashidsRoute",
    "HashidsRouteGuard",
    "HashidsURLGenerator",
    "InvalidHandlerReference",
    "InvalidParameterDeclaration",
    "MissingHandlerReference",
    "NoOp",
    "ParameterMetadataResolver",
    "ParameterSpec",
    "ParametersProcessorFactory",
    "RequestParametersDecoder",
    "Settings",
    "get_hashids",
    "get_settings",
    "get_url_generator",
    "hashid",
]
