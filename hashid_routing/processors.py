"""
Parameter processors: apply a transform to a mutable name -> value mapping.

Callers never check whether a handler has anything to process. The factory
always hands back a Processing pair, whose processor is NoOp when no spec was
declared.
"""
from abc import ABC, abstractmethod
from typing import Any, MutableMapping, NamedTuple, Optional

from .metadata import ParameterMetadataResolver
from .models import ParameterSpec
from .registry import HasherRegistry


class ParametersProcessor(ABC):

    @abstractmethod
    def process(self, parameters: MutableMapping[str, Any], spec: Optional[ParameterSpec]) -> MutableMapping[str, Any]:
        """Transforms the declared entries of parameters in place and returns it."""


class NoOp(ParametersProcessor):

    def process(self, parameters, spec):
        return parameters


class _ConvertingProcessor(ParametersProcessor):

    def __init__(self, registry: HasherRegistry):
        self.registry = registry

    def process(self, parameters, spec):
        if spec is None:
            return parameters
        converter = self.registry.get_converter(spec.hasher)
        for name in spec.parameters:
            if name in parameters:
                parameters[name] = self.process_value(converter, parameters[name])
        return parameters

    @abstractmethod
    def process_value(self, converter, value: Any) -> Any:
        ...


class Encode(_ConvertingProcessor):
    """Encodes integer-like values; anything else passes through unchanged."""

    def process_value(self, converter, value):
        if isinstance(value, bool):
            return value
        if isinstance(value, int):
            return converter.encode(value) if value >= 0 else value
        if isinstance(value, str) and value.isascii() and value.isdigit():
            return converter.encode(int(value))
        return value


class Decode(_ConvertingProcessor):
    """Decodes string values. A value that does not decode raises DecodingFailed."""

    def process_value(self, converter, value):
        if isinstance(value, str):
            return converter.decode(value)
        return value


class Processing(NamedTuple):
    processor: ParametersProcessor
    spec: Optional[ParameterSpec]

    def apply(self, parameters: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
        return self.processor.process(parameters, self.spec)


class ParametersProcessorFactory:
    """Pairs a handler's resolved ParameterSpec with the processor for a direction."""

    def __init__(self, resolver: ParameterMetadataResolver, registry: HasherRegistry):
        self.resolver = resolver
        self.encode_processor = Encode(registry)
        self.decode_processor = Decode(registry)
        self.noop_processor = NoOp()

    def encoding(self, handler: Any) -> Processing:
        return self._create(handler, self.encode_processor)

    def decoding(self, handler: Any) -> Processing:
        return self._create(handler, self.decode_processor)

    def _create(self, handler: Any, processor: ParametersProcessor) -> Processing:
        spec = self.resolver.resolve(handler)
        if spec is None:
            return Processing(self.noop_processor, None)
        return Processing(processor, spec)
