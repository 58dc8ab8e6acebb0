import logging
import threading
from typing import Any, Dict, List, Mapping, Optional

from hashids import Hashids

from .config import DEFAULT_DECODE_CACHE_SIZE, DEFAULT_ENCODE_CACHE_SIZE, DEFAULT_HASHER, Settings
from .converter import Converter, HashidsConverter
from .environment import resolve_placeholders
from .exceptions import ConfigurationError, HasherNotFound
from .models import HasherConfiguration
from .validation import ConfigurationValidator, validate_hasher_name

logger = logging.getLogger(__name__)


class HasherRegistry:
    """
    Named hasher configurations and the converters derived from them.

    Configurations and converters live in two separate maps: re-registering a
    name replaces its configuration and drops only the derived converter, so
    readers of the configuration map are never disturbed. Converters are built
    lazily on first use; a "default" hasher is always present.

    Registration is expected to happen once, at startup, from a single thread.
    get_converter() is safe under concurrent readers.
    """

    def __init__(
        self,
        default_config: Optional[Mapping[str, Any]] = None,
        validator: Optional[ConfigurationValidator] = None,
        encode_cache_size: int = DEFAULT_ENCODE_CACHE_SIZE,
        decode_cache_size: int = DEFAULT_DECODE_CACHE_SIZE,
    ):
        self.validator = validator or ConfigurationValidator()
        self._cache_sizes = {"encode_cache_size": encode_cache_size, "decode_cache_size": decode_cache_size}
        self._configurations: Dict[str, HasherConfiguration] = {}
        self._converters: Dict[str, Converter] = {}
        self._lock = threading.Lock()

        self.register(DEFAULT_HASHER, default_config)

    @classmethod
    def from_settings(cls, settings: Settings) -> "HasherRegistry":
        registry = cls(
            default_config=settings.default_hasher_config(),
            encode_cache_size=settings.encode_cache_size,
            decode_cache_size=settings.decode_cache_size,
        )
        registry.register_many(settings.hashers)
        return registry

    @classmethod
    def from_legacy(cls, legacy_config: Mapping[str, Any], **kwargs) -> "HasherRegistry":
        """Builds a registry whose default hasher comes from an old single-hasher configuration."""
        legacy = HasherConfiguration.from_legacy(legacy_config)
        return cls(default_config=legacy.to_dict(), **kwargs)

    # --- Registration ---

    def register(self, name: str, raw_config: Optional[Mapping[str, Any]] = None) -> HasherConfiguration:
        """
        Validates and stores a hasher configuration, replacing any previous
        one of the same name. Placeholders whose environment variable is unset
        are kept verbatim and validated when the converter is first built.
        """
        validate_hasher_name(name)
        resolved = resolve_placeholders(raw_config or {})
        config = HasherConfiguration.from_mapping(name, resolved)

        if name == DEFAULT_HASHER and not config.enabled:
            raise ConfigurationError("enabled", "the default hasher cannot be disabled", hasher=name)

        for warning in self.validator.validate(config):
            logger.warning(warning)

        with self._lock:
            self._configurations[name] = config
            self._converters.pop(name, None)

        if config.has_environment_placeholders():
            logger.info(f"Registered hasher '{name}' (validation deferred until environment is resolved)")
        else:
            logger.info(f"Registered hasher '{name}' (min_hash_length={config.min_hash_length})")
        return config

    def register_many(self, hashers: Mapping[str, Mapping[str, Any]]) -> None:
        for name, raw_config in hashers.items():
            self.register(name, raw_config)

    def register_template(self, template: str, name: Optional[str] = None) -> HasherConfiguration:
        """Registers one of the HASHER_TEMPLATES presets, under its own name unless name is given."""
        config = HasherConfiguration.from_template(template, name)
        return self.register(config.name, config.to_dict())

    # --- Lookup ---

    def get_converter(self, name: str = DEFAULT_HASHER) -> Converter:
        """Returns the converter for name, building and caching it on first use."""
        converter = self._converters.get(name)
        if converter is not None:
            return converter

        with self._lock:
            # Another thread may have built it while we waited
            converter = self._converters.get(name)
            if converter is None:
                # Read under the lock so a concurrent register() cannot leave a stale converter behind
                config = self._get_enabled_configuration(name)
                converter = self._build_converter(config)
                self._converters[name] = converter
        return converter

    def get_hashids(self, name: str = DEFAULT_HASHER) -> Hashids:
        """Returns the underlying hashids instance, for callers that need multi-value hashes."""
        return self.get_converter(name).hashids

    def has_hasher(self, name: str) -> bool:
        config = self._configurations.get(name)
        return config is not None and config.enabled

    def hasher_names(self) -> List[str]:
        return [name for name, config in self._configurations.items() if config.enabled]

    def get_configuration(self, name: str) -> Optional[HasherConfiguration]:
        return self._configurations.get(name)

    def clear_caches(self) -> None:
        with self._lock:
            self._converters.clear()

    # --- Internals ---

    def _get_enabled_configuration(self, name: str) -> HasherConfiguration:
        config = self._configurations.get(name)
        if config is None or not config.enabled:
            raise HasherNotFound(name, self.hasher_names())
        return config

    def _build_converter(self, config: HasherConfiguration) -> Converter:
        if config.has_environment_placeholders():
            config = self._resolve_deferred(config)
        logger.debug(f"Building converter for hasher '{config.name}'")
        return HashidsConverter.from_configuration(config, **self._cache_sizes)

    def _resolve_deferred(self, config: HasherConfiguration) -> HasherConfiguration:
        fields = {k: v for k, v in config.to_dict().items() if k != "name"}
        resolved = HasherConfiguration.from_mapping(config.name, resolve_placeholders(fields))
        # Whatever is still a placeholder now is taken literally
        for warning in self.validator.validate(resolved, defer_placeholders=False):
            logger.warning(warning)
        return resolved

    def __contains__(self, name: str) -> bool:
        return self.has_hasher(name)

    def __repr__(self) -> str:
        return f"<HasherRegistry hashers={self.hasher_names()!r}>"
