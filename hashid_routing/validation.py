import re
from typing import Dict, List, Mapping

from .config import (
    HASHER_NAME_PATTERN,
    MAX_ALPHABET_LENGTH,
    MAX_HASHER_NAME_LENGTH,
    MAX_LENGTH,
    MIN_ALPHABET_LENGTH,
)
from .environment import contains_placeholder
from .exceptions import ConfigurationError, HashIdException
from .models import HasherConfiguration

_HASHER_NAME_RE = re.compile(HASHER_NAME_PATTERN)


def validate_hasher_name(name: str) -> str:
    """Raises ConfigurationError unless name is usable as a hasher name."""
    if not isinstance(name, str) or not name:
        raise ConfigurationError("name", "hasher name cannot be empty")
    if len(name) > MAX_HASHER_NAME_LENGTH:
        raise ConfigurationError("name", f"name too long (max {MAX_HASHER_NAME_LENGTH} characters)")
    if not _HASHER_NAME_RE.fullmatch(name):
        raise ConfigurationError(
            "name",
            f'invalid name "{name}"; names can only contain letters, numbers, underscores, hyphens, and dots',
        )
    return name


class ConfigurationValidator:
    """
    Pure validation of a HasherConfiguration.

    validate() never mutates its input. It either raises ConfigurationError
    naming the offending field or returns a (possibly empty) list of non-fatal
    warnings. Fields still holding an unresolved %env(...)% placeholder are
    skipped; they get validated once the registry resolves them.
    """

    def validate(self, config: HasherConfiguration, defer_placeholders: bool = True) -> List[str]:
        """
        With defer_placeholders=False, placeholder literals are validated as
        ordinary values; the registry does this once the environment has had
        its chance to resolve them.
        """
        warnings: List[str] = []
        self._validate_salt(config, warnings, defer_placeholders)
        self._validate_min_hash_length(config, defer_placeholders)
        self._validate_alphabet(config, defer_placeholders)
        return warnings

    def validate_many(self, configurations: Mapping[str, HasherConfiguration]) -> Dict[str, bool]:
        results = {}
        for name, config in configurations.items():
            try:
                self.validate(config)
                results[name] = True
            except HashIdException:
                results[name] = False
        return results

    def _validate_salt(self, config: HasherConfiguration, warnings: List[str], defer: bool) -> None:
        if contains_placeholder(config.salt):
            if not defer:
                warnings.append(f'Hasher "{config.name}": salt placeholder {config.salt} is unresolved; using it literally')
            return
        if config.salt == "":
            warnings.append(f'Hasher "{config.name}": salt is empty; hashes are predictable in production')

    def _validate_min_hash_length(self, config: HasherConfiguration, defer: bool) -> None:
        value = config.min_hash_length
        if defer and contains_placeholder(value):
            return
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigurationError("min_hash_length", f"must be an integer, got {value!r}", hasher=config.name)
        if value < 0:
            raise ConfigurationError("min_hash_length", f"must be non-negative, got {value}", hasher=config.name)
        if value > MAX_LENGTH:
            raise ConfigurationError(
                "min_hash_length", f"{value} exceeds maximum allowed length of {MAX_LENGTH}", hasher=config.name
            )

    def _validate_alphabet(self, config: HasherConfiguration, defer: bool) -> None:
        alphabet = config.alphabet
        if defer and contains_placeholder(alphabet):
            return
        length = len(alphabet)
        if length < MIN_ALPHABET_LENGTH:
            raise ConfigurationError(
                "alphabet",
                f"must contain at least {MIN_ALPHABET_LENGTH} characters, {length} given",
                hasher=config.name,
            )
        if length > MAX_ALPHABET_LENGTH:
            raise ConfigurationError(
                "alphabet",
                f"exceeds maximum length of {MAX_ALPHABET_LENGTH} characters, {length} given",
                hasher=config.name,
            )
        if len(set(alphabet)) != length:
            raise ConfigurationError("alphabet", "must contain only unique characters", hasher=config.name)
