from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .config import (
    DEFAULT_ALPHABET,
    DEFAULT_HASHER,
    DEFAULT_MIN_LENGTH,
    DEFAULT_SALT,
    HASHER_TEMPLATES,
    LEGACY_KEYS,
)
from .environment import contains_placeholder
from .exceptions import ConfigurationError


class HasherConfiguration(BaseModel):
    """Immutable parameters of one named hasher."""
    model_config = ConfigDict(frozen=True, strict=True, extra="forbid")

    name: str
    salt: str = DEFAULT_SALT
    # A str here is an unresolved %env(...)% placeholder
    min_hash_length: Union[int, str] = DEFAULT_MIN_LENGTH
    alphabet: str = DEFAULT_ALPHABET
    enabled: bool = True

    @classmethod
    def from_mapping(cls, name: str, raw: Optional[Mapping[str, Any]] = None) -> "HasherConfiguration":
        """
        Builds a configuration from a raw mapping, filling in defaults for
        missing fields. Type mismatches raise ConfigurationError naming the
        offending field; nothing is coerced.
        """
        values: Dict[str, Any] = dict(raw or {})
        values.pop("name", None)
        try:
            return cls(name=name, **values)
        except ValidationError as e:
            first = e.errors()[0]
            field = str(first["loc"][0]) if first["loc"] else "configuration"
            raise ConfigurationError(field, first["msg"], hasher=name) from e

    @classmethod
    def create_default(cls, name: str = DEFAULT_HASHER) -> "HasherConfiguration":
        return cls(name=name)

    @classmethod
    def from_template(cls, template: str, name: Optional[str] = None) -> "HasherConfiguration":
        """
        Builds a configuration from one of the HASHER_TEMPLATES presets. The
        presets read their salt from an environment placeholder, which the
        registry resolves on registration.
        """
        if template not in HASHER_TEMPLATES:
            raise ConfigurationError(
                "template",
                f'template "{template}" does not exist; available templates: {", ".join(sorted(HASHER_TEMPLATES))}',
            )
        return cls.from_mapping(name or template, HASHER_TEMPLATES[template])

    @classmethod
    def from_legacy(cls, legacy: Mapping[str, Any]) -> "HasherConfiguration":
        """Maps an old single-hasher configuration (salt, min_hash_length, alphabet) onto the default hasher."""
        values = {key: legacy[key] for key in LEGACY_KEYS if key in legacy}
        return cls.from_mapping(DEFAULT_HASHER, {**values, "enabled": True})

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()

    def has_environment_placeholders(self) -> bool:
        return any(
            contains_placeholder(value)
            for value in (self.salt, self.min_hash_length, self.alphabet)
        )


class ParameterSpec(BaseModel):
    """Which handler parameters are obfuscated, and by which hasher."""
    model_config = ConfigDict(frozen=True)

    parameters: Tuple[str, ...] = Field(default_factory=tuple)
    hasher: str = DEFAULT_HASHER

    @field_validator("parameters", mode="before")
    @classmethod
    def dedupe_parameters(cls, v):
        if isinstance(v, str):
            v = (v,)
        # dict.fromkeys keeps first-seen order
        return tuple(dict.fromkeys(v))

    def __contains__(self, name: str) -> bool:
        return name in self.parameters
