"""
Encoding and decoding of integer IDs into short, non-sequential, reversible
strings using the hashids library. A converter is bound to exactly one hasher
configuration; strings it produces only decode under that same configuration.
"""
from functools import lru_cache
from typing import Protocol, runtime_checkable

from hashids import Hashids

from .config import DEFAULT_DECODE_CACHE_SIZE, DEFAULT_ENCODE_CACHE_SIZE
from .exceptions import ConfigurationError, DecodingFailed, EncodingFailed
from .models import HasherConfiguration


@runtime_checkable
class Converter(Protocol):
    name: str

    def encode(self, value: int) -> str:
        ...

    def decode(self, value: str) -> int:
        ...


class HashidsConverter:
    """Converter backed by a Hashids instance, with bounded per-value caches."""

    def __init__(
        self,
        hashids: Hashids,
        name: str = "default",
        encode_cache_size: int = DEFAULT_ENCODE_CACHE_SIZE,
        decode_cache_size: int = DEFAULT_DECODE_CACHE_SIZE,
    ):
        self.hashids = hashids
        self.name = name
        self._encode_cached = lru_cache(maxsize=encode_cache_size)(self._encode)
        self._decode_cached = lru_cache(maxsize=decode_cache_size)(self._decode)

    @classmethod
    def from_configuration(cls, config: HasherConfiguration, **cache_sizes) -> "HashidsConverter":
        try:
            hashids = Hashids(salt=config.salt, min_length=config.min_hash_length, alphabet=config.alphabet)
        except ValueError as e:
            # hashids has stricter alphabet rules than the validator (16 usable characters)
            raise ConfigurationError("alphabet", str(e), hasher=config.name) from e
        return cls(hashids, name=config.name, **cache_sizes)

    def encode(self, value: int) -> str:
        """Encodes a single non-negative integer."""
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise EncodingFailed(value, self.name)
        return self._encode_cached(value)

    def decode(self, value: str) -> int:
        """Decodes a string back into an integer, or raises DecodingFailed."""
        if not isinstance(value, str) or not value:
            raise DecodingFailed(str(value), self.name)
        return self._decode_cached(value)

    def _encode(self, value: int) -> str:
        encoded = self.hashids.encode(value)
        if not encoded:
            raise EncodingFailed(value, self.name)
        return encoded

    def _decode(self, value: str) -> int:
        # hashids.decode returns a tuple, e.g. (123,), and () for anything foreign
        decoded = self.hashids.decode(value)
        if len(decoded) != 1:
            raise DecodingFailed(value, self.name)
        return decoded[0]

    def cache_info(self) -> dict:
        return {
            "encode": self._encode_cached.cache_info()._asdict(),
            "decode": self._decode_cached.cache_info()._asdict(),
        }

    def clear_cache(self) -> None:
        self._encode_cached.cache_clear()
        self._decode_cached.cache_clear()

    def __repr__(self) -> str:
        return f"<HashidsConverter {self.name!r}>"
