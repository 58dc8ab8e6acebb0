import pytest
from fastapi.testclient import TestClient

from hashid_routing.config import URL_SAFE_EXTENDED_ALPHABET, Settings
from hashid_routing.demo import create_app
from hashid_routing.metadata import ParameterMetadataResolver
from hashid_routing.processors import ParametersProcessorFactory
from hashid_routing.registry import HasherRegistry


@pytest.fixture
def registry():
    """A registry with a salted default hasher plus the 'public' and 'secure' hashers."""
    registry = HasherRegistry(default_config={"salt": "test salt", "min_hash_length": 8})
    registry.register("public", {"salt": "public salt", "min_hash_length": 5})
    registry.register("secure", {
        "salt": "secure salt",
        "min_hash_length": 25,
        "alphabet": URL_SAFE_EXTENDED_ALPHABET,
    })
    return registry


@pytest.fixture
def resolver():
    return ParameterMetadataResolver(suppress_deprecations=True)


@pytest.fixture
def processor_factory(resolver, registry):
    return ParametersProcessorFactory(resolver, registry)


@pytest.fixture
def settings():
    return Settings(
        salt="test salt",
        min_hash_length=8,
        suppress_deprecations=True,
        hashers={"public": {"salt": "public salt", "min_hash_length": 5}},
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def hashids(app):
    return app.state.hashids


@pytest.fixture
def client(app):
    """Test client running the demo app, lifespan included."""
    with TestClient(app) as test_client:
        yield test_client
