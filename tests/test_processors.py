import pytest

from hashid_routing.declarations import hashid
from hashid_routing.exceptions import DecodingFailed, HasherNotFound
from hashid_routing.ingress import RequestParametersDecoder
from hashid_routing.models import ParameterSpec
from hashid_routing.processors import Decode, Encode, NoOp


@hashid(["id", "user_id"], hasher="secure")
def show_user_order(id, user_id, page=None):
    pass


def undeclared(id):
    pass


@hashid("id", hasher="unknown")
def misconfigured(id):
    pass


SPEC = ParameterSpec(parameters=("id", "user_id"), hasher="secure")


# ===================================
# 1. Encode / Decode
# ===================================

def test_encode_only_touches_declared_parameters(registry):
    secure = registry.get_converter("secure")
    parameters = Encode(registry).process({"id": 7, "user_id": 9, "page": 2}, SPEC)
    assert parameters == {"id": secure.encode(7), "user_id": secure.encode(9), "page": 2}


def test_decode_restores_integers_and_leaves_the_rest(registry):
    secure = registry.get_converter("secure")
    parameters = {"id": secure.encode(7), "user_id": secure.encode(9), "page": "2"}
    assert Decode(registry).process(parameters, SPEC) == {"id": 7, "user_id": 9, "page": "2"}


def test_processing_mutates_and_returns_the_same_mapping(registry):
    parameters = {"id": 7}
    assert Encode(registry).process(parameters, SPEC) is parameters
    assert isinstance(parameters["id"], str)


def test_missing_declared_parameters_are_skipped(registry):
    assert Encode(registry).process({"page": 1}, SPEC) == {"page": 1}


@pytest.mark.parametrize("value", [-5, True, "abc", "١٢", 1.5, None])
def test_encode_passes_through_non_encodable_values(registry, value):
    assert Encode(registry).process({"id": value}, SPEC) == {"id": value}


def test_encode_accepts_digit_strings(registry):
    secure = registry.get_converter("secure")
    assert Encode(registry).process({"id": "42"}, SPEC) == {"id": secure.encode(42)}


def test_decode_leaves_non_strings_alone(registry):
    assert Decode(registry).process({"id": 7}, SPEC) == {"id": 7}


def test_decode_rejects_foreign_hashes(registry):
    public = registry.get_converter("public").encode(7)
    with pytest.raises(DecodingFailed) as exc_info:
        Decode(registry).process({"id": public}, SPEC)
    assert exc_info.value.hasher == "secure"


def test_none_spec_is_a_noop(registry):
    parameters = {"id": 7}
    assert Encode(registry).process(parameters, None) == {"id": 7}
    assert Decode(registry).process(parameters, None) == {"id": 7}


def test_noop_returns_parameters_unchanged():
    parameters = {"id": "anything"}
    assert NoOp().process(parameters, SPEC) is parameters
    assert parameters == {"id": "anything"}


def test_unknown_hasher_raises(registry):
    with pytest.raises(HasherNotFound):
        Encode(registry).process({"id": 1}, ParameterSpec(parameters=("id",), hasher="unknown"))


# ===================================
# 2. Factory
# ===================================

def test_factory_pairs_declared_handlers_with_converting_processors(processor_factory):
    encoding = processor_factory.encoding(show_user_order)
    decoding = processor_factory.decoding(show_user_order)
    assert isinstance(encoding.processor, Encode)
    assert isinstance(decoding.processor, Decode)
    assert encoding.spec == decoding.spec == SPEC


def test_factory_returns_noop_for_undeclared_handlers(processor_factory):
    processing = processor_factory.encoding(undeclared)
    assert isinstance(processing.processor, NoOp)
    assert processing.spec is None
    assert processing.apply({"id": 7}) == {"id": 7}


def test_encode_then_decode_through_factory(processor_factory):
    parameters = processor_factory.encoding(show_user_order).apply({"id": 7, "user_id": 9, "page": 2})
    parameters["page"] = str(parameters["page"])
    assert processor_factory.decoding(show_user_order).apply(parameters) == {"id": 7, "user_id": 9, "page": "2"}


def test_factory_reports_unknown_hasher_on_use(processor_factory):
    with pytest.raises(HasherNotFound):
        processor_factory.encoding(misconfigured).apply({"id": 1})


# ===================================
# 3. Request decoder
# ===================================

def test_request_decoder_reports_failure(processor_factory, registry):
    decoder = RequestParametersDecoder(processor_factory)
    secure = registry.get_converter("secure")
    path_params = {"id": secure.encode(7), "user_id": "garbage"}
    assert decoder.try_decode(show_user_order, path_params) is False

    path_params = {"id": secure.encode(7), "user_id": secure.encode(9)}
    assert decoder.try_decode(show_user_order, path_params) is True
    assert path_params == {"id": 7, "user_id": 9}
