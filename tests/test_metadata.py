import functools
import logging
import warnings

import pytest

from hashid_routing.config import MAX_DOCSTRING_LENGTH
from hashid_routing.declarations import get_declaration, hashid, parse_legacy_directive
from hashid_routing.demo import InvoiceController, invoices, show_order
from hashid_routing.exceptions import InvalidHandlerReference, InvalidParameterDeclaration, MissingHandlerReference
from hashid_routing.handlers import describe_handler, resolve_handler
from hashid_routing.metadata import ParameterMetadataResolver
from hashid_routing.models import ParameterSpec


@hashid("id")
def modern(id):
    pass


def legacy(id):
    """
    Shows one thing.

    @Hash("id")
    """


def legacy_list(id, user_id):
    """@Hash({"id", "user_id"}, hasher="secure")"""


@hashid("id")
def both(id, other):
    """@Hash("other", hasher="public")"""


def plain(id):
    """Nothing to see here."""


class MixedController:

    @hashid("id")
    def show(self, id):
        pass

    def edit(self, id):
        """@Hash("id")"""

    @hashid("id")
    def delete(self, id):
        """@Hash("id")"""

    def index(self):
        pass


# ===================================
# 1. The @hashid decorator
# ===================================

def test_decorator_records_spec():
    assert get_declaration(modern) == ParameterSpec(parameters=("id",), hasher="default")


def test_decorator_accepts_names_or_a_list():
    @hashid("id", "user_id", hasher="secure")
    def separate(id, user_id):
        pass

    @hashid(["id", "user_id"], hasher="secure")
    def listed(id, user_id):
        pass

    assert get_declaration(separate) == get_declaration(listed)
    assert get_declaration(listed).parameters == ("id", "user_id")


def test_decorator_deduplicates_names():
    @hashid("id", "id")
    def handler(id):
        pass

    assert get_declaration(handler).parameters == ("id",)


def test_stacked_decorators_merge():
    @hashid("id")
    @hashid("user_id")
    def handler(id, user_id):
        pass

    assert set(get_declaration(handler).parameters) == {"id", "user_id"}


def test_stacked_decorators_must_agree_on_hasher():
    with pytest.raises(InvalidParameterDeclaration):
        @hashid("id", hasher="public")
        @hashid("user_id", hasher="secure")
        def handler(id, user_id):
            pass


def test_blank_hasher_means_default():
    @hashid("id", hasher="  ")
    def handler(id):
        pass

    assert get_declaration(handler).hasher == "default"


@pytest.mark.parametrize("args, kwargs", [
    ((), {}),
    (("user-id",), {}),
    (("id; DROP TABLE",), {}),
    (("id",), {"hasher": "bad hasher"}),
])
def test_invalid_declarations_fail_at_decoration_time(args, kwargs):
    with pytest.raises(InvalidParameterDeclaration):
        hashid(*args, **kwargs)


def test_size_limits_are_guard_violations():
    with pytest.raises(InvalidParameterDeclaration) as exc_info:
        hashid([f"p{i}" for i in range(21)])
    assert exc_info.value.guard

    with pytest.raises(InvalidParameterDeclaration) as exc_info:
        hashid("x" * 101)
    assert exc_info.value.guard


# ===================================
# 2. The legacy docstring directive
# ===================================

@pytest.mark.parametrize("doc, parameters, hasher", [
    ('@Hash("id")', ("id",), "default"),
    ('@Hash("id", hasher="public")', ("id",), "public"),
    ('@Hash({"id", "user_id"})', ("id", "user_id"), "default"),
    ('@Hash({"id","user_id"}, hasher = "secure")', ("id", "user_id"), "secure"),
    ("@Hash({'id', 'user_id'})", ("id", "user_id"), "default"),
    ("@Hash({'id', \"user_id\"}, hasher=\"public\")", ("id", "user_id"), "public"),
    ('Docs.\n\n    @Hash({\n        "id",\n        "user_id"\n    })\n', ("id", "user_id"), "default"),
])
def test_parse_legacy_directive(doc, parameters, hasher):
    assert parse_legacy_directive(doc) == ParameterSpec(parameters=parameters, hasher=hasher)


@pytest.mark.parametrize("doc", [None, "", "No directive here.", "@Hashtag is not a directive"])
def test_docstrings_without_directive(doc):
    assert parse_legacy_directive(doc) is None


@pytest.mark.parametrize("doc", [
    "@Hash()",
    "@Hash('id')",
    '@Hash("id", salt="x")',
    '@Hash({"id", user_id})',
    '@Hash({\'id", "user_id"})',
    '@Hash("user-id")',
])
def test_malformed_directives_raise(doc):
    with pytest.raises(InvalidParameterDeclaration) as exc_info:
        parse_legacy_directive(doc)
    assert not exc_info.value.guard


@pytest.mark.parametrize("doc", [
    '@Hash("id")' + " " * MAX_DOCSTRING_LENGTH,
    '@Hash("' + "x" * 600 + '")',
    "@Hash({" + ", ".join(f'"p{i}"' for i in range(21)) + "})",
])
def test_oversized_directives_are_guard_violations(doc):
    with pytest.raises(InvalidParameterDeclaration) as exc_info:
        parse_legacy_directive(doc)
    assert exc_info.value.guard


# ===================================
# 3. Resolution and precedence
# ===================================

def test_resolves_modern_declaration(resolver):
    assert resolver.resolve(modern) == ParameterSpec(parameters=("id",))


def test_resolves_legacy_declaration(resolver):
    assert resolver.resolve(legacy) == ParameterSpec(parameters=("id",))
    assert resolver.resolve(legacy_list) == ParameterSpec(parameters=("id", "user_id"), hasher="secure")


def test_undeclared_handler_resolves_to_none(resolver):
    assert resolver.resolve(plain) is None


def test_decorator_wins_over_docstring(resolver, caplog):
    with caplog.at_level(logging.WARNING, logger="hashid_routing"):
        spec = resolver.resolve(both)
    assert spec == ParameterSpec(parameters=("id",))
    assert resolver.has_duplicate_declaration(both)
    assert describe_handler(both) in resolver.duplicate_declarations
    assert "both @hashid and a @Hash docstring directive" in caplog.text


def test_legacy_directive_warns_deprecation():
    resolver = ParameterMetadataResolver()
    with pytest.warns(DeprecationWarning, match=r"Use the @hashid\(\.\.\.\) decorator instead"):
        resolver.resolve(legacy)
    assert resolver.deprecation_log[describe_handler(legacy)] == 1


def test_deprecation_is_reported_once_per_resolver():
    resolver = ParameterMetadataResolver()
    with pytest.warns(DeprecationWarning):
        resolver.resolve(legacy)
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        resolver.resolve(legacy)
    assert resolver.deprecation_log[describe_handler(legacy)] == 1


def test_deprecation_is_logged_and_attributed_to_the_caller(caplog):
    resolver = ParameterMetadataResolver()
    with caplog.at_level(logging.WARNING, logger="hashid_routing"):
        with pytest.warns(DeprecationWarning) as record:
            resolver.resolve(legacy)
    assert "@Hash docstring directive is deprecated" in caplog.text
    assert describe_handler(legacy) in caplog.text
    # The warning points at the code that resolved the handler, not at this package
    assert record[0].filename == __file__


def test_suppressed_deprecations_are_still_counted(resolver):
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        resolver.resolve(legacy)
    assert resolver.deprecation_log[describe_handler(legacy)] == 1


def test_suppressed_deprecations_are_not_logged(resolver, caplog):
    with caplog.at_level(logging.WARNING, logger="hashid_routing"):
        resolver.resolve(legacy)
    assert "deprecated" not in caplog.text


def test_modern_declaration_does_not_warn():
    resolver = ParameterMetadataResolver()
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        resolver.resolve(modern)
        resolver.resolve(both)


def test_malformed_directive_is_ignored_and_logged(resolver, caplog):
    def broken(id):
        """@Hash('id')"""

    with caplog.at_level(logging.ERROR, logger="hashid_routing"):
        assert resolver.resolve(broken) is None
    assert "Ignoring @Hash directive" in caplog.text


def test_guard_violation_goes_to_security_log(resolver, caplog):
    def huge(id):
        pass

    huge.__doc__ = '@Hash("id")' + " " * MAX_DOCSTRING_LENGTH

    with caplog.at_level(logging.WARNING, logger="hashid_routing.security"):
        assert resolver.resolve(huge) is None
    assert any(record.name == "hashid_routing.security" for record in caplog.records)


def test_results_are_cached(resolver):
    def handler(id):
        """@Hash("id")"""

    first = resolver.resolve(handler)
    handler.__doc__ = '@Hash("id", hasher="public")'
    assert resolver.resolve(handler) is first

    resolver.clear_cache()
    assert resolver.resolve(handler).hasher == "public"


# ===================================
# 4. Handler references
# ===================================

@pytest.mark.parametrize("handler", [
    invoices.show,
    (invoices, "show"),
    (InvoiceController, "show"),
    "hashid_routing.demo.InvoiceController::show",
    functools.partial(invoices.show, 3),
])
def test_handler_reference_forms(resolver, handler):
    assert resolve_handler(handler) is InvoiceController.show
    assert resolver.resolve(handler) == ParameterSpec(parameters=("id",))


def test_module_level_function_reference(resolver):
    assert resolve_handler("hashid_routing.demo::show_order") is show_order
    assert resolver.resolve("hashid_routing.demo::show_order") == ParameterSpec(parameters=("id",))


def test_static_and_class_methods_resolve():
    class Controller:
        @staticmethod
        @hashid("id")
        def static(id):
            pass

        @classmethod
        @hashid("id")
        def klass(cls, id):
            pass

    assert get_declaration(resolve_handler((Controller, "static"))).parameters == ("id",)
    assert get_declaration(resolve_handler(Controller.klass)).parameters == ("id",)


@pytest.mark.parametrize("reference", [
    "hashid_routing.demo.NoSuchController::show",
    "hashid_routing.demo.InvoiceController::missing",
    "no_such_package_anywhere.Controller::show",
])
def test_missing_references(resolver, reference):
    with pytest.raises(MissingHandlerReference):
        resolver.resolve(reference)


@pytest.mark.parametrize("reference", [
    "no_separator",
    "a::b::c",
    "module::1method",
    "module.Class::show\n",
    "module\x00.Class::show",
    42,
    ("only one",),
    (InvoiceController, 3),
    InvoiceController,
])
def test_invalid_references(resolver, reference):
    with pytest.raises(InvalidHandlerReference):
        resolver.resolve(reference)


def test_missing_method_message_names_class_and_method():
    with pytest.raises(MissingHandlerReference) as exc_info:
        resolve_handler("hashid_routing.demo.InvoiceController::missing")
    assert "hashid_routing.demo.InvoiceController::missing" in str(exc_info.value)


# ===================================
# 5. Compatibility report
# ===================================

def test_compatibility_report(resolver):
    report = resolver.compatibility_report(MixedController)
    assert report["class"] == f"{__name__}.MixedController"
    assert set(report["methods"]) == {"show", "edit", "delete"}
    assert report["methods"]["show"] == {"uses_legacy": False, "uses_decorator": True, "is_duplicate": False}
    assert report["methods"]["edit"] == {"uses_legacy": True, "uses_decorator": False, "is_duplicate": False}
    assert report["methods"]["delete"]["is_duplicate"]
    assert report["uses_legacy"] and report["uses_decorator"] and report["has_duplicates"]


def test_compatibility_report_for_modern_controller(resolver):
    report = resolver.compatibility_report(InvoiceController)
    assert report["uses_decorator"]
    assert not report["uses_legacy"]
    assert not report["has_duplicates"]
