import pytest

from switchboard.annotations import dependency_keys, extract_dependency_keys, inject
from switchboard.errors import AnnotationError


def make_greeter(greeting, punctuation):
    return greeting + punctuation


def make_nothing():
    return None


class Service:
    def __init__(self, db, cache):
        self.db = db
        self.cache = cache

    def handle(self, request):
        return request


def test_inline_array_keys_are_all_but_last():
    func, keys = extract_dependency_keys(["greeting", "punctuation", make_greeter])

    assert func is make_greeter
    assert keys == ("greeting", "punctuation")


def test_inline_tuple_is_accepted():
    assert dependency_keys(("greeting", make_greeter)) == ("greeting",)


def test_attached_keys_are_authoritative_regardless_of_parameters():
    @inject("a", "b", "c")
    def collect(*args):
        return args

    func, keys = extract_dependency_keys(collect)

    assert func is collect
    assert keys == ("a", "b", "c")


def test_implicit_keys_follow_parameter_order_when_not_strict():
    assert dependency_keys(make_greeter, strict=False) == ("greeting", "punctuation")


def test_all_forms_encoding_the_same_keys_agree():
    attached = inject("greeting", "punctuation")(
        lambda greeting, punctuation: greeting + punctuation
    )
    forms = [["greeting", "punctuation", make_greeter], attached, make_greeter]

    assert {dependency_keys(form, strict=False) for form in forms} == {
        ("greeting", "punctuation")
    }


def test_inline_array_takes_precedence_over_attached_keys():
    @inject("ignored")
    def handler(x):
        return x

    assert dependency_keys(["used", handler]) == ("used",)


def test_attached_keys_take_precedence_over_parameter_names():
    @inject("db")
    def make_repository(connection):
        return connection

    assert dependency_keys(make_repository, strict=False) == ("db",)


def test_strict_mode_rejects_unannotated_callable_with_parameters():
    with pytest.raises(AnnotationError, match="make_greeter is not using explicit annotation"):
        extract_dependency_keys(make_greeter)


def test_strict_mode_accepts_parameterless_callable():
    assert extract_dependency_keys(make_nothing) == (make_nothing, ())


def test_class_parameters_exclude_self():
    assert dependency_keys(Service, strict=False) == ("db", "cache")


def test_bound_method_parameters_exclude_receiver():
    service = Service("db", "cache")

    assert dependency_keys(service.handle, strict=False) == ("request",)


def test_variadic_and_optional_keyword_parameters_are_ignored():
    def handler(a, *rest, flag=False, **extra):
        return a

    assert dependency_keys(handler, strict=False) == ("a",)


def test_required_keyword_only_parameter_is_rejected():
    def handler(a, *, b):
        return a, b

    with pytest.raises(AnnotationError, match="keyword-only parameter 'b'"):
        dependency_keys(handler, strict=False)


def test_builtin_without_parameters_has_no_keys():
    func, keys = extract_dependency_keys(object)

    assert func is object
    assert keys == ()


def test_inline_array_must_end_with_callable():
    with pytest.raises(AnnotationError, match="is not callable"):
        extract_dependency_keys(["a", "b"])


def test_inline_array_must_not_be_empty():
    with pytest.raises(AnnotationError, match="empty"):
        extract_dependency_keys([])


def test_inline_keys_must_be_strings():
    with pytest.raises(AnnotationError, match="must be strings"):
        extract_dependency_keys([1, make_greeter])


def test_non_callable_is_rejected():
    with pytest.raises(AnnotationError, match="42 is not callable"):
        extract_dependency_keys(42)


def test_inject_rejects_non_string_keys():
    with pytest.raises(AnnotationError, match="must be strings"):

        @inject("a", 3)
        def handler(a, b):
            pass


def test_attached_keys_must_be_a_sequence():
    def handler(a):
        return a

    handler.__inject__ = "a"

    with pytest.raises(AnnotationError, match="must be a sequence of strings"):
        extract_dependency_keys(handler)


def test_extraction_is_rerun_each_time():
    @inject("first")
    def handler(x):
        return x

    assert dependency_keys(handler) == ("first",)

    handler.__inject__ = ("second",)

    assert dependency_keys(handler) == ("second",)
