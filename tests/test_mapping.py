"""Mapping, Transform and Condition Tests."""

import pytest
from pydantic import BaseModel, ValidationError

from tron_tools.exceptions import MappingError
from tron_tools.mapping import (
    Const,
    KeyRef,
    PathRef,
    StepCondition,
    TransformRef,
    TransformRegistry,
    coerce_mapping,
    resolve_path,
)

SCOPE = {
    "user": {"name": "ada", "roles": ["admin", "ops"]},
    "items": [{"id": 1}, {"id": 2}],
    "count": 3,
    "empty": "",
}


@pytest.fixture
def transforms():
    return TransformRegistry()


class TestResolvePath:
    def test_nested_keys(self):
        assert resolve_path(SCOPE, "user.name") == "ada"

    def test_indexes(self):
        assert resolve_path(SCOPE, "items[1].id") == 2
        assert resolve_path(SCOPE, "user.roles[0]") == "admin"

    def test_model_attributes(self):
        class Point(BaseModel):
            x: int

        assert resolve_path({"p": Point(x=4)}, "p.x") == 4

    def test_missing_segment(self):
        with pytest.raises(MappingError, match="missing 'age'"):
            resolve_path(SCOPE, "user.age")

    def test_index_out_of_range(self):
        with pytest.raises(MappingError):
            resolve_path(SCOPE, "items[5]")


class TestMappingKinds:
    def test_key_ref(self, transforms):
        assert KeyRef(key="count").evaluate(SCOPE, transforms) == 3
        assert KeyRef(key="nope").evaluate(SCOPE, transforms) is None

    def test_path_ref(self, transforms):
        assert PathRef(path="items[0].id").evaluate(SCOPE, transforms) == 1

    def test_path_ref_default(self, transforms):
        assert PathRef(path="user.age", default=None).evaluate(SCOPE, transforms) is None
        with pytest.raises(MappingError):
            PathRef(path="user.age").evaluate(SCOPE, transforms)

    def test_path_ref_rejects_bad_syntax(self):
        with pytest.raises(ValidationError):
            PathRef(path="user..name")
        with pytest.raises(ValidationError):
            PathRef(path="items[x]")

    def test_const(self, transforms):
        assert Const(value=[1, 2]).evaluate(SCOPE, transforms) == [1, 2]

    def test_transform(self, transforms):
        mapping = TransformRef(transform="upper", source=PathRef(path="user.name"))
        assert mapping.evaluate(SCOPE, transforms) == "ADA"

    def test_nested_transforms(self, transforms):
        mapping = TransformRef(
            transform="len", source=TransformRef(transform="keys", source="user")
        )
        assert mapping.evaluate(SCOPE, transforms) == 2

    def test_json_dumps_is_compact(self, transforms):
        mapping = TransformRef(transform="json.dumps", source=Const(value={"a": [1, 2]}))
        assert mapping.evaluate(SCOPE, transforms) == '{"a":[1,2]}'

    def test_unknown_transform(self, transforms):
        with pytest.raises(MappingError, match="Unknown transform"):
            TransformRef(transform="eval", source="count").evaluate(SCOPE, transforms)

    def test_transform_failure_is_wrapped(self, transforms):
        with pytest.raises(MappingError, match="Transform 'int' failed"):
            TransformRef(transform="int", source="empty").evaluate(SCOPE, transforms)

    def test_string_shorthand(self):
        assert coerce_mapping("count") == KeyRef(key="count")
        assert coerce_mapping(Const(value=1)) == Const(value=1)


class TestTransformRegistry:
    def test_builtins_available(self, transforms):
        assert "json.dumps" in transforms
        assert "identity" in transforms.names()

    def test_without_builtins(self):
        assert TransformRegistry(include_builtins=False).names() == []

    def test_register_custom(self, transforms):
        transforms.register("double", lambda value: value * 2)
        assert transforms.get("double")(4) == 8

    def test_duplicate_rejected_unless_replaced(self, transforms):
        with pytest.raises(ValueError):
            transforms.register("upper", str.lower)

        transforms.register("upper", str.lower, replace=True)
        assert transforms.get("upper")("ABC") == "abc"


class TestStepCondition:
    @pytest.mark.parametrize(
        "path,op,value,expected",
        [
            ("count", "exists", None, True),
            ("nope", "exists", None, False),
            ("nope", "missing", None, True),
            ("count", "truthy", None, True),
            ("empty", "truthy", None, False),
            ("empty", "falsy", None, True),
            ("nope", "falsy", None, True),
            ("nope", "truthy", None, False),
            ("user.name", "eq", "ada", True),
            ("user.name", "ne", "bob", True),
            ("nope", "ne", "bob", True),
            ("nope", "eq", None, False),
            ("user.name", "in", ["ada", "bob"], True),
            ("count", "gt", 2, True),
            ("count", "lt", 2, False),
        ],
    )
    def test_operators(self, path, op, value, expected):
        assert StepCondition(path=path, op=op, value=value).evaluate(SCOPE) is expected

    def test_default_op_is_truthy(self):
        assert StepCondition(path="count").op == "truthy"

    def test_incomparable_values(self):
        with pytest.raises(MappingError):
            StepCondition(path="count", op="gt", value="three").evaluate(SCOPE)

    def test_unknown_op_rejected(self):
        with pytest.raises(ValidationError):
            StepCondition(path="count", op="matches")
