"""Tests for materialization."""

from enum import Enum
from typing import Annotated

import pytest

from modelmeta.core.config import RegistryConfig
from modelmeta.core.exceptions import MaterializationError, MetadataNotFoundError
from modelmeta.metadata.annotations import coerce, default
from modelmeta.metadata.registry import Registry
from modelmeta.runtime.model import StrictModel
from modelmeta.schema.markers import ID, MMap, Ref


class Gender(Enum):
    MAN = 0
    WOMAN = 1


@pytest.fixture
def nested(registry: Registry):
    @registry.model
    class Child(StrictModel):
        foo: str

    @registry.model
    class Parent(StrictModel):
        foo2: str
        model: Child
        models: list[Child]

    @registry.model
    class GrandParent(StrictModel):
        parent: Parent

    return Child, Parent, GrandParent


class TestNested:
    """Tests for nested models."""

    def test_builds_instance_graph(self, nested):
        Child, Parent, _ = nested

        parent = Parent.modelize({"foo2": "bar", "model": {"foo": "foo1"}, "models": [{"foo": "foo2"}]})

        assert isinstance(parent, Parent)
        assert isinstance(parent.model, Child)
        assert parent.model.foo == "foo1"
        assert [m.foo for m in parent.models] == ["foo2"]

    def test_instances_pass_through(self, nested):
        Child, Parent, _ = nested
        child = Child(foo="x")

        assert Child.modelize(child) is child
        assert Parent.modelize({"model": child}).model is child

    def test_none(self, nested):
        Child, Parent, _ = nested

        assert Child.modelize(None) is None
        assert Parent.modelize({"model": None}).model is None

    def test_missing_fields_are_not_set(self, nested):
        _, Parent, _ = nested

        parent = Parent.modelize({})

        assert parent.foo2 == ""
        assert "model" not in parent.__dict__
        assert "models" not in parent.__dict__


class TestErrors:
    """Tests for MaterializationError paths."""

    def test_wrong_format_path(self, nested):
        """A non-mapping where a model is expected fails on the nested field."""
        _, Parent, _ = nested

        with pytest.raises(MaterializationError) as exc_info:
            Parent.modelize({"model": "12345"})

        error = exc_info.value
        assert error.path == "model:Child.foo"
        assert error.model_class is Parent
        assert isinstance(error.__cause__, TypeError)

    def test_array_index_in_path(self, nested):
        _, Parent, _ = nested

        with pytest.raises(MaterializationError) as exc_info:
            Parent.modelize({"models": [{"foo": "ok"}, 5]})

        assert exc_info.value.path == "models[1]:Child.foo"

    def test_deep_path(self, nested):
        _, _, GrandParent = nested

        with pytest.raises(MaterializationError) as exc_info:
            GrandParent.modelize({"parent": {"model": []}})

        assert exc_info.value.path == "parent:model:Child.foo"
        assert exc_info.value.model_class is GrandParent

    def test_leaf_coercion_failure(self, registry: Registry):
        @registry.model
        class Counter(StrictModel):
            count: Annotated[int, coerce(int)]

        with pytest.raises(MaterializationError) as exc_info:
            Counter.modelize({"count": "many"})

        assert exc_info.value.path == "Counter.count"
        assert isinstance(exc_info.value.cause, ValueError)

    def test_unregistered_class(self):
        class Loose(StrictModel):
            a: str

        with pytest.raises(MetadataNotFoundError):
            Loose.modelize({"a": "x"})


class TestReferences:
    """Tests for Ref fields and reference coercion."""

    @pytest.fixture
    def post_cls(self, registry: Registry):
        @registry.model
        class User(StrictModel):
            id: ID
            name: str

        @registry.model
        class Post(StrictModel):
            author: Ref[User]
            readers: list[Ref[User]]

        return User, Post

    def test_identifiers_pass_through(self, post_cls):
        User, Post = post_cls

        post = Post.modelize({"author": "u1", "readers": ["u2", {"id": "u3", "name": "x"}]})

        assert post.author == "u1"
        assert post.readers[0] == "u2"
        assert isinstance(post.readers[1], User)
        assert post.readers[1].id == "u3"

    def test_allow_reference_builds_stubs(self, post_cls):
        User, Post = post_cls

        post = Post.modelize({"author": "u1", "readers": [7]}, allow_reference=True)

        assert isinstance(post.author, User)
        assert post.author.id == "u1"
        assert isinstance(post.readers[0], User)
        assert post.readers[0].id == 7

    def test_allow_reference_top_level(self, post_cls):
        User, _ = post_cls

        user = User.modelize("u9", allow_reference=True)

        assert isinstance(user, User)
        assert user.id == "u9"

    def test_identifiers_project_unchanged(self, post_cls):
        _, Post = post_cls

        post = Post.modelize({"author": "u1", "readers": ["u2", {"id": "u3", "name": "x"}]})

        assert post.to_object() == {"author": "u1", "readers": ["u2", {"id": "u3", "name": "x"}]}

    def test_custom_id_field(self):
        registry = Registry(RegistryConfig(id_field="_id"))

        @registry.model
        class Doc(StrictModel):
            _id: ID

        @registry.model(id_field="key")
        class Keyed(StrictModel):
            key: ID

        assert registry.get_metadata(Doc).id_field == "_id"
        assert Keyed.modelize("k1", allow_reference=True).key == "k1"


class TestAttachment:
    """Tests for attach_field_metadata."""

    def test_attaches_parent_and_path(self, nested):
        _, Parent, _ = nested

        parent = Parent.modelize(
            {"foo2": "bar", "model": {"foo": "foo1"}, "models": [{"foo": "foo2"}]},
            attach_field_metadata=True,
        )

        assert parent.model.attach() == {"parent": parent, "path": "model", "is_array": False}
        assert parent.models[0].attach() == {
            "parent": parent,
            "path": "models",
            "is_array": True,
            "index": 0,
        }
        assert parent.to_object() == {
            "foo2": "bar",
            "model": {"foo": "foo1"},
            "models": [{"foo": "foo2"}],
        }

    def test_nested_paths(self, nested):
        _, _, GrandParent = nested

        grand = GrandParent.modelize({"parent": {"model": {"foo": "x"}}}, attach_field_metadata=True)

        assert grand.parent.model.attach()["path"] == "parent.model"
        assert grand.parent.model.attach()["parent"] is grand.parent

    def test_no_attachment_by_default(self, nested):
        _, Parent, _ = nested
        assert Parent.modelize({"model": {"foo": "x"}}).model.attach() == {}


class TestValues:
    """Tests for maps, enums and defaults."""

    def test_maps(self, registry: Registry):
        @registry.model
        class Item(StrictModel):
            sku: str

        @registry.model
        class Inventory(StrictModel):
            stock: MMap[Item]
            counts: dict[str, int]

        inventory = Inventory.modelize({"stock": {"a": {"sku": "A-1"}}, "counts": {"a": 3}})

        assert isinstance(inventory.stock["a"], Item)
        assert inventory.counts == {"a": 3}
        assert inventory.to_object() == {"stock": {"a": {"sku": "A-1"}}, "counts": {"a": 3}}

    def test_map_value_error_path(self, registry: Registry):
        @registry.model
        class Item(StrictModel):
            sku: str

        @registry.model
        class Inventory(StrictModel):
            stock: MMap[Item]

        with pytest.raises(MaterializationError) as exc_info:
            Inventory.modelize({"stock": {"a": "oops"}})

        assert exc_info.value.path == "stock['a']:Item.sku"

    def test_enums(self, registry: Registry):
        registry.provide(Gender)

        @registry.model
        class Person(StrictModel):
            gender: Gender

        assert Person.modelize({"gender": 1}).gender is Gender.WOMAN
        assert Person.modelize({"gender": "MAN"}).gender is Gender.MAN
        assert Person.modelize({"gender": Gender.MAN}).gender is Gender.MAN

    def test_strict_enums(self, registry: Registry):
        registry.provide(Gender)

        @registry.model
        class Person(StrictModel):
            gender: Gender

        with pytest.raises(MaterializationError) as exc_info:
            Person.modelize({"gender": "OTHER"})

        assert exc_info.value.path == "Person.gender"

    def test_lenient_enums(self):
        registry = Registry(RegistryConfig(strict_enums=False))
        registry.provide(Gender)

        @registry.model
        class Person(StrictModel):
            gender: Gender

        assert Person.modelize({"gender": "OTHER"}).gender == "OTHER"

    def test_defaults(self, registry: Registry):
        @registry.model
        class Account(StrictModel):
            role: str = "user"
            tags: Annotated[list[str], default(list)]
            score: Annotated[int, default(lambda: 10)]

        first = Account.modelize({})
        second = Account.modelize({"role": "admin"})

        assert first.role == "user"
        assert first.tags == []
        assert first.tags is not second.tags
        assert first.score == 10
        assert second.role == "admin"

    def test_protected_and_getter_fields_are_skipped(self, registry: Registry):
        @registry.model
        class Secret(StrictModel):
            _token: str
            value: str

            @property
            def computed(self) -> str:
                return "c"

        secret = Secret.modelize({"_token": "t", "value": "v", "computed": "x"})

        assert "_token" not in secret.__dict__
        assert secret.computed == "c"


class TestElementErrors:
    """Failures inside array elements and map values keep their position."""

    @pytest.fixture
    def roster_cls(self, registry: Registry):
        registry.provide(Gender)

        @registry.model
        class Roster(StrictModel):
            genders: list[Gender]
            counts: Annotated[dict[str, int], coerce(lambda raw: {k: int(v) for k, v in raw.items()})]
            labels: MMap[Gender]

        return Roster

    def test_enum_array_element(self, roster_cls):
        with pytest.raises(MaterializationError) as exc_info:
            roster_cls.modelize({"genders": [0, 7]})

        assert exc_info.value.path == "Roster.genders[1]"
        assert exc_info.value.model_class is roster_cls
        assert isinstance(exc_info.value.cause, ValueError)

    def test_map_value(self, roster_cls):
        with pytest.raises(MaterializationError) as exc_info:
            roster_cls.modelize({"labels": {"a": 0, "b": "nope"}})

        assert exc_info.value.path == "Roster.labels['b']"

    def test_element_error_inside_nested_model(self, registry: Registry, roster_cls):
        @registry.model
        class Team(StrictModel):
            roster: roster_cls

        with pytest.raises(MaterializationError) as exc_info:
            Team.modelize({"roster": {"genders": [1, 0, 9]}})

        assert exc_info.value.path == "roster:Roster.genders[2]"
        assert exc_info.value.model_class is Team

    def test_whole_field_coercion_has_no_index(self, roster_cls):
        with pytest.raises(MaterializationError) as exc_info:
            roster_cls.modelize({"counts": {"a": "x"}})

        assert exc_info.value.path == "Roster.counts"


class TestReferenceStubs:
    """Reference coercion for models that declare no identifier field."""

    @pytest.fixture
    def project_cls(self, registry: Registry):
        @registry.model
        class Member(StrictModel):
            name: str

        @registry.model
        class Project(StrictModel):
            owners: list[Ref[Member]]

        return Project, Member

    def test_stub_keeps_identifier(self, project_cls):
        Project, Member = project_cls

        project = Project.modelize({"owners": ["a", {"name": "Bo"}]}, allow_reference=True)

        stub, full = project.owners
        assert isinstance(stub, Member)
        assert stub.id == "a"
        assert full.name == "Bo"
        assert "id" not in full.__dict__

    def test_top_level_stub(self, project_cls):
        _, Member = project_cls
        assert Member.modelize(42, allow_reference=True).id == 42

    def test_without_reference_coercion(self, project_cls):
        Project, _ = project_cls
        assert Project.modelize({"owners": ["a"]}).owners == ["a"]
