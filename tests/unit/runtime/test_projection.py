"""Tests for level-based projection."""

from enum import Enum
from typing import Annotated, Optional

import pytest

from modelmeta.core.config import RegistryConfig
from modelmeta.core.levels import DataLevel
from modelmeta.metadata.annotations import basic, config, confidential, detail, level, never, short
from modelmeta.metadata.registry import Registry
from modelmeta.runtime.model import StrictModel


class Status(Enum):
    ACTIVE = "active"
    BLOCKED = "blocked"


@pytest.fixture
def account_cls(registry: Registry):
    registry.provide(Status)

    @registry.model
    class Owner(StrictModel):
        name: Annotated[str, basic()]
        email: Annotated[str, short()]
        bio: Annotated[str, detail()]

    @registry.model
    class Account(StrictModel):
        login: Annotated[str, basic()]
        status: Annotated[Status, short()]
        owner: Annotated[Owner, detail({DataLevel.DETAIL: DataLevel.BASIC})]
        notes: Annotated[str, detail()]
        ssn: Annotated[str, confidential()]
        password: Annotated[str, never()]
        nickname: Optional[str]

        @property
        def display(self) -> str:
            return self.login.upper()

        def greet(self) -> str:
            return "hi"

    return Account


@pytest.fixture
def account(account_cls):
    return account_cls.modelize(
        {
            "login": "ada",
            "status": "active",
            "owner": {"name": "Ada", "email": "ada@example.com", "bio": "..."},
            "notes": "n",
            "ssn": "123",
            "password": "secret",
        }
    )


class TestLevels:
    """Tests for level filtering."""

    def test_basic(self, account):
        assert account.to_object(level=DataLevel.BASIC) == {"login": "ada"}

    def test_short(self, account):
        assert account.to_object(level=DataLevel.SHORT) == {"login": "ada", "status": "active"}

    def test_pass_level_map(self, account):
        """The owner is projected at BASIC inside a DETAIL view."""
        data = account.to_object(level=DataLevel.DETAIL)

        assert data == {
            "login": "ada",
            "status": "active",
            "owner": {"name": "Ada"},
            "notes": "n",
        }

    def test_pass_level_map_only_remaps_listed_levels(self, account):
        data = account.to_object(level=DataLevel.CONFIDENTIAL)

        assert data["owner"] == {"name": "Ada", "email": "ada@example.com", "bio": "..."}
        assert data["ssn"] == "123"
        assert "password" not in data

    def test_default_level_excludes_never_and_getters(self, account):
        data = account.to_object()

        assert "password" not in data
        assert "display" not in data
        assert "greet" not in data
        assert data["ssn"] == "123"

    def test_never_level_includes_getters(self, account):
        data = account.to_object(level=DataLevel.NEVER)

        assert data["password"] == "secret"
        assert data["display"] == "ADA"
        assert "greet" not in data

    def test_unset_fields_are_omitted(self, account):
        assert "nickname" not in account.to_object()

    def test_explicit_none_is_kept(self, account_cls):
        account = account_cls.modelize({"login": "x", "nickname": None})
        assert account.to_object()["nickname"] is None

    def test_monotonic(self, account):
        """Raising the level never removes keys."""
        levels = [DataLevel.BASIC, DataLevel.SHORT, DataLevel.DETAIL, DataLevel.CONFIDENTIAL, DataLevel.NEVER]
        keys = [set(account.to_object(level=lv)) for lv in levels]

        for lower, higher in zip(keys, keys[1:]):
            assert lower <= higher

    def test_idempotent(self, registry: Registry, account_cls, account):
        """Projecting, materializing and projecting again gives the same data."""
        first = account.to_object()
        again = account_cls.modelize(first).to_object()

        assert again == first
        assert registry.project(account_cls, first) == first


class TestDefaults:
    """Tests for class and registry default levels."""

    def test_class_default_level(self, registry: Registry):
        @registry.model(default_level=DataLevel.DETAIL)
        class Doc(StrictModel):
            title: Annotated[str, basic()]
            body: str

        doc = Doc.modelize({"title": "t", "body": "b"})

        assert doc.to_object(level=DataLevel.BASIC) == {"title": "t"}
        assert doc.to_object(level=DataLevel.DETAIL) == {"title": "t", "body": "b"}

    def test_registry_default_level(self):
        registry = Registry(RegistryConfig(default_level=DataLevel.SHORT))

        @registry.model
        class Doc(StrictModel):
            title: Annotated[str, basic()]
            body: Annotated[str, detail()]

        assert Doc.modelize({"title": "t", "body": "b"}).to_object() == {"title": "t"}

    def test_to_object_config_default(self, registry: Registry):
        @config(to_object={"level": DataLevel.BASIC})
        class Doc(StrictModel):
            title: Annotated[str, basic()]
            body: Annotated[str, detail()]

        registry.register("Doc", Doc)
        doc = Doc.modelize({"title": "t", "body": "b"})

        assert doc.to_object() == {"title": "t"}
        assert doc.to_object(level=DataLevel.DETAIL) == {"title": "t", "body": "b"}


class TestPlainData:
    """Tests for projecting values without registered types."""

    def test_mappings_project_by_key(self, registry: Registry):
        @registry.model
        class Doc(StrictModel):
            title: Annotated[str, basic()]
            body: Annotated[str, level(DataLevel.DETAIL)]

        assert registry.project(Doc, {"title": "t", "body": "b"}, level=DataLevel.BASIC) == {"title": "t"}

    def test_untyped_values(self, registry: Registry):
        @registry.model
        class Bag(StrictModel):
            payload: dict
            items: list

        bag = Bag.modelize({"payload": {"s": Status.ACTIVE}, "items": [Status.BLOCKED, 1]})

        assert bag.to_object() == {"payload": {"s": "active"}, "items": ["blocked", 1]}

    def test_none_projects_to_none(self, registry: Registry, account_cls):
        assert registry.project(account_cls, None) is None
