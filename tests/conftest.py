from __future__ import annotations

import pytest

from warden.conf import build_settings
from warden.container import build_container, reset_container
from warden.principal import PrincipalIdentity
from warden.store import InMemoryGrantStore

POSTS_EDIT = 1
POSTS_DELETE = 2
POSTS_PUBLISH = 3
EDITOR = 10
PUBLISHER = 11

USER = PrincipalIdentity(kind="workbench.member", id=1)
OTHER_USER = PrincipalIdentity(kind="workbench.member", id=2)

MEMORY_CACHE = {"CACHE": {"STORE": "memory"}}


class CountingStore:
    """Records every grant store call made through it."""

    def __init__(self, inner):
        self._inner = inner
        self.calls: list[str] = []

    def __getattr__(self, name):
        attr = getattr(self._inner, name)
        if not callable(attr):
            return attr

        def recorded(*args, **kwargs):
            self.calls.append(name)
            return attr(*args, **kwargs)

        return recorded


@pytest.fixture(autouse=True)
def _fresh_container():
    from django.core.cache import cache

    reset_container()
    cache.clear()
    yield
    reset_container()
    cache.clear()


@pytest.fixture
def store() -> CountingStore:
    return CountingStore(
        InMemoryGrantStore(
            permissions={
                "posts.edit": POSTS_EDIT,
                "posts.delete": POSTS_DELETE,
                "posts.publish": POSTS_PUBLISH,
            },
            roles={"editor": EDITOR, "publisher": PUBLISHER},
            role_permissions={EDITOR: (POSTS_EDIT,), PUBLISHER: (POSTS_PUBLISH,)},
        )
    )


@pytest.fixture
def container(store):
    return build_container(build_settings(MEMORY_CACHE), store=store)


@pytest.fixture
def engine(container):
    return container.engine
