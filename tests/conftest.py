"""Shared fixtures: a recording console and fake engine collaborators."""

from typing import Any
from typing import BinaryIO

import pytest

from pydantic_nodes import ServerContext
from pydantic_nodes import load_catalog
from pydantic_nodes.core import KeyValueResponse
from pydantic_nodes.core import StorageResponse


class RecordingConsole:
    """WebConsole that keeps every message for assertions."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def _record(self, level: str, content: tuple[Any, ...]) -> None:
        self.messages.append((level, " ".join(str(c) for c in content)))

    def info(self, *content: Any) -> None:
        self._record("info", content)

    def success(self, *content: Any) -> None:
        self._record("success", content)

    def error(self, *content: Any) -> None:
        self._record("error", content)

    def of(self, level: str) -> list[str]:
        return [text for lvl, text in self.messages if lvl == level]


class FakeStorage:
    """In-memory object storage."""

    def __init__(self, *, fail: bool = False) -> None:
        self.files: dict[str, bytes] = {}
        self.fail = fail

    async def add_file(
        self, name: str, stream: bytes | BinaryIO, content_type: str
    ) -> StorageResponse:
        if self.fail:
            return StorageResponse(success=False, message="bucket unavailable")
        data = stream if isinstance(stream, bytes) else stream.read()
        self.files[name] = data
        return StorageResponse(success=True, file_url=f"https://files.test/{name}")

    async def get_file(self, name: str) -> StorageResponse:
        if name not in self.files:
            return StorageResponse(success=False, message="not found")
        return StorageResponse(success=True, content=self.files[name])

    async def get_file_url(self, name: str) -> StorageResponse:
        return StorageResponse(success=True, file_url=f"https://files.test/{name}")

    async def delete_file(self, name: str) -> StorageResponse:
        self.files.pop(name, None)
        return StorageResponse(success=True)

    async def rename_file(self, old_name: str, new_name: str) -> StorageResponse:
        self.files[new_name] = self.files.pop(old_name)
        return StorageResponse(success=True)

    async def get_file_list_by_user(self) -> StorageResponse:
        return StorageResponse(success=True, files=sorted(self.files))


class FakeKeyValue:
    """In-memory key-value cache."""

    def __init__(self) -> None:
        self.data: dict[str, Any] = {}

    async def set_key(self, key: str, value: Any) -> KeyValueResponse:
        self.data[key] = value
        return KeyValueResponse(success=True)

    async def get_key(self, key: str) -> KeyValueResponse:
        return KeyValueResponse(success=key in self.data, value=self.data.get(key))

    async def delete_key(self, key: str) -> KeyValueResponse:
        self.data.pop(key, None)
        return KeyValueResponse(success=True)


@pytest.fixture(scope="session", autouse=True)
def catalog():
    """Register every bundled node once per test session."""
    return load_catalog()


@pytest.fixture
def console() -> RecordingConsole:
    return RecordingConsole()


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def server(storage: FakeStorage) -> ServerContext:
    return ServerContext(
        workflow_id="wf-1",
        user_id="user-1",
        storage=storage,
        kv=FakeKeyValue(),
    )


def entries(**values: Any) -> list[dict[str, Any]]:
    """Build ``{name, value}`` entries from keyword arguments.

    Keywords use underscores for spaces, so ``Input_1`` becomes ``Input 1``.
    """
    return [{"name": k.replace("_", " "), "value": v} for k, v in values.items()]
