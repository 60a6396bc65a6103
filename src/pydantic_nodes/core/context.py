"""Engine-supplied execution context and collaborator protocols.

The engine owns every collaborator here; nodes only call them. Optional
payloads may be absent on any run, so every access is guarded.
"""

from typing import Any
from typing import BinaryIO
from typing import Protocol
from typing import runtime_checkable

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic.alias_generators import to_camel

from pydantic_nodes.core.errors import ConfigurationError


@runtime_checkable
class WebConsole(Protocol):
    """Execution log shown to the workflow author.

    Calls are fire-and-forget; nothing relies on a return value.
    """

    def info(self, *content: Any) -> None:
        """Log an informational message."""
        ...

    def success(self, *content: Any) -> None:
        """Log a success message."""
        ...

    def error(self, *content: Any) -> None:
        """Log an error message."""
        ...


class StorageResponse(BaseModel):
    """Result of an object storage request."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    file_url: str | None = None
    message: str = ""
    files: list[str] | None = None
    content: bytes | None = None


class KeyValueResponse(BaseModel):
    """Result of a key-value request; ``value`` is set only by ``get_key``."""

    success: bool
    message: str = ""
    value: Any = None


@runtime_checkable
class StorageUtil(Protocol):
    """Object storage for files produced by nodes."""

    async def add_file(
        self, name: str, stream: bytes | BinaryIO, content_type: str
    ) -> StorageResponse:
        """Upload a file and return its public URL."""
        ...

    async def get_file(self, name: str) -> StorageResponse:
        """Download a file."""
        ...

    async def get_file_url(self, name: str) -> StorageResponse:
        """Return a URL for an existing file."""
        ...

    async def delete_file(self, name: str) -> StorageResponse:
        """Delete a file."""
        ...

    async def rename_file(self, old_name: str, new_name: str) -> StorageResponse:
        """Rename a file."""
        ...

    async def get_file_list_by_user(self) -> StorageResponse:
        """List the files owned by the workflow's user."""
        ...


@runtime_checkable
class KeyValueUtil(Protocol):
    """Key-value cache; keys use the ``scope:name`` format."""

    async def set_key(self, key: str, value: Any) -> KeyValueResponse:
        """Store ``value`` under ``key``."""
        ...

    async def get_key(self, key: str) -> KeyValueResponse:
        """Fetch the value stored under ``key``."""
        ...

    async def delete_key(self, key: str) -> KeyValueResponse:
        """Remove ``key``."""
        ...


@runtime_checkable
class RefreshUtil(Protocol):
    """Persists OAuth tokens obtained through a refresh."""

    def handle_twitter_token(self, token: Any) -> None:
        """Store a refreshed Twitter token set."""
        ...


class ChatPayload(BaseModel):
    """Message received by a chat widget or chatbot trigger."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    query_id: str
    message: str


class ServerContext(BaseModel):
    """Per-execution data the engine hands to every node.

    Field names are snake_case; camelCase keys from the engine
    (``workflowId``, ``envList``, ``socialList``...) are accepted as aliases.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    workflow_id: str = ""
    chat_id: str = ""
    user_id: str = ""
    env_list: dict[str, Any] = Field(default_factory=dict)
    social_list: dict[str, Any] = Field(default_factory=dict)

    storage: StorageUtil | None = Field(default=None, alias="s3Util")
    kv: KeyValueUtil | None = Field(default=None, alias="redisUtil")
    refresh: RefreshUtil | None = Field(default=None, alias="refreshUtil")

    # Trigger payloads, present only for matching triggers
    tg_payload: Any = None
    slack_payload: Any = None
    widget_payload: ChatPayload | None = None
    chatbot_payload: ChatPayload | None = None
    email: str | None = None
    new_history_id: str | None = None
    old_history_id: str | None = None

    def env(self, name: str, default: Any = None) -> Any:
        """Read a workflow environment value; empty strings count as unset."""
        value = self.env_list.get(name)
        if value is None or value == "":
            return default
        return value

    def require_env(self, name: str) -> str:
        """Read a workflow environment value that must be present.

        Raises:
            ConfigurationError: If the value is unset.

        """
        value = self.env(name)
        if value is None:
            msg = f"Environment variable {name} is not set"
            raise ConfigurationError(msg)
        return str(value)

    def access_token(self, provider: str) -> str | None:
        """Return the OAuth access token of a connected account, if any."""
        account = self.social_list.get(provider)
        if not isinstance(account, dict):
            return None
        return account.get("access_token") or None

    def require_access_token(self, provider: str) -> str:
        """Return a connected account's access token.

        Raises:
            ConfigurationError: If the account is not connected.

        """
        token = self.access_token(provider)
        if token is None:
            msg = f"No {provider} account connected to this workflow"
            raise ConfigurationError(msg)
        return token

    def require_storage(self) -> StorageUtil:
        """Return the storage collaborator.

        Raises:
            ConfigurationError: If the engine did not inject one.

        """
        if self.storage is None:
            msg = "Object storage is not available in this execution"
            raise ConfigurationError(msg)
        return self.storage
