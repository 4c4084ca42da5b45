from __future__ import annotations

from typing import Any, Iterable, Protocol


class GraphStore(Protocol):
    """Abstraction for the backing graph database.

    Query and schema text are DQL; mutation payloads are JSON-ready dicts.
    """

    def update_schema(self, schema: str) -> None: ...

    def query(self, query: str, variables: dict[str, str] | None = None) -> dict[str, Any]: ...

    def mutate(self, obj: dict[str, Any], *, delete: bool = False) -> dict[str, str]: ...

    def delete_node(self, uid: str) -> None: ...

    def mutate_edge(self, from_uid: str, to_uid: str, name: str, *, delete: bool = False) -> None: ...

    def missing_types(self, names: Iterable[str]) -> list[str]: ...

    def type_fields(self, name: str) -> set[str]: ...

    def close(self) -> None: ...
