"""
Retrieval query construction.

Queries are assembled as a small tree (selections, ordering, nested
sections) and rendered to DQL text at the boundary. Rendering is pure, so
the shape of a query can be asserted without a running store.

Lookup keys are always passed as declared query variables; only predicate
names validated by the schema registry are ever written into query text.
"""

from __future__ import annotations

from dataclasses import dataclass

from .schema import validate_edge_name

_INDENT = "  "


@dataclass(frozen=True, slots=True)
class RequestConfig:
    """Which parts of a document a retrieval query expands.

    `edges` is an ordered set of relationship names; each is expanded one
    level deep with the same configuration.
    """

    content_groups: bool = False
    certificates: bool = False
    edges: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        edges = tuple(dict.fromkeys(validate_edge_name(e) for e in self.edges))
        object.__setattr__(self, "edges", edges)


@dataclass(frozen=True, slots=True)
class Selection:
    name: str
    order_asc: str | None = None
    children: tuple["Selection", ...] = ()

    def lines(self, depth: int) -> list[str]:
        pad = _INDENT * depth
        if not self.children:
            return [f"{pad}{self.name}"]
        head = self.name
        if self.order_asc:
            head += f" (orderasc: {self.order_asc})"
        out = [f"{pad}{head} {{"]
        for child in self.children:
            out.extend(child.lines(depth + 1))
        out.append(f"{pad}}}")
        return out


@dataclass(frozen=True, slots=True)
class QueryBlock:
    alias: str
    func: str
    children: tuple[Selection, ...]

    def lines(self, depth: int) -> list[str]:
        pad = _INDENT * depth
        out = [f"{pad}{self.alias}(func: {self.func}) {{"]
        for child in self.children:
            out.extend(child.lines(depth + 1))
        out.append(f"{pad}}}")
        return out


@dataclass(frozen=True, slots=True)
class Query:
    name: str
    params: tuple[tuple[str, str], ...]
    blocks: tuple[QueryBlock, ...]

    def render(self) -> str:
        return render(self)


def render(query: Query) -> str:
    if query.params:
        decl = ", ".join(f"{var}: {typ}" for var, typ in query.params)
        out = [f"query {query.name}({decl}) {{"]
    else:
        out = ["{"]
    for block in query.blocks:
        out.extend(block.lines(1))
    out.append("}")
    return "\n".join(out) + "\n"


def _leaf(*names: str) -> tuple[Selection, ...]:
    return tuple(Selection(n) for n in names)


BASE_FIELDS = _leaf("uid", "hash", "creator", "created_date", "dgraph.type")

CONTENT_GROUPS = Selection(
    "content_groups",
    order_asc="content_group_sequence",
    children=_leaf("uid", "content_group_sequence", "dgraph.type")
    + (
        Selection(
            "contents",
            order_asc="content_sequence",
            children=_leaf("uid", "content_sequence", "label", "value", "type", "dgraph.type")
            # Referenced documents are expanded one level, scalars only.
            + (Selection("document", children=_leaf("uid", "expand(_all_)")),),
        ),
    ),
)

CERTIFICATES = Selection(
    "certificates",
    order_asc="certification_sequence",
    children=_leaf("uid", "dgraph.type", "expand(_all_)"),
)


def document_selections(config: RequestConfig) -> tuple[Selection, ...]:
    base = BASE_FIELDS
    if config.content_groups:
        base += (CONTENT_GROUPS,)
    if config.certificates:
        base += (CERTIFICATES,)
    return base + tuple(Selection(edge, children=base) for edge in config.edges)


def document_query(config: RequestConfig) -> Query:
    """Query for one document by hash, bound to the `$hash` variable."""
    return Query(
        name="docs",
        params=(("$hash", "string"),),
        blocks=(QueryBlock("docs", "eq(hash, $hash)", document_selections(config)),),
    )


def hash_lookup_query(count: int) -> Query:
    """Query resolving `count` hashes, bound to `$h0` .. `$h{count-1}`."""
    return Query(
        name="hashes",
        params=tuple((f"$h{i}", "string") for i in range(count)),
        blocks=tuple(
            QueryBlock(f"h{i}", f"eq(hash, $h{i})", _leaf("uid", "hash")) for i in range(count)
        ),
    )
