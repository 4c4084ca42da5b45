"""Tests for the Dgraph store adapter against a mocked pydgraph client."""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from docmirror.graph import dgraph_store
from docmirror.graph.dgraph_store import DgraphConfig, DgraphGraphStore


@pytest.fixture
def client(monkeypatch):
    client = MagicMock()
    monkeypatch.setattr(dgraph_store.pydgraph, "DgraphClientStub", MagicMock())
    monkeypatch.setattr(dgraph_store.pydgraph, "DgraphClient", MagicMock(return_value=client))
    return client


@pytest.fixture
def gstore(client):
    return DgraphGraphStore(DgraphConfig(addr="dgraph:9080", timeout=5.0))


def _response(payload):
    return SimpleNamespace(json=json.dumps(payload).encode("utf-8"))


class TestDgraphGraphStore:
    """Tests for DgraphGraphStore."""

    def test_query_uses_read_only_txn(self, client, gstore):
        txn = client.txn.return_value
        txn.query.return_value = _response({"docs": [{"uid": "0x1"}]})

        out = gstore.query("query q($hash: string) {}", {"$hash": "h"})

        assert out == {"docs": [{"uid": "0x1"}]}
        client.txn.assert_called_with(read_only=True)
        txn.query.assert_called_once_with("query q($hash: string) {}", variables={"$hash": "h"}, timeout=5.0)
        txn.discard.assert_called_once()

    def test_mutate_returns_uids(self, client, gstore):
        txn = client.txn.return_value
        txn.mutate.return_value = SimpleNamespace(uids={"document": "0x9"})

        uids = gstore.mutate({"uid": "_:document", "hash": "h"})

        assert uids == {"document": "0x9"}
        txn.mutate.assert_called_once_with(
            set_obj={"uid": "_:document", "hash": "h"}, commit_now=True, timeout=5.0
        )

    def test_update_schema(self, client, gstore):
        gstore.update_schema("hash: string .")
        op = client.alter.call_args.args[0]
        assert op.schema == "hash: string ."

    def test_delete_node_cascades(self, client, gstore):
        txn = client.txn.return_value
        txn.query.return_value = _response(
            {
                "node": [
                    {
                        "uid": "0x1",
                        "content_groups": [{"uid": "0x2", "contents": [{"uid": "0x3"}, {"uid": "0x4"}]}],
                        "certificates": [{"uid": "0x5"}],
                    }
                ]
            }
        )

        gstore.delete_node("0x1")

        deleted = txn.mutate.call_args.kwargs["del_obj"]
        assert [d["uid"] for d in deleted] == ["0x1", "0x2", "0x3", "0x4", "0x5"]

    def test_mutate_edge_nquads(self, client, gstore):
        txn = client.txn.return_value

        gstore.mutate_edge("0x1", "0x2", "runs")
        gstore.mutate_edge("0x1", "0x2", "runs", delete=True)

        calls = txn.mutate.call_args_list
        assert calls[0].kwargs["set_nquads"] == "<0x1> <runs> <0x2> ."
        assert calls[1].kwargs["del_nquads"] == "<0x1> <runs> <0x2> ."

    def test_mutate_edge_dotted_name(self, client, gstore):
        txn = client.txn.return_value
        gstore.mutate_edge("0x1", "0x2", "member.role")
        assert txn.mutate.call_args.kwargs["set_nquads"] == "<0x1> <member.role> <0x2> ."

    @pytest.mark.parametrize(
        "args",
        [("1", "0x2", "runs"), ("0x1", "0x2> <x", "runs"), ("0x1", "0x2", "bad name")],
    )
    def test_mutate_edge_rejects_unsafe_input(self, gstore, args):
        with pytest.raises(ValueError):
            gstore.mutate_edge(*args)

    def test_missing_types_and_fields(self, client, gstore):
        txn = client.txn.return_value
        txn.query.return_value = _response(
            {"types": [{"name": "Document", "fields": [{"name": "hash"}, {"name": "runs"}]}]}
        )

        assert gstore.missing_types(["Document", "Content"]) == ["Content"]
        assert gstore.type_fields("Document") == {"hash", "runs"}
        assert txn.query.call_args.args[0] == "schema(type: [Document]) {}"

    def test_close(self, gstore):
        gstore.close()
        gstore._stub.close.assert_called_once()
