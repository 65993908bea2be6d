import asyncio
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from conftest import FakeVectorIndex, make_manager
from models.email import IndexedDocument
from services.exceptions import ConfigurationError, UpstreamUnavailable
from services.vector_index import IndexState, SupabaseVectorIndex


async def test_connects_once_and_caches_handle():
    index = FakeVectorIndex()
    manager = make_manager(index)
    assert manager.state is IndexState.DISCONNECTED

    first = await manager.get_or_connect()
    second = await manager.get_or_connect()

    assert first is index
    assert second is index
    assert manager.state is IndexState.READY
    assert len(manager.connect_calls) == 1
    assert manager.connect_calls[0] == ("test-key", "email_vectors", "inboxiq")


@pytest.mark.parametrize("api_key,index_name", [(None, "email_vectors"), ("key", None), ("", "")])
async def test_missing_configuration_fails_without_connecting(api_key, index_name):
    manager = make_manager(FakeVectorIndex(), api_key=api_key, index_name=index_name)

    with pytest.raises(ConfigurationError):
        await manager.get_or_connect()

    assert manager.connect_calls == []
    assert manager.state is IndexState.DISCONNECTED


async def test_connection_failure_maps_to_upstream_unavailable_and_resets():
    manager = make_manager(error=ConnectionRefusedError("refused"))

    with pytest.raises(UpstreamUnavailable):
        await manager.get_or_connect()
    assert manager.state is IndexState.DISCONNECTED

    # Not cached; next call tries again
    with pytest.raises(UpstreamUnavailable):
        await manager.get_or_connect()
    assert len(manager.connect_calls) == 2


async def test_concurrent_callers_converge_on_one_handle():
    handles = iter([FakeVectorIndex(), FakeVectorIndex()])
    manager = make_manager()

    async def connector(key, name, namespace):
        await asyncio.sleep(0.01)
        return next(handles)

    manager._connector = connector

    first, second = await asyncio.gather(manager.get_or_connect(), manager.get_or_connect())

    assert first is second
    assert await manager.get_or_connect() is first


async def test_cancelled_connect_returns_to_disconnected():
    manager = make_manager()

    async def hanging(key, name, namespace):
        await asyncio.Event().wait()

    manager._connector = hanging

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(manager.get_or_connect(), 0.01)
    assert manager.state is IndexState.DISCONNECTED


class FakeEmbeddings:
    def __init__(self):
        self.inputs = []
        self.embeddings = self

    async def create(self, model, input):
        self.inputs.append(input)
        return SimpleNamespace(data=[SimpleNamespace(embedding=[float(len(text)), 1.0]) for text in input])


def supabase_index(rows=None):
    client = MagicMock()
    client.table.return_value.upsert.return_value.execute.return_value = SimpleNamespace(data=[{}, {}])
    client.rpc.return_value.execute.return_value = SimpleNamespace(data=rows or [])
    return SupabaseVectorIndex(client, FakeEmbeddings(), "email_vectors", "inboxiq"), client


async def test_supabase_upsert_keys_rows_by_namespace_and_doc_id():
    index, client = supabase_index()
    docs = [
        IndexedDocument(page_content="Budget\n\nnumbers", metadata={"docId": "e1", "userId": "alice"}),
        IndexedDocument(page_content="Offsite\n\nLisbon", metadata={"docId": "e2", "userId": "alice"}),
    ]

    written = await index.upsert(docs)

    assert written == 2
    rows = client.table.return_value.upsert.call_args.args[0]
    assert [(row["namespace"], row["doc_id"]) for row in rows] == [("inboxiq", "e1"), ("inboxiq", "e2")]
    assert rows[0]["embedding"] == [15.0, 1.0]
    assert client.table.return_value.upsert.call_args.kwargs == {"on_conflict": "namespace,doc_id"}


async def test_supabase_search_passes_owner_filter_and_caps_results():
    rows = [
        {"doc_id": f"e{n}", "content": f"doc {n}", "metadata": {"docId": f"e{n}"}, "similarity": 1 - n / 10}
        for n in range(4)
    ]
    index, client = supabase_index(rows)

    matches = await index.similarity_search("budget", 3, {"userId": "alice"})

    assert [doc.metadata["docId"] for doc, _ in matches] == ["e0", "e1", "e2"]
    name, params = client.rpc.call_args.args
    assert name == "match_email_vectors"
    assert params["filter_metadata"] == {"userId": "alice"}
    assert params["filter_namespace"] == "inboxiq"
    assert params["match_count"] == 3


async def test_supabase_search_requires_owner_filter():
    index, _ = supabase_index()

    with pytest.raises(ValueError):
        await index.similarity_search("budget", 3, {})
