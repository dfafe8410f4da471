"""Tests for the Cassandra schema bootstrap."""

from unittest.mock import AsyncMock, Mock

import pytest
from cassandra.cluster import Session

from coursegate.config import get_settings
from coursegate.core.database.async_cassandra import (
    TABLE_GROUPS,
    bootstrap_schema,
    keyspace_replication,
)


def test_development_uses_simple_strategy() -> None:
    settings = get_settings().model_copy(update={"environment": "development"})
    assert "SimpleStrategy" in keyspace_replication(settings)


def test_production_replicates_per_datacenter() -> None:
    settings = get_settings().model_copy(
        update={
            "environment": "production",
            "cassandra_datacenter": "dc-east",
            "cassandra_replication_factor": 3,
        }
    )
    assert keyspace_replication(settings) == (
        "{'class': 'NetworkTopologyStrategy', 'dc-east': 3}"
    )


@pytest.mark.asyncio
async def test_bootstrap_creates_keyspace_and_tables() -> None:
    session = Mock(spec=Session)
    session.aexecute = AsyncMock(return_value=Mock())

    executed = await bootstrap_schema(
        session, "test_keyspace", "{'class': 'SimpleStrategy'}"
    )

    expected = 1 + sum(len(statements) for statements in TABLE_GROUPS.values())
    assert executed == expected
    assert session.aexecute.await_count == expected
    first_statement = session.aexecute.await_args_list[0].args[0]
    assert first_statement.startswith("CREATE KEYSPACE IF NOT EXISTS test_keyspace")
    for call in session.aexecute.await_args_list[1:]:
        assert "{keyspace}" not in call.args[0]
        assert "test_keyspace." in call.args[0]
