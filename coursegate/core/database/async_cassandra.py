"""Async Cassandra database connection using cassandra-asyncio-driver.

Provides:
- Cluster connection and session lifecycle
- Session with aexecute() for non-blocking queries
- Keyspace and table bootstrap for content and progress tables
"""

import structlog
from cassandra.auth import PlainTextAuthProvider
from cassandra.policies import DCAwareRoundRobinPolicy, TokenAwarePolicy
from cassandra_asyncio.cluster import Cluster

from coursegate.config.settings import get_settings
from coursegate.content.models import CONTENT_TABLES_CQL
from coursegate.progress.models import PROGRESS_TABLES_CQL


logger = structlog.get_logger(__name__)

# Table groups created at startup, in dependency order
TABLE_GROUPS: dict[str, list[str]] = {
    "content": CONTENT_TABLES_CQL,
    "progress": PROGRESS_TABLES_CQL,
}


class AsyncCassandraConnection:
    """Async Cassandra connection manager.

    Connection is synchronous; queries go through ``session.aexecute()``.
    """

    _cluster: Cluster | None = None
    _session = None  # Session type from cassandra_asyncio

    @classmethod
    def connect(cls):
        """Establish connection to the Cassandra cluster.

        Raises:
            ConnectionError: If connection fails
        """
        if cls._session is not None:
            return cls._session

        settings = get_settings()

        auth_provider = None
        if settings.cassandra_username and settings.cassandra_password:
            auth_provider = PlainTextAuthProvider(
                username=settings.cassandra_username,
                password=settings.cassandra_password,
            )

        cls._cluster = Cluster(
            contact_points=settings.cassandra_hosts,
            port=settings.cassandra_port,
            auth_provider=auth_provider,
            protocol_version=settings.cassandra_protocol_version,
            load_balancing_policy=TokenAwarePolicy(DCAwareRoundRobinPolicy()),
            connect_timeout=settings.cassandra_connect_timeout,
        )

        try:
            cls._session = cls._cluster.connect()
            cls._session.default_timeout = settings.cassandra_request_timeout
            logger.info(
                "async_cassandra_connected",
                hosts=settings.cassandra_hosts,
                port=settings.cassandra_port,
            )
        except Exception as e:
            logger.error("async_cassandra_connection_failed", error=str(e))
            raise ConnectionError(f"Failed to connect to Cassandra: {e}") from e

        return cls._session

    @classmethod
    def disconnect(cls) -> None:
        """Close connection to Cassandra."""
        if cls._session is not None:
            cls._session.shutdown()
            cls._session = None
            logger.info("async_cassandra_session_closed")

        if cls._cluster is not None:
            cls._cluster.shutdown()
            cls._cluster = None
            logger.info("async_cassandra_cluster_closed")

    @classmethod
    def is_connected(cls) -> bool:
        """Check if connection is active."""
        return cls._session is not None and not cls._session.is_shutdown


def keyspace_replication(settings) -> str:
    """Replication map for the keyspace.

    Development uses SimpleStrategy; every other environment replicates per
    datacenter.
    """
    if settings.is_development or settings.is_testing:
        return (
            "{'class': 'SimpleStrategy', "
            f"'replication_factor': {settings.cassandra_replication_factor}}}"
        )
    return (
        "{'class': 'NetworkTopologyStrategy', "
        f"'{settings.cassandra_datacenter}': {settings.cassandra_replication_factor}}}"
    )


async def bootstrap_schema(session, keyspace: str, replication: str) -> int:
    """Create the keyspace and every table group (idempotent).

    Returns:
        Number of statements executed
    """
    await session.aexecute(
        f"CREATE KEYSPACE IF NOT EXISTS {keyspace} "
        f"WITH replication = {replication} AND durable_writes = true"
    )
    executed = 1

    for group, statements in TABLE_GROUPS.items():
        for cql_template in statements:
            await session.aexecute(cql_template.format(keyspace=keyspace))
        executed += len(statements)
        logger.info(
            "cassandra_table_group_ready",
            group=group,
            statements=len(statements),
            keyspace=keyspace,
        )
    return executed


async def init_async_cassandra():
    """Connect and, unless disabled, bootstrap the schema.

    Returns:
        Configured Cassandra session with aexecute() support
    """
    settings = get_settings()
    keyspace = settings.cassandra_keyspace

    session = AsyncCassandraConnection.connect()
    if settings.cassandra_bootstrap_schema:
        await bootstrap_schema(session, keyspace, keyspace_replication(settings))
    session.set_keyspace(keyspace)

    logger.info(
        "async_cassandra_initialized",
        keyspace=keyspace,
        bootstrapped=settings.cassandra_bootstrap_schema,
    )
    return session


async def shutdown_async_cassandra() -> None:
    """Shutdown async Cassandra connection."""
    AsyncCassandraConnection.disconnect()
