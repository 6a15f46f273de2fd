from __future__ import annotations

import typing as t
from pathlib import Path

import alembic.config
import psycopg
import sqlalchemy
import sqlalchemy.event
import sqlalchemy.orm
import sqlalchemy.pool
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Container, Factory, Object, Provider, Resource, Singleton
from psycopg.types.string import StrDumper
from sqlalchemy.engine.url import URL as DSN

import educonnect.lib.json as json

from ..config.secrets import PostgresqlSecrets
from ..config.storage import PersistentSettings, PostgresqlSettings, SqliteSettings, StorageSettings
from ..di import NotReady
from ..provider import LoggingProvider


def create_dsn(config: PersistentSettings, secrets: PostgresqlSecrets) -> DSN:
    if config.postgresql is not None:
        pg: PostgresqlSettings = config.postgresql
        return DSN.create(
            pg.driver,
            database=pg.database,
            username=secrets.username.get_secret_value() if secrets.username else None,
            password=secrets.password.get_secret_value() if secrets.password else None,
            port=pg.port,
            host=str(pg.host) if pg.host else None,
        )
    assert config.sqlite is not None
    sq: SqliteSettings = config.sqlite
    return DSN.create(sq.driver, database=str(sq.path))


def provide_alembic_conf(
    migration_path: Path, config: PersistentSettings, secrets: PostgresqlSecrets, root: Path | NotReady
) -> alembic.config.Config:
    if isinstance(root, NotReady):
        raise RuntimeError("root path is unavailable")

    dsn = create_dsn(config, secrets)
    escaped_str = dsn.render_as_string(hide_password=False).replace("%", "%%")
    ac = alembic.config.Config()
    ac.set_main_option("script_location", str(root / migration_path))
    ac.set_section_option("alembic", "sqlalchemy.url", escaped_str)
    ac.set_section_option("alembic", "file_template", "%%(year)d-%%(month).2d-%%(day).2d-%%(slug)s-%%(rev)s")
    return ac


def provide_engine(
    config: PersistentSettings, secrets: PostgresqlSecrets, logging: LoggingProvider
) -> sqlalchemy.Engine:
    logger = logging.get_logger()
    dsn = create_dsn(config, secrets)

    if config.sqlite is not None:
        kwargs: dict[str, t.Any] = {}
        if config.sqlite.in_memory:
            # every connection must see the same in-memory database
            kwargs = {"connect_args": {"check_same_thread": False}, "poolclass": sqlalchemy.pool.StaticPool}
        engine = sqlalchemy.create_engine(dsn, json_serializer=json.dumps, json_deserializer=json.loads, **kwargs)
        sqlalchemy.event.listen(engine, "connect", register_foreign_keys)
        logger.info(
            "initialized SQLAlchemy engine",
            extra={
                "driver": config.sqlite.driver,
                "path": str(config.sqlite.path),
            },
        )
        return engine

    assert config.postgresql is not None
    engine = sqlalchemy.create_engine(dsn, json_serializer=json.dumps, json_deserializer=json.loads)
    sqlalchemy.event.listen(engine, "connect", register_path)
    sqlalchemy.event.listen(engine, "connect", register_timezone)
    logger.info(
        "initialized SQLAlchemy engine",
        extra={
            "driver": config.postgresql.driver,
            "database": config.postgresql.database,
            "host": config.postgresql.host,
            "port": config.postgresql.port,
        },
    )
    return engine


def provide_session(engine: sqlalchemy.Engine) -> sqlalchemy.orm.Session:
    """Create a new session. Caller is responsible for closing it (via di.Manage)."""
    maker = sqlalchemy.orm.sessionmaker(engine, expire_on_commit=False, autoflush=False)
    return maker(autobegin=False)


class PersistentContainer(DeclarativeContainer):
    config = Configuration()
    secrets = Configuration()
    debug: Provider[bool] = Object()
    logging: Provider[LoggingProvider] = Resource()
    root: Provider[Path | NotReady] = Object()

    alembic_config: Provider[alembic.config.Config] = Singleton(
        provide_alembic_conf,
        migration_path=Path("migrations/"),
        config=config.as_(PersistentSettings),
        secrets=secrets.postgresql.as_(PostgresqlSecrets),
        root=root,
    )
    engine: Provider[sqlalchemy.Engine] = Singleton(
        provide_engine,
        config=config.as_(PersistentSettings),
        secrets=secrets.postgresql.as_(PostgresqlSecrets),
        logging=logging,
    )
    session: Provider[sqlalchemy.orm.Session] = Factory(provide_session, engine=engine)


class StorageContainer(DeclarativeContainer):
    config: Provider[StorageSettings] = Configuration(strict=True)
    secrets: Provider[StorageSettings] = Configuration(strict=True)
    debug: Provider[bool] = Object()
    logging: Provider[LoggingProvider] = Resource()
    root: Provider[Path | NotReady] = Object()

    persistent: Provider[PersistentContainer] = Container(
        PersistentContainer, config=config.persistent, secrets=secrets, debug=debug, logging=logging, root=root
    )


def register_path(conn: psycopg.connection.Connection[t.Any], _: t.Any) -> None:
    psycopg.adapters.register_dumper(Path, StrDumper)


def register_timezone(dbapi_conn: t.Any, _: t.Any) -> None:
    """Set connection timezone to UTC for consistent datetime handling.

    PostgreSQL TIMESTAMP WITH TIME ZONE stores timestamps in UTC but returns
    them converted to the connection's timezone.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("SET TIMEZONE TO 'UTC'")
    cursor.close()


def register_foreign_keys(dbapi_conn: t.Any, _: t.Any) -> None:
    """SQLite leaves foreign key enforcement off unless asked."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
