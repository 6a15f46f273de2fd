from __future__ import annotations

import alembic.command
import alembic.config

import educonnect.lib.cli as click
from educonnect.core import di


@click.group("schema")
def schema():
    """Manage the database schema with alembic."""
    ...


@schema.command()
@click.option("--verbose", "-v", is_flag=True, default=False)
@di.inject
def current(verbose: bool, alembic_conf: alembic.config.Config = di.Provide["storage.persistent.alembic_config"]):
    alembic.command.current(alembic_conf, verbose=verbose)


@schema.command()
@click.argument("message")
@click.option("--autogenerate/--empty", default=True, help="diff the tables against the database")
@di.inject
def generate(
    message: str,
    autogenerate: bool,
    alembic_conf: alembic.config.Config = di.Provide["storage.persistent.alembic_config"],
):
    alembic.command.revision(alembic_conf, message, autogenerate=autogenerate)


@schema.command()
@click.argument("revision", default="head")
@di.inject
def up(revision: str, alembic_conf: alembic.config.Config = di.Provide["storage.persistent.alembic_config"]):
    alembic.command.upgrade(alembic_conf, revision)


@schema.command()
@click.argument("revision")
@di.inject
def down(revision: str, alembic_conf: alembic.config.Config = di.Provide["storage.persistent.alembic_config"]):
    alembic.command.downgrade(alembic_conf, revision)


@schema.command()
@click.option("--verbose", "-v", is_flag=True, default=False)
@di.inject
def history(verbose: bool, alembic_conf: alembic.config.Config = di.Provide["storage.persistent.alembic_config"]):
    alembic.command.history(alembic_conf, verbose=verbose, indicate_current=True)


@schema.command()
@click.argument("revision")
@di.inject
def stamp(revision: str, alembic_conf: alembic.config.Config = di.Provide["storage.persistent.alembic_config"]):
    alembic.command.stamp(alembic_conf, revision)
