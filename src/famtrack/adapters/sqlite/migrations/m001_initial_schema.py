"""Initial schema: users, families, parental controls, requests and usage."""

import sqlite3

from famtrack.adapters.sqlite import schema

from .runner import Migration


class InitialSchemaMigration(Migration):
    """Migration 001: create every table and index."""

    @property
    def version(self) -> int:
        return 1

    @property
    def description(self) -> str:
        return "Initial famtrack schema"

    def up(self, connection: sqlite3.Connection) -> None:
        schema.create_all(connection)


initial_migration = InitialSchemaMigration()
