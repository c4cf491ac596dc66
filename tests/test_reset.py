"""Table enumeration and reset across backends.

SQLite runs for real; PostgreSQL and MySQL are checked against the exact
statements sent through a recording session.
"""

from types import SimpleNamespace

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from seedkit.db.models import ChatflowModel, CredentialModel, OrganizationModel, UserModel
from seedkit.exceptions import StorageError, UnsupportedBackendError
from seedkit.seed.reset import IGNORED_TABLES, list_user_tables, reset_database, resolve_backend
from seedkit.types import Backend


class _Result:
    def __init__(self, rows):
        self._rows = rows

    def all(self):
        return list(self._rows)

    def first(self):
        return self._rows[0] if self._rows else None


class RecordingSession:
    """Stands in for AsyncSession: records SQL, answers the table-list query."""

    def __init__(self, dialect, tables, fail_on=None):
        self._bind = SimpleNamespace(dialect=SimpleNamespace(name=dialect))
        self._tables = tables
        self._fail_on = fail_on
        self.statements = []
        self.committed = False
        self.rolled_back = False

    def get_bind(self):
        return self._bind

    async def execute(self, statement, params=None):
        sql = str(statement)
        self.statements.append(sql)
        if self._fail_on and self._fail_on in sql:
            raise OperationalError(sql, params, Exception("lock wait timeout"))
        if sql.startswith("SELECT"):
            return _Result([(t,) for t in self._tables])
        return _Result([])

    async def commit(self):
        self.committed = True

    async def rollback(self):
        self.rolled_back = True

    def expunge_all(self):
        pass


class TestResolveBackend:
    @pytest.mark.parametrize("name,backend", [
        ("postgresql", Backend.POSTGRES),
        ("postgres", Backend.POSTGRES),
        ("mysql", Backend.MYSQL),
        ("mariadb", Backend.MYSQL),
        ("sqlite", Backend.SQLITE),
    ])
    def test_supported(self, name, backend):
        assert resolve_backend(name) is backend

    def test_unsupported(self):
        with pytest.raises(UnsupportedBackendError) as exc_info:
            resolve_backend("mssql")
        assert exc_info.value.dialect == "mssql"
        assert exc_info.value.status_code == 501


class TestSqlite:
    async def _populate(self, repo):
        organization = await repo.upsert_organization("org_1", "Org")
        user = await repo.upsert_user("auth0|u", "u@x.test", organization.id)
        await repo.save_credential(CredentialModel(
            name="c", credential_name="openAIApi", encrypted_data="x", user_id=user.id,
        ))
        await repo.save_chatflow(ChatflowModel(name="f", flow_data="{}", user_id=user.id))
        await repo.commit()

    async def test_lists_application_tables(self, session):
        await session.execute(text("CREATE TABLE alembic_version (version_num VARCHAR(32))"))
        tables = await list_user_tables(session)
        assert set(tables) == {"organization", "user", "credential", "chat_flow"}
        assert not IGNORED_TABLES & set(tables)

    async def test_reset_empties_every_table(self, session, repo):
        await self._populate(repo)
        cleared = await reset_database(session)

        assert set(cleared) == {"organization", "user", "credential", "chat_flow"}
        for model in (OrganizationModel, UserModel, CredentialModel, ChatflowModel):
            assert await repo.count(model) == 0

    async def test_migration_table_survives(self, session, repo):
        await session.execute(text("CREATE TABLE migrations (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT)"))
        await session.execute(text("INSERT INTO migrations (name) VALUES ('init')"))
        await self._populate(repo)

        await reset_database(session)
        count = await session.execute(text("SELECT COUNT(*) FROM migrations"))
        assert count.scalar_one() == 1

    async def test_autoincrement_counters_are_reset(self, session):
        await session.execute(text("CREATE TABLE audit_log (id INTEGER PRIMARY KEY AUTOINCREMENT, msg TEXT)"))
        await session.execute(text("INSERT INTO audit_log (msg) VALUES ('a'), ('b')"))
        await session.commit()

        await reset_database(session)
        await session.execute(text("INSERT INTO audit_log (msg) VALUES ('c')"))
        new_id = await session.execute(text("SELECT id FROM audit_log"))
        assert new_id.scalar_one() == 1

    async def test_reset_is_idempotent(self, session, repo):
        await self._populate(repo)
        await reset_database(session)
        await reset_database(session)
        assert await repo.count(OrganizationModel) == 0


class TestRecordedDialects:
    async def test_postgres_single_truncate(self):
        session = RecordingSession("postgresql", ["organization", "user", "migrations"])
        cleared = await reset_database(session)

        assert cleared == ["organization", "user"]
        assert session.statements[0].startswith("SELECT tablename FROM pg_tables")
        assert session.statements[1] == (
            'TRUNCATE TABLE "public"."organization", "public"."user" RESTART IDENTITY CASCADE'
        )
        assert session.committed

    async def test_mysql_truncates_with_fk_checks_off(self):
        session = RecordingSession("mariadb", ["organization", "user", "typeorm_metadata"])
        await reset_database(session)

        assert "information_schema.tables" in session.statements[0]
        assert session.statements[1:] == [
            "SET FOREIGN_KEY_CHECKS = 0",
            "TRUNCATE TABLE `organization`",
            "TRUNCATE TABLE `user`",
            "SET FOREIGN_KEY_CHECKS = 1",
        ]
        assert session.committed

    async def test_mysql_reenables_checks_on_failure(self):
        session = RecordingSession("mysql", ["organization", "user"], fail_on="`user`")
        with pytest.raises(StorageError) as exc_info:
            await reset_database(session)

        assert exc_info.value.operation == "reset_database"
        assert session.statements[-1] == "SET FOREIGN_KEY_CHECKS = 1"
        assert session.rolled_back and not session.committed

    async def test_no_tables_is_a_noop(self):
        session = RecordingSession("postgresql", ["migrations"])
        assert await reset_database(session) == []
        assert len(session.statements) == 1
        assert not session.committed

    async def test_unsupported_dialect(self):
        with pytest.raises(UnsupportedBackendError):
            await reset_database(RecordingSession("oracle", ["organization"]))
