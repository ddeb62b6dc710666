"""Tests for bookswap.data.query.QueryBuilder: compilation, validation, execution."""

import pytest

from bookswap.data import Database, QueryBuilder, Statement
from bookswap.data.errors import BuilderConsumedError, GuardError, InvalidArgument


@pytest.fixture
def qb() -> QueryBuilder:
    # Compilation never touches the database, so nothing is connected.
    return QueryBuilder(Database("sqlite:///:memory:"))


# =============================================================================
# SQL compilation (no database needed)
# =============================================================================


class TestSelectCompilation:
    def test_select_all(self, qb) -> None:
        assert qb.table("book").compile_select() == Statement("SELECT * FROM book", ())

    def test_table_in_constructor(self) -> None:
        statement = QueryBuilder(Database("sqlite:///:memory:"), "book").compile_select()
        assert statement.sql == "SELECT * FROM book"

    def test_columns(self, qb) -> None:
        statement = qb.table("book").select("id", "title").compile_select()
        assert statement.sql == "SELECT id, title FROM book"

    def test_qualified_and_star_columns(self, qb) -> None:
        statement = qb.table("book").select("book.*", "user.username").compile_select()
        assert statement.sql == "SELECT book.*, user.username FROM book"

    def test_where_values_are_placeholders(self, qb) -> None:
        statement = qb.table("book").where("user_id", "=", 3).compile_select()
        assert statement.sql == "SELECT * FROM book WHERE user_id = ?"
        assert statement.params == (3,)

    def test_wheres_are_anded_in_order(self, qb) -> None:
        statement = (
            qb.table("book").where("user_id", "=", 3).where("title", "like", "%Dune%").compile_select()
        )
        assert statement.sql == "SELECT * FROM book WHERE user_id = ? AND title LIKE ?"
        assert statement.params == (3, "%Dune%")

    def test_operator_whitespace_and_case_normalized(self, qb) -> None:
        statement = qb.table("book").where("author", "is  not", None).compile_select()
        assert statement.sql == "SELECT * FROM book WHERE author IS NOT ?"
        assert statement.params == (None,)

    def test_full_clause_order(self, qb) -> None:
        statement = (
            qb.table("book")
            .select("book.status_id")
            .limit(10)
            .offset(20)
            .order_by("book.status_id", "desc")
            .group_by("book.status_id")
            .where("book.user_id", "=", 1)
            .join("book_status", "book.status_id", "=", "book_status.id", "left")
            .compile_select()
        )
        assert statement.sql == (
            "SELECT book.status_id FROM book "
            "LEFT JOIN book_status ON book.status_id = book_status.id "
            "WHERE book.user_id = ? "
            "GROUP BY book.status_id "
            "ORDER BY book.status_id DESC "
            "LIMIT ? OFFSET ?"
        )
        assert statement.params == (1, 10, 20)

    def test_order_by_default_asc(self, qb) -> None:
        assert qb.table("book").order_by("title").compile_select().sql == (
            "SELECT * FROM book ORDER BY title ASC"
        )

    def test_multiple_order_by(self, qb) -> None:
        statement = qb.table("book").order_by("author").order_by("title", "DESC").compile_select()
        assert statement.sql == "SELECT * FROM book ORDER BY author ASC, title DESC"

    def test_inner_join_default(self, qb) -> None:
        statement = qb.table("book").join("user", "book.user_id", "=", "user.id").compile_select()
        assert statement.sql == "SELECT * FROM book INNER JOIN user ON book.user_id = user.id"

    def test_zero_limit_and_offset_are_unset(self, qb) -> None:
        statement = qb.table("book").limit(0).offset(0).compile_select()
        assert statement.sql == "SELECT * FROM book"
        assert statement.params == ()

    def test_offset_without_limit(self, qb) -> None:
        statement = qb.table("book").offset(5).compile_select()
        assert statement.sql == "SELECT * FROM book OFFSET ?"

    def test_compile_first(self, qb) -> None:
        statement = (
            qb.table("user").select("id").where("email", "=", "a@b.c").order_by("id").compile_first()
        )
        assert statement.sql == "SELECT id FROM user WHERE email = ? LIMIT 1"
        assert statement.params == ("a@b.c",)


class TestWriteCompilation:
    def test_insert(self, qb) -> None:
        statement = qb.table("book").compile_insert({"title": "Dune", "user_id": 1})
        assert statement.sql == "INSERT INTO book (title, user_id) VALUES (?, ?)"
        assert statement.params == ("Dune", 1)

    def test_update_binds_data_before_predicates(self, qb) -> None:
        statement = (
            qb.table("book").where("id", "=", 7).compile_update({"title": "Dune", "status_id": 2})
        )
        assert statement.sql == "UPDATE book SET title = ?, status_id = ? WHERE id = ?"
        assert statement.params == ("Dune", 2, 7)

    def test_delete(self, qb) -> None:
        statement = qb.table("book").where("id", "=", 7).compile_delete()
        assert statement == Statement("DELETE FROM book WHERE id = ?", (7,))


class TestValidation:
    def test_bad_direction(self, qb) -> None:
        with pytest.raises(InvalidArgument, match="direction"):
            qb.table("book").order_by("title", "sideways")

    def test_bad_join_kind(self, qb) -> None:
        with pytest.raises(InvalidArgument, match="join type"):
            qb.table("book").join("user", "book.user_id", "=", "user.id", "outer")

    @pytest.mark.parametrize("operator", ["==", "; DROP", "IN", "BETWEEN", ""])
    def test_operator_not_allowed(self, qb, operator) -> None:
        with pytest.raises(InvalidArgument, match="operator"):
            qb.table("book").where("id", operator, 1)

    @pytest.mark.parametrize(
        "column",
        ["id; DROP TABLE book", "1id", "a.b.c", "title--", "", "*"],
    )
    def test_unsafe_identifier(self, qb, column) -> None:
        with pytest.raises(InvalidArgument, match="Invalid column"):
            qb.table("book").where(column, "=", 1)

    def test_unsafe_table(self, qb) -> None:
        with pytest.raises(InvalidArgument, match="table name"):
            qb.table("book; DROP TABLE user")

    def test_unsafe_select_column(self, qb) -> None:
        with pytest.raises(InvalidArgument, match="Invalid column"):
            qb.table("book").select("COUNT(*)")

    def test_empty_select(self, qb) -> None:
        with pytest.raises(InvalidArgument):
            qb.table("book").select()

    @pytest.mark.parametrize("n", [-1, 1.5, "3", True])
    def test_bad_limit(self, qb, n) -> None:
        with pytest.raises(InvalidArgument, match="limit"):
            qb.table("book").limit(n)

    def test_bad_offset(self, qb) -> None:
        with pytest.raises(InvalidArgument, match="offset"):
            qb.table("book").offset(-5)

    def test_empty_insert(self, qb) -> None:
        with pytest.raises(InvalidArgument, match="at least one column"):
            qb.table("book").compile_insert({})

    def test_unsafe_insert_column(self, qb) -> None:
        with pytest.raises(InvalidArgument, match="Invalid column"):
            qb.table("book").compile_insert({"title) VALUES (1); --": "x"})

    def test_no_table(self, qb) -> None:
        with pytest.raises(InvalidArgument, match="No table set"):
            qb.compile_select()

    def test_failed_call_leaves_state_untouched(self, qb) -> None:
        qb.table("book").where("id", "=", 1)
        with pytest.raises(InvalidArgument):
            qb.where("title", "~", "x")
        with pytest.raises(InvalidArgument):
            qb.join("user", "book.user_id", "=", "user.id", "cross")
        statement = qb.compile_select()
        assert statement.sql == "SELECT * FROM book WHERE id = ?"
        assert statement.params == (1,)

    def test_update_without_where_guarded(self, qb) -> None:
        with pytest.raises(GuardError, match="mass updates"):
            qb.table("book").compile_update({"title": "x"})

    def test_delete_without_where_guarded(self, qb) -> None:
        with pytest.raises(GuardError, match="mass deletions"):
            qb.table("book").compile_delete()


# =============================================================================
# Execution against SQLite
# =============================================================================


@pytest.fixture
async def db(tmp_path):
    """Fresh SQLite database with a book table."""
    db = Database(f"sqlite:///{tmp_path / 'test.db'}")
    await db.connect()
    await db.execute(
        "CREATE TABLE book ("
        "  id INTEGER PRIMARY KEY AUTOINCREMENT,"
        "  title TEXT NOT NULL,"
        "  user_id INTEGER NOT NULL,"
        "  status_id INTEGER NOT NULL DEFAULT 1"
        ")"
    )
    await db.execute("CREATE TABLE book_status (id INTEGER PRIMARY KEY, name TEXT NOT NULL)")
    yield db
    await db.disconnect()


@pytest.fixture
async def seeded_db(db):
    await db.execute("INSERT INTO book_status (id, name) VALUES (1, 'disponible'), (2, 'non dispo.')")
    for title, user_id, status_id in [
        ("Dune", 1, 1),
        ("Hyperion", 1, 2),
        ("Solaris", 2, 1),
        ("Ubik", 2, 1),
        ("Neuromancer", 3, 2),
    ]:
        await db.execute(
            "INSERT INTO book (title, user_id, status_id) VALUES (?, ?, ?)",
            title,
            user_id,
            status_id,
        )
    return db


class TestExecution:
    async def test_get_all(self, seeded_db) -> None:
        rows = await QueryBuilder(seeded_db).table("book").get()
        assert len(rows) == 5
        assert rows[0]["title"] == "Dune"

    async def test_get_filtered_ordered_paged(self, seeded_db) -> None:
        rows = await (
            QueryBuilder(seeded_db)
            .table("book")
            .select("title")
            .where("status_id", "=", 1)
            .order_by("title", "desc")
            .limit(2)
            .offset(1)
            .get()
        )
        assert rows == [{"title": "Solaris"}, {"title": "Dune"}]

    async def test_get_no_match(self, seeded_db) -> None:
        assert await QueryBuilder(seeded_db).table("book").where("user_id", "=", 99).get() == []

    async def test_join_and_group(self, seeded_db) -> None:
        rows = await (
            QueryBuilder(seeded_db)
            .table("book")
            .select("book_status.name")
            .join("book_status", "book.status_id", "=", "book_status.id")
            .group_by("book_status.name")
            .order_by("book_status.name")
            .get()
        )
        assert rows == [{"name": "disponible"}, {"name": "non dispo."}]

    async def test_first(self, seeded_db) -> None:
        row = await QueryBuilder(seeded_db).table("book").where("title", "=", "Ubik").first()
        assert row is not None
        assert row["user_id"] == 2

    async def test_first_none(self, seeded_db) -> None:
        assert await QueryBuilder(seeded_db).table("book").where("id", "=", 999).first() is None

    async def test_insert(self, db) -> None:
        qb = QueryBuilder(db).table("book")
        assert await qb.insert({"title": "Dune", "user_id": 4}) is True
        assert qb.rowcount == 1
        assert await db.fetch_val("SELECT COUNT(*) FROM book WHERE user_id = ?", 4) == 1

    async def test_update(self, seeded_db) -> None:
        qb = QueryBuilder(seeded_db).table("book").where("user_id", "=", 2)
        assert await qb.update({"status_id": 2}) is True
        assert qb.rowcount == 2
        rows = await seeded_db.fetch("SELECT status_id FROM book WHERE user_id = ?", 2)
        assert {row["status_id"] for row in rows} == {2}

    async def test_delete(self, seeded_db) -> None:
        qb = QueryBuilder(seeded_db).table("book").where("title", "=", "Dune")
        assert await qb.delete() is True
        assert qb.rowcount == 1
        assert await seeded_db.fetch_val("SELECT COUNT(*) FROM book") == 4

    async def test_injection_attempt_is_just_a_value(self, seeded_db) -> None:
        hostile = "x' OR '1'='1"
        assert await QueryBuilder(seeded_db).table("book").where("title", "=", hostile).get() == []
        assert await seeded_db.fetch_val("SELECT COUNT(*) FROM book") == 5

    async def test_guard_issues_no_statement(self, seeded_db) -> None:
        qb = QueryBuilder(seeded_db).table("book")
        with pytest.raises(GuardError):
            await qb.delete()
        assert not qb.consumed
        assert await seeded_db.fetch_val("SELECT COUNT(*) FROM book") == 5


class TestSingleUse:
    async def test_second_terminal_fails(self, seeded_db) -> None:
        qb = QueryBuilder(seeded_db).table("book").where("user_id", "=", 1)
        await qb.get()
        assert qb.consumed
        with pytest.raises(BuilderConsumedError):
            await qb.get()

    async def test_chaining_after_terminal_fails(self, seeded_db) -> None:
        qb = QueryBuilder(seeded_db).table("book")
        await qb.first()
        with pytest.raises(BuilderConsumedError):
            qb.where("id", "=", 1)

    async def test_compile_after_terminal_fails(self, db) -> None:
        qb = QueryBuilder(db).table("book")
        await qb.insert({"title": "Dune", "user_id": 1})
        with pytest.raises(BuilderConsumedError):
            qb.compile_select()

    async def test_fresh_builders_do_not_share_state(self, seeded_db) -> None:
        first = QueryBuilder(seeded_db).table("book").where("user_id", "=", 1)
        await first.get()
        rows = await QueryBuilder(seeded_db).table("book").get()
        assert len(rows) == 5
