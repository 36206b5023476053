"""Tests for the lexical read-only SQL gate."""

import time

import pytest

from dal.util.read_only import (
    get_query_type,
    is_write_operation,
    normalize_sql,
    validate_read_only_query,
)


class TestAllowedQueries:
    """Statements the gate lets through."""

    @pytest.mark.parametrize(
        "sql,query_type",
        [
            ("SELECT * FROM Users WHERE Id = @id", "SELECT"),
            ("select name from sys.tables", "SELECT"),
            ("  \n\tSELECT 1", "SELECT"),
            ("WITH recent AS (SELECT TOP 10 * FROM orders) SELECT * FROM recent", "CTE"),
            ("SELECT 1; SELECT 2", "SELECT"),
            ("SET SHOWPLAN_XML ON", "SHOWPLAN"),
            ("SELECT updated_at, last_updated, user_created FROM users", "SELECT"),
            ("SELECT 1 -- DELETE FROM x", "SELECT"),
            ("SELECT 1 /* DROP TABLE users */", "SELECT"),
            ("SELECT execution_count FROM sys.dm_exec_query_stats", "SELECT"),
        ],
    )
    def test_valid(self, sql, query_type):
        """Plain reads, CTEs and showplan toggles pass with their category."""
        verdict = validate_read_only_query(sql)
        assert verdict.valid, verdict.reason
        assert verdict.query_type == query_type
        assert verdict.reason is None

    def test_validation_is_idempotent(self):
        """Validation is a pure function of its input."""
        sql = "SELECT * FROM Users; DROP TABLE Users"
        assert validate_read_only_query(sql) == validate_read_only_query(sql)


class TestRejectedQueries:
    """Statements the gate refuses."""

    def test_delete_statement(self):
        """A leading write keyword fails the allowlist."""
        verdict = validate_read_only_query("DELETE FROM Users")
        assert not verdict.valid
        assert verdict.query_type == "DELETE"
        assert "SELECT or WITH" in verdict.reason

    def test_stacked_drop_reports_keyword(self):
        """The blocked keyword is found before the stacked-query pattern."""
        verdict = validate_read_only_query("SELECT * FROM Users; DROP TABLE Users")
        assert not verdict.valid
        assert verdict.query_type == "DROP"
        assert 'Keyword "DROP"' in verdict.reason

    def test_comment_before_write_does_not_hide_it(self):
        """A comment between statements is stripped before the scan."""
        verdict = validate_read_only_query("SELECT 1; -- \nDELETE FROM x")
        assert not verdict.valid
        assert verdict.query_type == "DELETE"

    def test_stacked_update(self):
        """Word-bounded UPDATE is caught after a statement separator."""
        verdict = validate_read_only_query("SELECT 1; UPDATE users SET x=1")
        assert not verdict.valid
        assert verdict.query_type == "UPDATE"

    def test_quoted_comment_marker_does_not_hide_write(self):
        """A '--' inside a literal does not start a comment."""
        verdict = validate_read_only_query("SELECT '--'; DROP TABLE t")
        assert not verdict.valid
        assert verdict.query_type == "DROP"

    def test_extended_procedure_prefix(self):
        """xp_ procedures are blocked by prefix."""
        verdict = validate_read_only_query("SELECT * FROM master.dbo.xp_cmdshell('dir')")
        assert not verdict.valid
        assert verdict.query_type == "XP_"

    def test_exec_after_select(self):
        """EXEC anywhere in the batch is blocked."""
        verdict = validate_read_only_query("SELECT 1; EXEC xp_cmdshell 'dir'")
        assert not verdict.valid
        assert verdict.query_type == "EXEC"

    def test_select_into_hidden_by_comment(self):
        """A comment between INTO and the table name is ignored."""
        verdict = validate_read_only_query("SELECT * INTO/* x */archive FROM orders")
        assert not verdict.valid
        assert verdict.query_type == "BLOCKED_PATTERN"
        assert "SELECT INTO" in verdict.reason

    def test_select_into_temp_table(self):
        """Temp-table creation via SELECT INTO is blocked."""
        verdict = validate_read_only_query("SELECT id INTO #scratch FROM orders")
        assert not verdict.valid
        assert verdict.query_type == "BLOCKED_PATTERN"

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT * INTO [t] FROM orders",
            'SELECT * INTO "t" FROM orders',
            "SELECT * INTO ##t FROM orders",
            "WITH c AS (SELECT 1 AS a) SELECT * INTO [dbo].[t] FROM c",
            "SELECT * INTO[t] FROM orders",
        ],
    )
    def test_select_into_quoted_targets(self, sql):
        """Bracketed, quoted and global-temp targets are blocked as well."""
        verdict = validate_read_only_query(sql)
        assert not verdict.valid
        assert verdict.query_type == "BLOCKED_PATTERN"
        assert "SELECT INTO" in verdict.reason

    def test_select_into_scan_is_linear(self):
        """A long run of SELECT tokens is rejected or accepted quickly."""
        started = time.monotonic()
        validate_read_only_query("SELECT " * 20000)
        assert time.monotonic() - started < 2.0

    def test_openquery(self):
        """Linked-server passthrough is blocked."""
        verdict = validate_read_only_query("SELECT * FROM OPENQUERY(remote, 'SELECT 1')")
        assert not verdict.valid
        assert "OPENQUERY" in verdict.reason

    def test_keyword_in_literal_is_denied(self):
        """Keyword scanning is lexical, so quoted keywords are refused too."""
        assert not validate_read_only_query("SELECT 'DROP' AS word").valid

    @pytest.mark.parametrize(
        "sql,keyword",
        [
            ("SELECT * FROM t; TRUNCATE TABLE t", "TRUNCATE"),
            ("SELECT 1; DBCC CHECKDB", "DBCC"),
            ("SELECT * FROM OPENROWSET('SQLNCLI', 'x', 'SELECT 1')", "OPENROWSET"),
            ("WITH c AS (SELECT 1 AS a) MERGE t USING c ON 1 = 1", "MERGE"),
            ("SELECT 1; SHUTDOWN", "SHUTDOWN"),
            ("SELECT 1; KILL 52", "KILL"),
        ],
    )
    def test_blocked_keywords(self, sql, keyword):
        """Each blocked keyword is reported as the query type."""
        verdict = validate_read_only_query(sql)
        assert not verdict.valid
        assert verdict.query_type == keyword

    @pytest.mark.parametrize("sql", ["", "   ", "-- nothing here", "/* nothing */", None])
    def test_empty_input(self, sql):
        """Empty or comment-only input is reported as EMPTY."""
        verdict = validate_read_only_query(sql)
        assert not verdict.valid
        assert verdict.query_type == "EMPTY"
        assert verdict.reason == "Query is empty"


class TestHelpers:
    """Normalization and classification helpers."""

    def test_normalize_sql(self):
        """Comments go, whitespace collapses, text is uppercased."""
        assert normalize_sql("select  a,\n\tb -- c\nfrom t") == "SELECT A, B FROM T"

    @pytest.mark.parametrize(
        "sql,expected",
        [
            ("insert into t values (1)", True),
            ("  -- c\nUPDATE t SET a = 1", True),
            ("MERGE t USING s ON 1 = 1", True),
            ("SELECT 1", False),
            ("DELETED_ROWS", False),
        ],
    )
    def test_is_write_operation(self, sql, expected):
        """Only a leading data-modification keyword counts."""
        assert is_write_operation(sql) is expected

    @pytest.mark.parametrize(
        "sql,expected",
        [
            ("select 1", "SELECT"),
            ("WITH a AS (SELECT 1) SELECT * FROM a", "CTE"),
            ("SET SHOWPLAN_XML ON", "SHOWPLAN"),
            ("", "EMPTY"),
            ("delete from t", "DELETE"),
        ],
    )
    def test_get_query_type(self, sql, expected):
        """The leading keyword decides the query type."""
        assert get_query_type(sql) == expected
