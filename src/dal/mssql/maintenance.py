"""Index and statistics maintenance suggestions.

These helpers only build suggestion text for the analysis tools; nothing
here is executed. Keeping the DDL out of the catalog queries lets those
queries pass the read-only gate.
"""

from typing import Optional

from dal.mssql.quoting import quote_identifier, quote_table_name

REORGANIZE_THRESHOLD = 10.0
REBUILD_THRESHOLD = 30.0
STALE_MODIFIED_PERCENT = 20.0
STATISTICS_AGE_DAYS = 30

HIGH_PRIORITY_MEASURE = 100000
MEDIUM_PRIORITY_MEASURE = 10000


def drop_index_statement(schema: str, table: str, index_name: str) -> str:
    """Return ``DROP INDEX`` text for an index."""
    return f"DROP INDEX {quote_identifier(index_name)} ON {quote_table_name(schema, table)}"


def fragmentation_recommendation(fragmentation_percent: Optional[float]) -> str:
    """Classify fragmentation as OK, REORGANIZE or REBUILD."""
    value = float(fragmentation_percent or 0)
    if value < REORGANIZE_THRESHOLD:
        return "OK"
    if value < REBUILD_THRESHOLD:
        return "REORGANIZE"
    return "REBUILD"


def index_maintenance_statement(
    schema: str, table: str, index_name: str, fragmentation_percent: Optional[float]
) -> Optional[str]:
    """Return ``ALTER INDEX`` text matching the fragmentation level, or None."""
    action = fragmentation_recommendation(fragmentation_percent)
    target = f"ALTER INDEX {quote_identifier(index_name)} ON {quote_table_name(schema, table)}"
    if action == "REBUILD":
        return f"{target} REBUILD WITH (ONLINE = ON)"
    if action == "REORGANIZE":
        return f"{target} REORGANIZE"
    return None


def update_statistics_statement(
    schema: str, table: str, statistics_name: str, percent_modified: Optional[float]
) -> Optional[str]:
    """Return ``UPDATE STATISTICS ... WITH FULLSCAN`` when statistics are stale."""
    if percent_modified is None or float(percent_modified) <= STALE_MODIFIED_PERCENT:
        return None
    return (
        f"UPDATE STATISTICS {quote_table_name(schema, table)} "
        f"{quote_identifier(statistics_name)} WITH FULLSCAN"
    )


def statistics_status(
    total_rows: Optional[int],
    percent_modified: Optional[float],
    days_since_update: Optional[int],
) -> str:
    """Classify a statistics object as EMPTY TABLE, STALE, OLD or OK."""
    if total_rows == 0:
        return "EMPTY TABLE"
    if percent_modified is not None and float(percent_modified) > STALE_MODIFIED_PERCENT:
        return "STALE - Update recommended"
    if days_since_update is not None and days_since_update > STATISTICS_AGE_DAYS:
        return "OLD - Consider update"
    return "OK"


def _name_fragment(columns: str) -> str:
    return columns.replace(", ", "_").replace("[", "").replace("]", "")


def create_index_statement(
    schema: str,
    table: str,
    equality_columns: Optional[str],
    inequality_columns: Optional[str],
    included_columns: Optional[str],
) -> str:
    """Return ``CREATE NONCLUSTERED INDEX`` text for a missing-index suggestion.

    Column lists are passed through as reported by the missing-index DMVs,
    which already bracket-quote each column.
    """
    name = f"IX_{table}_{_name_fragment(equality_columns or '')}"
    if inequality_columns:
        name += f"_{_name_fragment(inequality_columns)}"

    key_columns = ", ".join(col for col in (equality_columns, inequality_columns) if col)
    statement = (
        f"CREATE NONCLUSTERED INDEX {quote_identifier(name)} "
        f"ON {quote_table_name(schema, table)} ({key_columns})"
    )
    if included_columns:
        statement += f" INCLUDE ({included_columns})"
    return statement


def suggestion_priority(improvement_measure: Optional[float]) -> str:
    """Rank a missing-index suggestion by its improvement measure."""
    measure = float(improvement_measure or 0)
    if measure > HIGH_PRIORITY_MEASURE:
        return "HIGH PRIORITY - Significant performance improvement expected"
    if measure > MEDIUM_PRIORITY_MEASURE:
        return "MEDIUM PRIORITY - Moderate performance improvement expected"
    return "LOW PRIORITY - Minor performance improvement expected"


def duplicate_index_recommendation(duplicate_type: str, second_index_name: str) -> str:
    """Return the consolidation advice for a duplicate index pair."""
    if duplicate_type == "EXACT DUPLICATE":
        return (
            "Consider dropping one of these indexes. "
            f"Suggested: DROP INDEX {quote_identifier(second_index_name)}"
        )
    if duplicate_type == "SAME KEY COLUMNS":
        return "Consider consolidating these indexes if possible"
    if duplicate_type.startswith("SUBSET"):
        return "The larger index may cover queries for the smaller one"
    return "Review if both indexes are necessary"
