def quote_identifier(name: str) -> str:
    """Quote a T-SQL identifier with brackets, doubling any closing bracket."""
    return "[" + str(name).replace("]", "]]") + "]"


def quote_table_name(schema: str, table: str) -> str:
    """Return a bracket-quoted two-part ``[schema].[table]`` name."""
    return f"{quote_identifier(schema)}.{quote_identifier(table)}"
