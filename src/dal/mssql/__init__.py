"""SQL Server-specific DAL components."""

from .binding import BindType, bind_type, bind_values, coerce_bind_value
from .param_translation import translate_named_params_to_odbc
from .quoting import quote_identifier, quote_table_name
from .statements import Statement, build_delete, build_insert, build_update

__all__ = [
    "BindType",
    "Statement",
    "bind_type",
    "bind_values",
    "build_delete",
    "build_insert",
    "build_update",
    "coerce_bind_value",
    "quote_identifier",
    "quote_table_name",
    "translate_named_params_to_odbc",
]
