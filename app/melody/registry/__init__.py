"""Registry access through reg.exe.

This module exports key normalization, the reg.exe wrappers and the
``reg query`` output parser.
"""

from melody.registry.keys import HIVES, RegistryError, normalize_key
from melody.registry.query import RegistryValue, parse_query_output, values_to_dict
from melody.registry.reg import (
    export_key,
    import_file,
    is_available,
    key_exists,
    query_key,
)

__all__ = [
    "HIVES",
    "RegistryError",
    "RegistryValue",
    "export_key",
    "import_file",
    "is_available",
    "key_exists",
    "normalize_key",
    "parse_query_output",
    "query_key",
    "values_to_dict",
]
