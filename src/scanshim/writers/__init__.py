# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Output writers for analysis properties."""

from scanshim.writers.engine_input import ScannerEngineInput, read_engine_input
from scanshim.writers.multi_value import (
    LegacyMultiValueEncoding,
    MultiValueEncoding,
    QuotedMultiValueEncoding,
    join_csv,
    select_encoding,
    split_csv,
)
from scanshim.writers.properties_writer import (
    PropertiesWriter,
    WriterClosedError,
    escape,
    read_properties,
)

__all__ = [
    "LegacyMultiValueEncoding",
    "MultiValueEncoding",
    "PropertiesWriter",
    "QuotedMultiValueEncoding",
    "ScannerEngineInput",
    "WriterClosedError",
    "escape",
    "join_csv",
    "read_engine_input",
    "read_properties",
    "select_encoding",
    "split_csv",
]
