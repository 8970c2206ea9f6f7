# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Function-calling schemas exposed to the model."""
from .tool_schema import ALL_TOOL_SCHEMAS, TOOL_SCHEMA_MAP

__all__ = ["ALL_TOOL_SCHEMAS", "TOOL_SCHEMA_MAP"]
