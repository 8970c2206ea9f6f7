# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Chat Assistant - conversational orchestration engine for chat platforms."""

__version__ = "0.1.0"
