# -*- coding: utf-8 -*-
"""
Exception types raised by the flow builder.
"""

class FlowBuilderError(Exception):
    """Base class for all flow builder errors."""
    pass

class UnknownBlockTypeError(FlowBuilderError, KeyError):
    """Raised when a block type key is not present in the registry."""
    pass

class StorageError(FlowBuilderError):
    """Raised when the persistence sink cannot be read or written."""
    pass
