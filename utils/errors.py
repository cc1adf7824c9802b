"""
Typed Exception Classes for Alpha Finders Bot

This module provides specific exception types so callers can tell
chain failures, bad configuration and user-workflow conflicts apart.
"""


class AlphaFindersError(Exception):
    """Root of all bot-specific errors"""
    pass


# ============================================================================
# Network Exceptions
# ============================================================================

class NetworkError(AlphaFindersError):
    """Base exception for network-related errors"""
    pass


class RPCError(NetworkError):
    """RPC endpoint failures"""
    pass


# ============================================================================
# Configuration Exceptions
# ============================================================================

class ConfigurationError(AlphaFindersError):
    """Configuration validation errors"""
    pass


# ============================================================================
# Session Exceptions
# ============================================================================

class OperationCancelled(AlphaFindersError):
    """The user stopped the running operation"""
    pass


class OperationInProgress(AlphaFindersError):
    """Another operation is already running for this user"""

    def __init__(self, operation: str):
        super().__init__(f"Operation already in progress: {operation}")
        self.operation = operation
