"""
Rivet error hierarchy
"""

from pathlib import Path
from typing import Any, Optional


class RivetError(Exception):
    """Base error for all Rivet operations."""


class ConfigError(RivetError):
    """Invalid or missing configuration."""


class InvalidRouteDefinition(RivetError):
    """A discovered route has a malformed pattern."""

    def __init__(self, source: Path, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid route {source}: {reason}")


class RouteModuleError(RivetError):
    """A route or loader module could not be imported."""

    def __init__(self, module_path: Path, message: str):
        self.module_path = module_path
        super().__init__(f"Failed to load module {module_path}: {message}")


class HandlerContractViolation(RivetError):
    """A handler or loader returned a value outside its contract."""

    def __init__(self, route: Any, value: Any, expected: str):
        self.route = route
        self.value = value
        super().__init__(
            f"Route {getattr(route, 'pathname', route)} returned "
            f"{type(value).__name__}, expected {expected}"
        )


class HandlerExecutionError(RivetError):
    """A handler or loader raised; the original exception is ``__cause__``."""

    def __init__(self, route: Any, message: Optional[str] = None):
        self.route = route
        super().__init__(
            message or f"Error while executing {getattr(route, 'pathname', route)}"
        )


class InitHookError(RivetError):
    """The application's ``init`` hook failed during startup."""
