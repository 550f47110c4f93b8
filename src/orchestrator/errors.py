from __future__ import annotations


class OrchestratorError(Exception):
    """Base class for errors raised by the orchestrator."""


class ConfigurationError(OrchestratorError):
    """Bad task wiring or missing prerequisite state (unknown task, no manifest, ...)."""


class ToolError(OrchestratorError):
    """An external tool (hugo, webpack, favicon API) reported a failure."""

    def __init__(self, tool: str, detail: str):
        super().__init__(f"[{tool}] {detail}")
        self.tool = tool
        self.detail = detail


class UpdateCheckError(OrchestratorError):
    """The favicon update check failed or found pending updates."""
