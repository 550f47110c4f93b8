"""Wrappers around the external collaborators of the build.

Each module drives one tool (Hugo, webpack, RealFaviconGenerator) and reports
failures as `ToolError` tagged with the tool name. Tasks decide nothing about
fatality; the runner applies the configured policy.
"""
