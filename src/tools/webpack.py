from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass

from ..orchestrator.config import BuildConfig
from ..orchestrator.errors import ToolError
from ..orchestrator.logging import tool_logger


logger = tool_logger("webpack")


@dataclass
class BundleReport:
    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_bundler(config: BuildConfig) -> BundleReport:
    """Run the bundler command and capture its stats output.

    NODE_ENV is forwarded so the webpack config builds in the same mode.
    """
    cmd = list(config.bundle_command)
    env = dict(os.environ, NODE_ENV=config.mode)
    logger.info("Running: %s", " ".join(cmd))
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, env=env, check=False)
    except FileNotFoundError:
        raise ToolError("webpack", f"executable not found: {cmd[0]}") from None
    output = "\n".join(s for s in (proc.stdout, proc.stderr) if s and s.strip())
    return BundleReport(returncode=proc.returncode, output=output)
