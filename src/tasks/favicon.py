"""Favicon tasks backed by RealFaviconGenerator.

- generate-favicon: build every icon asset from the master picture and write
  the manifest (`favicon.markup_file`).
- check-favicon-update: ask the service whether platforms changed their icon
  requirements since the manifest's version. Device, platform and browser
  requirements move from time to time, so run this before releases.
- inject-favicon: put the manifest's HTML markup into the generated pages.
"""

from __future__ import annotations

from ..orchestrator import task
from ..orchestrator.config import BuildConfig
from ..orchestrator.errors import ToolError, UpdateCheckError
from ..orchestrator.logging import get_logger
from ..orchestrator.utils import _get
from ..tools.realfavicon import (
    RealFaviconClient,
    build_generation_request,
    inject_favicon_markups,
    manifest_markup,
    manifest_version,
    read_manifest,
    write_manifest,
)


logger = get_logger("tasks.favicon")


def _client(cfg: BuildConfig) -> RealFaviconClient:
    return RealFaviconClient(cfg.favicon.api_url, timeout=cfg.favicon.timeout)


@task(name="generate-favicon")
def generate_favicon(ctx):
    """Generate favicons and icon assets from the master picture."""
    cfg = ctx.config
    fav = cfg.favicon
    if not fav.api_key:
        raise ToolError("realfavicon", "no API key configured (set REALFAVICON_API_KEY)")
    request = build_generation_request(fav)
    client = _client(cfg)
    result = client.generate(request)
    package_url = _get(result, "favicon", "package_url")
    if not package_url:
        raise ToolError("realfavicon", "generation result has no package_url")
    files = client.download_package(package_url, cfg.output_dir)
    write_manifest(fav.markup_file, result)
    logger.info(
        "Generated %d favicon file(s), manifest %s (version %s)",
        len(files),
        fav.markup_file,
        result.get("version"),
    )


@task(name="check-favicon-update")
def check_favicon_update(ctx):
    """Fail if RealFaviconGenerator has favicon format updates since our manifest."""
    cfg = ctx.config
    version = manifest_version(read_manifest(cfg.favicon.markup_file))
    try:
        changes = _client(cfg).check_for_updates(version)
    except ToolError as e:
        raise UpdateCheckError(f"Favicon update check failed: {e}") from e
    if changes:
        notes = "; ".join(
            f"{c.get('version', '?')}: {c.get('change_log') or c.get('relevance') or ''}".strip()
            for c in changes
        )
        raise UpdateCheckError(
            f"A new version is available for your favicons ({len(changes)} change(s)): {notes}"
        )
    logger.info("Favicons are up to date (version %s)", version)


@task(name="inject-favicon")
def inject_favicon(ctx):
    """Inject the favicon markup into the generated HTML pages."""
    cfg = ctx.config
    if generate_favicon.name in ctx.tolerated and not cfg.favicon.markup_file.exists():
        raise ToolError(
            "realfavicon",
            f"no favicon manifest ({cfg.favicon.markup_file}) since generate-favicon failed; "
            "pages left without favicon markup",
        )
    markup = manifest_markup(read_manifest(cfg.favicon.markup_file))
    pages = sorted(cfg.output_dir.glob(cfg.favicon.html_glob))
    for page in pages:
        html = page.read_text(encoding="utf-8")
        page.write_text(
            inject_favicon_markups(html, markup, keep=cfg.favicon.keep),
            encoding="utf-8",
        )
    logger.info("Injected favicon markup into %d page(s)", len(pages))
