"""RealFaviconGenerator client and favicon markup injection.

Generation posts a master picture plus design/settings to the non-interactive
API (https://realfavicongenerator.net/api/non_interactive_api), downloads the
resulting icon package, and keeps the `favicon_generation_result` as the
manifest. The manifest carries the favicon format `version` (used by the update
check) and `favicon.html_code` (injected into the generated pages).
"""

from __future__ import annotations

import base64
import io
import json
import zipfile
from pathlib import Path
from typing import Any, Mapping, Optional

import requests
from bs4 import BeautifulSoup, Doctype, NavigableString

from ..orchestrator.config import FaviconSettings
from ..orchestrator.errors import ConfigurationError, ToolError
from ..orchestrator.logging import tool_logger
from ..orchestrator.utils import _get


logger = tool_logger("realfavicon")

TOOL = "realfavicon"

# Head elements the generated markup supersedes; anything matching the
# `keep` selector survives.
FAVICON_SELECTORS = (
    'link[rel="shortcut icon"]',
    'link[rel="icon"]',
    'link[rel^="apple-touch-icon"]',
    'link[rel="apple-touch-startup-image"]',
    'link[rel="manifest"]',
    'link[rel="mask-icon"]',
    'link[rel="yandex-tableau-widget"]',
    'meta[name^="msapplication"]',
    'meta[name="mobile-web-app-capable"]',
    'meta[name="apple-mobile-web-app-title"]',
    'meta[name="application-name"]',
    'meta[name="theme-color"]',
    'meta[property="og:image"]',
)


def _inline_picture(path: Path) -> dict:
    try:
        data = Path(path).read_bytes()
    except FileNotFoundError:
        raise ConfigurationError(f"Favicon master picture not found: {path}") from None
    return {"type": "inline", "content": base64.b64encode(data).decode("ascii")}


def build_generation_request(favicon: FaviconSettings) -> dict:
    """Build the `favicon_generation` request body.

    A per-platform `master_picture` given as a path is inlined the same way
    as the main master picture.
    """
    design: dict[str, Any] = {}
    for platform, options in (favicon.design or {}).items():
        options = dict(options or {})
        picture = options.get("master_picture")
        if isinstance(picture, str):
            options["master_picture"] = _inline_picture(Path(picture))
        design[platform] = options
    body = {
        "api_key": favicon.api_key,
        "master_picture": _inline_picture(favicon.master_picture),
        "files_location": {"type": "path", "path": favicon.icons_path},
        "favicon_design": design,
        "settings": dict(favicon.settings or {}),
    }
    if favicon.versioning:
        body["versioning"] = dict(favicon.versioning)
    return {"favicon_generation": body}


class RealFaviconClient:
    def __init__(
        self,
        api_url: str,
        timeout: float = 60.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise ToolError(TOOL, f"{method} {url} failed: {e}") from e

    def generate(self, request: Mapping[str, Any]) -> dict:
        logger.info("Requesting favicon generation from %s", self.api_url)
        resp = self._request("POST", f"{self.api_url}/favicon", json=request)
        try:
            body = resp.json()
        except ValueError:
            raise ToolError(
                TOOL, f"HTTP {resp.status_code}: unexpected response {resp.text[:200]!r}"
            ) from None
        result = body.get("favicon_generation_result") or {}
        if resp.status_code >= 400 or _get(result, "result", "status") != "success":
            message = _get(result, "result", "error_message", default=f"HTTP {resp.status_code}")
            raise ToolError(TOOL, f"generation failed: {message}")
        return result

    def download_package(self, url: str, dest: Path) -> list[Path]:
        """Download the icon zip and extract it into `dest`."""
        resp = self._request("GET", url)
        if resp.status_code >= 400:
            raise ToolError(TOOL, f"package download failed: HTTP {resp.status_code}")
        logger.info("Extracting favicon package %s into %s", url, dest)
        dest = Path(dest)
        dest.mkdir(parents=True, exist_ok=True)
        root = dest.resolve()
        written: list[Path] = []
        try:
            with zipfile.ZipFile(io.BytesIO(resp.content)) as zf:
                for member in zf.infolist():
                    if member.is_dir():
                        continue
                    target = (dest / member.filename).resolve()
                    if root not in target.parents:
                        raise ToolError(TOOL, f"refusing to extract {member.filename!r}")
                    target.parent.mkdir(parents=True, exist_ok=True)
                    target.write_bytes(zf.read(member))
                    written.append(target)
        except zipfile.BadZipFile as e:
            raise ToolError(TOOL, f"package is not a zip archive: {e}") from e
        return written

    def check_for_updates(self, version: str) -> list[dict]:
        """Return the favicon format changes released since `version`."""
        logger.info("Checking favicon format updates since %s", version)
        resp = self._request("GET", f"{self.api_url}/versions", params={"since": version})
        if resp.status_code >= 400:
            raise ToolError(TOOL, f"update check failed: HTTP {resp.status_code}")
        try:
            changes = resp.json()
        except ValueError:
            raise ToolError(TOOL, "update check returned a non-JSON body") from None
        return list(changes or [])


def write_manifest(path: Path, data: Mapping[str, Any]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def read_manifest(path: Path) -> dict:
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ConfigurationError(
            f"Favicon manifest not found: {path} (run generate-favicon first)"
        ) from None
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Favicon manifest {path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Favicon manifest {path} must be a JSON object")
    return data


def manifest_version(data: Mapping[str, Any]) -> str:
    version = data.get("version")
    if not version:
        raise ConfigurationError("Favicon manifest has no version")
    return str(version)


def manifest_markup(data: Mapping[str, Any]) -> str:
    markup = _get(dict(data), "favicon", "html_code")
    if not markup:
        raise ConfigurationError("Favicon manifest has no favicon.html_code")
    return markup


def inject_favicon_markups(html: str, markup: str, keep: Optional[str] = None) -> str:
    """Replace favicon-related head elements of `html` with `markup`.

    Elements matching `keep` (a CSS selector) are left untouched. Running it
    again on its own output gives the same document. The first pass may
    normalize the page: character references such as `&nbsp;` come out as
    plain characters and the doctype is followed by a single newline.
    """
    soup = BeautifulSoup(html, "html.parser")
    for doctype in [n for n in soup.contents if isinstance(n, Doctype)]:
        after = doctype.next_sibling
        # Doctype serializes with its own trailing newline
        if type(after) is NavigableString and not after.strip():
            after.extract()
    head = soup.head
    if head is None:
        head = soup.new_tag("head")
        if soup.html is not None:
            soup.html.insert(0, head)
        else:
            soup.insert(0, head)

    kept = {id(el) for el in head.select(keep)} if keep else set()
    for el in head.select(", ".join(FAVICON_SELECTORS)):
        if id(el) not in kept:
            el.decompose()

    fragment = BeautifulSoup(markup, "html.parser")
    for node in list(fragment.contents):
        if isinstance(node, str) and not node.strip():
            continue
        head.append(node.extract())
    return str(soup)
