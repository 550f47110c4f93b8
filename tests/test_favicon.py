import base64
import json

import pytest
from bs4 import BeautifulSoup

from src.orchestrator import Pipeline, series
from src.orchestrator.errors import ConfigurationError, UpdateCheckError
from src.tasks.favicon import check_favicon_update, generate_favicon, inject_favicon
from src.tools.realfavicon import (
    build_generation_request,
    inject_favicon_markups,
    manifest_version,
    read_manifest,
    write_manifest,
)

from .helpers import FAVICON_MARKUP, favicon_result, package_zip


API = "https://rfg.test/api"


def _pipeline():
    return Pipeline([generate_favicon, check_favicon_update, inject_favicon])


def test_generation_request_inlines_pictures(project, make_config):
    (project / "frontend" / "images" / "ios.png").write_bytes(b"ios")
    cfg = make_config(
        {"favicon": {"design": {"ios": {"master_picture": "frontend/images/ios.png", "app_name": "X"}}}}
    )
    body = build_generation_request(cfg.favicon)["favicon_generation"]
    assert body["api_key"] == "test-key"
    assert body["master_picture"] == {
        "type": "inline",
        "content": base64.b64encode(b"\x89PNG master").decode("ascii"),
    }
    assert body["favicon_design"]["ios"]["master_picture"]["content"] == base64.b64encode(b"ios").decode("ascii")
    assert body["files_location"] == {"type": "path", "path": "/"}
    assert body["versioning"] == {"param_name": "v", "param_value": "abc123"}


def test_missing_master_picture_is_a_configuration_error(project, make_config):
    cfg = make_config({"favicon": {"master_picture": "nope.png"}})
    with pytest.raises(ConfigurationError, match="master picture not found"):
        build_generation_request(cfg.favicon)


def test_generate_writes_assets_and_manifest(project, make_config, requests_mock):
    requests_mock.post(f"{API}/favicon", json={"favicon_generation_result": favicon_result("0.16")})
    requests_mock.get("https://rfg.test/files/package.zip", content=package_zip())

    _pipeline().run("generate-favicon", make_config())

    assert (project / "dist" / "favicon.ico").read_text() == "content of favicon.ico"
    assert (project / "dist" / "site.webmanifest").exists()
    manifest = json.loads((project / "favicondata.json").read_text(encoding="utf-8"))
    assert manifest["version"] == "0.16"
    assert manifest["favicon"]["html_code"] == FAVICON_MARKUP
    sent = requests_mock.request_history[0].json()["favicon_generation"]
    assert sent["api_key"] == "test-key"


def test_generate_failure_is_a_tool_warning_in_development(project, make_config, requests_mock):
    requests_mock.post(
        f"{API}/favicon",
        status_code=400,
        json={"favicon_generation_result": {"result": {"status": "error", "error_message": "bad key"}}},
    )
    result = _pipeline().run("generate-favicon", make_config())
    assert result.status == "warned"
    assert "bad key" in result.warnings[0]
    assert not (project / "favicondata.json").exists()


def test_generate_without_api_key(project, make_config):
    cfg = make_config({"favicon": {"api_key": ""}})
    result = _pipeline().run("generate-favicon", cfg)
    assert "REALFAVICON_API_KEY" in result.warnings[0]


def test_manifest_version_round_trip(tmp_path):
    path = tmp_path / "favicondata.json"
    write_manifest(path, favicon_result("0.17"))
    assert manifest_version(read_manifest(path)) == "0.17"


def test_missing_manifest_is_a_configuration_error(project, make_config):
    with pytest.raises(ConfigurationError, match="run generate-favicon first"):
        _pipeline().run("inject-favicon", make_config())
    with pytest.raises(ConfigurationError, match="run generate-favicon first"):
        _pipeline().run("check-favicon-update", make_config())


def test_update_check_passes_when_current(project, make_config, requests_mock):
    write_manifest(project / "favicondata.json", favicon_result("0.16"))
    requests_mock.get(f"{API}/versions", json=[])
    _pipeline().run("check-favicon-update", make_config())
    assert requests_mock.last_request.qs == {"since": ["0.16"]}


def test_update_check_fails_when_updates_exist(project, make_config, requests_mock):
    write_manifest(project / "favicondata.json", favicon_result("0.16"))
    requests_mock.get(f"{API}/versions", json=[{"version": "0.17", "change_log": "New Android icons"}])
    with pytest.raises(UpdateCheckError, match="0.17: New Android icons"):
        _pipeline().run("check-favicon-update", make_config())


def test_update_check_failure_is_always_raised(project, make_config, requests_mock):
    write_manifest(project / "favicondata.json", favicon_result("0.16"))
    requests_mock.get(f"{API}/versions", status_code=503)
    with pytest.raises(UpdateCheckError, match="HTTP 503"):
        _pipeline().run("check-favicon-update", make_config({"build": {"tool_errors": "warn"}}))


PAGE = """<!DOCTYPE html>
<html>
<head>
<title>Home</title>
<meta property="og:image" content="/share.png">
<link rel="icon" href="/old-favicon.ico">
</head>
<body><p>hi</p></body>
</html>
"""


def _count(html, selector):
    return len(BeautifulSoup(html, "html.parser").select(selector))


def test_inject_keeps_preserved_meta_and_replaces_old_icons():
    html = inject_favicon_markups(PAGE, FAVICON_MARKUP, keep='meta[property="og:image"]')
    assert _count(html, 'head meta[property="og:image"]') == 1
    assert _count(html, 'head link[rel="icon"]') == 1
    assert _count(html, 'link[href="/old-favicon.ico"]') == 0
    assert _count(html, 'head link[rel="apple-touch-icon"]') == 1
    assert _count(html, 'head meta[name="theme-color"]') == 1
    assert "<p>hi</p>" in html


def test_inject_twice_does_not_duplicate():
    once = inject_favicon_markups(PAGE, FAVICON_MARKUP, keep='meta[property="og:image"]')
    twice = inject_favicon_markups(once, FAVICON_MARKUP, keep='meta[property="og:image"]')
    assert twice == once


def test_inject_is_stable_on_minified_pages():
    page = '<!DOCTYPE html><html><head><title>x</title></head><body>a&nbsp;b</body></html>'
    once = inject_favicon_markups(page, FAVICON_MARKUP)
    twice = inject_favicon_markups(once, FAVICON_MARKUP)
    assert twice == once
    assert inject_favicon_markups(twice, FAVICON_MARKUP) == once
    assert once.startswith("<!DOCTYPE html>\n<html>")
    assert _count(twice, 'head link[rel="manifest"]') == 1


def test_inject_without_keep_drops_og_image():
    html = inject_favicon_markups(PAGE, FAVICON_MARKUP)
    assert _count(html, 'meta[property="og:image"]') == 0


def test_inject_adds_head_when_missing():
    html = inject_favicon_markups("<html><body>x</body></html>", FAVICON_MARKUP)
    assert _count(html, 'html > head > link[rel="manifest"]') == 1


def test_inject_task_rewrites_every_page(project, make_config):
    write_manifest(project / "favicondata.json", favicon_result())
    dist = project / "dist"
    (dist / "about").mkdir(parents=True)
    (dist / "index.html").write_text(PAGE, encoding="utf-8")
    (dist / "about" / "index.html").write_text("<html><head></head><body></body></html>", encoding="utf-8")
    (dist / "app.js").write_text("//", encoding="utf-8")

    _pipeline().run("inject-favicon", make_config())

    for page in (dist / "index.html", dist / "about" / "index.html"):
        assert _count(page.read_text(encoding="utf-8"), 'link[rel="manifest"]') == 1
    assert (dist / "app.js").read_text(encoding="utf-8") == "//"


def test_inject_after_tolerated_generation_failure_warns(project, make_config):
    (project / "dist").mkdir()
    (project / "dist" / "index.html").write_text(PAGE, encoding="utf-8")
    cfg = make_config({"favicon": {"api_key": ""}})
    chain = series("favicons", generate_favicon, inject_favicon)
    result = Pipeline([generate_favicon, inject_favicon, chain]).run("favicons", cfg)
    assert result.status == "warned"
    assert len(result.warnings) == 2
    assert "since generate-favicon failed" in result.warnings[1]
    assert (project / "dist" / "index.html").read_text(encoding="utf-8") == PAGE
