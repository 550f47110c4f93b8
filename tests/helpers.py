"""Canned RealFaviconGenerator payloads for tests."""

import io
import zipfile


FAVICON_MARKUP = (
    '<link rel="apple-touch-icon" sizes="180x180" href="/apple-touch-icon.png?v=abc123">\n'
    '<link rel="icon" type="image/png" sizes="32x32" href="/favicon-32x32.png?v=abc123">\n'
    '<link rel="manifest" href="/site.webmanifest?v=abc123">\n'
    '<meta name="theme-color" content="#ffffff">'
)


def favicon_result(version="0.16", package_url="https://rfg.test/files/package.zip"):
    return {
        "result": {"status": "success"},
        "version": version,
        "favicon": {
            "package_url": package_url,
            "html_code": FAVICON_MARKUP,
            "files_in_root": True,
        },
        "files_location": {"type": "path", "path": "/"},
    }


def package_zip(names=("favicon.ico", "site.webmanifest", "apple-touch-icon.png")) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name in names:
            zf.writestr(name, f"content of {name}")
    return buf.getvalue()
