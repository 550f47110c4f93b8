"""Full one-shot site build."""

from ..orchestrator import series
from .bundle import bundle
from .clean import clean
from .copy import copy_configs, copy_images
from .favicon import generate_favicon, inject_favicon
from .hugo import site_build


build = series(
    "build",
    clean,
    generate_favicon,
    bundle,
    site_build,
    copy_images,
    copy_configs,
    inject_favicon,
)
