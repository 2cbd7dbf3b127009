"""Load the site configuration and build settings for dory builds.

``dory.json`` supplies the site name, public URL, default metadata, and the
navigation manifest whose flattened order drives page sequencing. Build
settings (where to stage, which compile command to run, where output lands)
resolve from CLI arguments, ``DORY_*`` environment variables, and an optional
``dory.toml`` file.

Examples
--------
>>> from pathlib import Path
>>> from dory_site.config import load_site_config
>>> site = load_site_config(Path("dory.json"))  # doctest: +SKIP
>>> site.navigation_order  # doctest: +SKIP
['introduction', 'guide/setup']
"""

from .loader import load_build_settings, load_site_config
from .models import BuildSettings, SiteConfig, SiteConfigError
from .navigation import flatten_navigation, read_navigation_order

__all__ = [
    "BuildSettings",
    "SiteConfig",
    "SiteConfigError",
    "flatten_navigation",
    "load_build_settings",
    "load_site_config",
    "read_navigation_order",
]
