"""Common literal values used across dory_site.

These constants keep filenames, markers, and exclusion rules centralized so
the stager, generators, and tests import the same values without drifting.
Intended for internal use within the dory_site package.

Examples
--------
>>> from dory_site import _constants
>>> _constants.CONFIG_FILENAME
'dory.json'
>>> _constants.CONTENT_SUFFIX
'.mdx'
"""

CONFIG_FILENAME = "dory.json"
SETTINGS_FILENAME = "dory.toml"
CONTENT_SUFFIX = ".mdx"
FRONTMATTER_DELIMITER = "---"

FRONTMATTER_JSON = "frontmatter.json"
SEARCH_CONTENT_JSON = "search-content.json"
LLM_TEXT = "llms.txt"
SITEMAP_XML = "sitemap.xml"
ROBOTS_TXT = "robots.txt"
INDEX_HTML = "index.html"

DEFAULT_STAGING_DIR = "docs"
DEFAULT_BACKUP_DIR = ".docs.dory-backup"
DEFAULT_OUTPUT_DIR = "dist"
DEFAULT_SSR_BUNDLE = "dist-ssr/entry_server.py"
DEFAULT_COMPILE_COMMAND = "npm run build"
STAGING_MARKER = ".dory-staging"
# Sibling of the backup dir; present only while the backup is verified and unrestored.
BACKUP_COMPLETE_SUFFIX = ".complete"

# Skipped only when they sit directly under the project root.
EXCLUDED_TOP_LEVEL = (
    "dist",
    "dist-ssr",
    "pnpm-lock.yaml",
    "package-lock.json",
    "yarn.lock",
    "bun.lockb",
    "uv.lock",
    "poetry.lock",
    ".env",
    ".env.*",
)
# Skipped at any depth.
EXCLUDED_ANYWHERE = (
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "__pycache__",
    ".venv",
    ".pytest_cache",
)

APP_MOUNT = '<div id="app"></div>'
NOSCRIPT_REQUIRED = "<noscript>You need to enable JavaScript to run this app.</noscript>"
NOSCRIPT_ENHANCED = (
    "<noscript>JavaScript enhances this page with interactive features.</noscript>"
)
