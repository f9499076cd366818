"""
Constants and default values for the Rivet framework
"""

# Directory names
APP_DIR_NAME = "app"
API_DIR_NAME = "api"
PUBLIC_DIR = "public"

# File names
PAGE_FILES = ("page.tsx", "page.jsx", "page.ts", "page.js")
NOT_FOUND_FILES = ("_not-found.tsx", "_not-found.jsx")
ERROR_FILES = ("_error.tsx", "_error.jsx")
ROUTE_FILE = "route.py"
LOADER_FILE = "loader.py"
LAYOUT_LOADER_FILE = "layout_loader.py"
INIT_FILE = "init.py"
SKIPPED_DIRS = {"__pycache__", "node_modules"}

# Route segment syntax
DYNAMIC_SEGMENT_PATTERN = r"^\[([^\[\]/.][^\[\]/]*)\]$"
CATCH_ALL_SEGMENT_PATTERN = r"^\[\.\.\.([^\[\]/]+)\]$"
ROUTE_GROUP_PATTERN = r"^\(([^)]+)\)$"

# Module export names
HTTP_METHODS = ("get", "post", "put", "patch", "delete", "options", "head")
HANDLER_EXPORT = "handler"
LOADER_EXPORT = "get_server_side_props"
PAGE_MIDDLEWARES_EXPORT = "before_server_data"
API_MIDDLEWARES_EXPORT = "before_api"
METHOD_MIDDLEWARES_PREFIX = "before_"
INIT_EXPORT = "init"

# Data requests
DATA_REQUEST_QUERY_PARAM = "__rivet_data"
DATA_REQUEST_HEADER = "x-rivet-data"

# Defaults for RIVET_* environment variables
DEFAULT_HOST = "localhost"
DEFAULT_PORT = "3000"
DEFAULT_DEV = "0"

# Document defaults
DEFAULT_TITLE = "Rivet App"
DEFAULT_DESCRIPTION = ""
INITIAL_DATA_SCRIPT_ID = "__RIVET_DATA__"
HOT_RELOAD_PATH = "/_rivet/hot-reload"

# Logging format
LOG_FORMAT = "[rivet] %(levelname)s: %(message)s"
