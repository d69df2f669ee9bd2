"""Configuration settings for the federal spending flow project."""

from pathlib import Path
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Base paths
PROJECT_ROOT = Path(__file__).parent.parent
OUTPUTS_DIR = PROJECT_ROOT / "outputs"
EXPORTS_DIR = OUTPUTS_DIR / "exports"

# USAspending API
API_ENDPOINT = os.getenv("SPENDING_API_ENDPOINT", "https://api.usaspending.gov/api/v2/spending/")
FISCAL_YEAR = os.getenv("SPENDING_FISCAL_YEAR", "2019")

# Seconds; unset means requests never time out
_timeout = os.getenv("SPENDING_HTTP_TIMEOUT")
HTTP_TIMEOUT = float(_timeout) if _timeout else None

# Category types, in layer order
CATEGORY_TYPES = ("object_class", "budget_function", "agency")

# Agencies beyond this rank are merged into "Other"
AGENCY_CUTOFF = int(os.getenv("SPENDING_AGENCY_CUTOFF", "18"))
OTHER_LABEL = "Other"

# Rendered SVG lands in the working directory
OUTPUT_SVG = Path(os.getenv("SPENDING_OUTPUT_SVG", "graph.svg"))

# Canvas geometry (pixels)
CANVAS = {
    "width": 2560,
    "height": 1440,
    "padding": 5,           # Margin around the layout extent
    "node_width": 25,       # Node thickness
    "node_padding": 15,     # Gap between packed nodes before justification
}

# Ribbon colours, one per object class (cycled)
PALETTE = [
    "#4285f4",
    "#db4437",
    "#f4b400",
    "#0f9d58",
    "#ff6d00",
    "#ab30c4",
]

RIBBON_ALPHA = 0xA0 / 0xFF
