#file: backend/utils.py

import re
from datetime import datetime, date
import pytz
from typing import List, Optional

# Runs of characters that are not safe in a quoted Content-Disposition filename
UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

def get_current_time() -> str:
    """Get current UTC time as a formatted string."""
    return datetime.now(pytz.utc).isoformat()

def get_current_date() -> date:
    """Get current UTC date, used to stamp exported files."""
    return datetime.now(pytz.utc).date()

def export_region_label(regions: Optional[List[str]]) -> str:
    """Name the exported region selection, 'all' when no region is selected."""
    regions = [region for region in regions or [] if region]
    if not regions:
        return "all"
    parts = [UNSAFE_FILENAME_CHARS.sub("_", region).strip("._") for region in sorted(regions)]
    return "_".join(part for part in parts if part) or "regions"
