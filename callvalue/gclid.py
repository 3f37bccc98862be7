"""
Google click identifier (GCLID) extraction.
"""

import re
from typing import Dict, Optional

GCLID_PARAM_RE = re.compile(r"[?&]gclid=([^&]+)")


def extract_gclid(call: Dict) -> Optional[str]:
    """
    Pull the GCLID for a call.

    Prefers CallRail's own gclid field; otherwise looks for a gclid query
    parameter on the landing page URL.

    Args:
        call: CallRail call record

    Returns:
        GCLID string, or None if the call cannot be tied to an ad click
    """
    direct = call.get("gclid")
    if direct and isinstance(direct, str):
        return direct

    landing_page = call.get("landing_page_url")
    if landing_page and isinstance(landing_page, str):
        match = GCLID_PARAM_RE.search(landing_page)
        if match:
            return match.group(1)

    return None
