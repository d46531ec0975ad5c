# Quote/quote.py
import os
import logging
from typing import Any, Dict

import requests
from dotenv import load_dotenv

load_dotenv()
logger = logging.getLogger(__name__)

QUOTE_API_URL = os.getenv(
    "QUOTE_API_URL",
    "https://api.coingecko.com/api/v3/simple/price?ids=bitcoin&vs_currencies=usd",
)
QUOTE_API_KEY = os.getenv("QUOTE_API_KEY")
QUOTE_API_KEY_HEADER = os.getenv("QUOTE_API_KEY_HEADER", "X-Api-Key")
QUOTE_TIMEOUT = float(os.getenv("QUOTE_TIMEOUT", "10"))


class QuoteError(Exception):
    """Upstream price source failed or answered with something unusable."""


def fetch_quote() -> Dict[str, Any]:
    """One read from the price source; the JSON is handed back untouched."""
    headers = {"Accept": "application/json"}
    if QUOTE_API_KEY:
        headers[QUOTE_API_KEY_HEADER] = QUOTE_API_KEY

    try:
        r = requests.get(QUOTE_API_URL, headers=headers, timeout=QUOTE_TIMEOUT)
        r.raise_for_status()
    except requests.RequestException as e:
        logger.error("Quote fetch failed: %s", e)
        raise QuoteError(f"Quote source unavailable: {e}") from e

    try:
        return r.json()
    except ValueError as e:
        logger.error("Quote source returned non-JSON body (status %s)", r.status_code)
        raise QuoteError("Quote source returned invalid JSON") from e
