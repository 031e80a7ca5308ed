"""Locale list fetch with bounded retry and a bundled fallback."""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .errors import NetworkFetchFailure
from .notices import Notifier

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 10.0

# Shipped with the package; possibly outdated.
BUNDLED_LOCALES: dict[str, str] = {
    "en": "English",
    "en-gb": "English (United Kingdom)",
    "en-us": "English (United States)",
    "de": "German",
    "es": "Spanish",
    "fr": "French",
    "it": "Italian",
    "ja": "Japanese",
    "ko": "Korean",
    "nl": "Dutch",
    "pl": "Polish",
    "pt": "Portuguese",
    "pt-br": "Portuguese (Brazil)",
    "ru": "Russian",
    "sv": "Swedish",
    "tr": "Turkish",
    "uk": "Ukrainian",
    "zh-cn": "Chinese (China)",
    "zh-tw": "Chinese (Taiwan)",
}


def _decode_locales(payload: Any) -> dict[str, str]:
    if not isinstance(payload, list):
        raise NetworkFetchFailure("Expected a JSON array of locales")

    locales: dict[str, str] = {}
    for item in payload:
        if isinstance(item, dict) and isinstance(item.get("key"), str):
            locales[item["key"]] = str(item.get("name") or item["key"])
    if not locales:
        raise NetworkFetchFailure("Locale list is empty")
    return locales


def fetch_once(url: str, timeout_s: float = DEFAULT_TIMEOUT_S) -> dict[str, str]:
    """One GET of the locale list.

    Raises:
        NetworkFetchFailure: On HTTP, connection or decoding errors
    """
    req = Request(url, method="GET", headers={"Accept": "application/json"})
    try:
        with urlopen(req, timeout=timeout_s) as resp:
            payload = json.loads(resp.read().decode("utf-8"))
    except HTTPError as e:
        raise NetworkFetchFailure(f"HTTP {e.code} from {url}") from e
    except URLError as e:
        raise NetworkFetchFailure(f"Cannot reach {url}: {e.reason}") from e
    except (OSError, ValueError) as e:
        raise NetworkFetchFailure(f"Bad locale list from {url}: {e}") from e
    return _decode_locales(payload)


def fetch_locales(
    url: str,
    retries: int = 3,
    notifier: Notifier | None = None,
    timeout_s: float = DEFAULT_TIMEOUT_S,
) -> dict[str, str]:
    """Locale key -> display name, from ``url`` or the bundled list.

    The first attempt is followed by up to ``retries`` more. Never raises.
    """
    notifier = notifier or Notifier()

    for attempt in range(retries + 1):
        try:
            return fetch_once(url, timeout_s)
        except NetworkFetchFailure as e:
            logger.warning("Locale fetch attempt %d failed: %s", attempt + 1, e)
            if attempt < retries:
                notifier.warning(f"Something went wrong. Retry {attempt + 1}")

    notifier.warning(
        f"Fetch failed after {retries} attempts. Using local, possibly outdated locales. "
        "Check internet and restart plugin."
    )
    return dict(BUNDLED_LOCALES)
