"""Modality definition: osd-email (new mail count via an IMAP query).

Asks the server through curl, e.g.

    curl --user "login:password" --url "imap://imap.domain" --request "STATUS INBOX (UNSEEN)"
    * STATUS "INBOX" (UNSEEN 122)

and pulls the count out of the reply with the ``response`` regex (first
group). ``cntofs`` is subtracted before choosing a template, for servers
that report a constant number of messages as unseen.
"""

import logging
import re
from typing import Optional, Tuple

from osd_ext_info import fetch

MODALITY_NAME = "osd-email"

# Needs real credentials; switch on in config
ENABLED = False

DEFAULTS = {
    "url": "imap://imap.domain",
    "userpass": "login:pass",
    "request": "STATUS INBOX (UNSEEN)",
    "response": r'\* STATUS "?INBOX"? \(UNSEEN (\d+)\)',
    "cntofs": 0,
    "showat": "58m",
    "interval": "1h",
    "osdpos": "You have {count} new email(s)",
    "osdneg": "WRN: fix offset cntofs:{cntofs}",
    "osdzero": "No new emails",
    "osderr": "ERR: {error}",
    "duration": 3.5,
    "key": "e",
}

logger = logging.getLogger("osd_ext_info.modalities.mail")


def extract_count(response: str, pattern: str) -> Optional[int]:
    """First regex group of ``pattern`` in ``response`` as int, else None."""
    try:
        m = re.search(pattern, response or "")
    except re.error as e:
        logger.error(f"Bad response pattern {pattern!r}: {e}")
        return None
    if not m:
        return None
    try:
        return int(m.group(1) if m.groups() else m.group(0))
    except ValueError:
        return None


def email_count(modality) -> Tuple[Optional[int], str]:
    """Query the server; returns ``(count or None, raw response)``."""
    try:
        response = fetch.curl(
            modality.get("url"),
            userpass=modality.get("userpass") or None,
            request=modality.get("request") or None,
        )
    except fetch.FetchError as e:
        logger.error(f"Mail query failed: {e}")
        return None, str(e)
    return extract_count(response, modality.get("response")), response


def format_message(modality, count: Optional[int], response: str) -> str:
    """Pick the positive/negative/zero/error template for ``count``."""
    cntofs = modality.get("cntofs", 0) or 0
    if count is None:
        return modality.get("osderr").format(error=response.strip())

    count -= cntofs
    if count > 0:
        return modality.get("osdpos").format(count=count, cntofs=cntofs)
    if count < 0:
        return modality.get("osdneg").format(count=count, cntofs=cntofs)
    return modality.get("osdzero").format(count=count, cntofs=cntofs)


def handler(modality) -> str:
    count, response = email_count(modality)
    return format_message(modality, count, response)
