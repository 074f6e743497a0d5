import os

import httpx

from reviewflow.logging_config import get_logger

logger = get_logger(__name__)

RESEND_API_KEY = os.getenv("RESEND_API_KEY", "").strip()
RESEND_FROM = os.getenv("RESEND_FROM", "Review Desk <no-reply@yourdomain.com>").strip()
RESEND_URL = os.getenv("RESEND_URL", "https://api.resend.com/emails").strip()
APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:3000").strip().rstrip("/")


class MailerNotConfigured(RuntimeError):
    pass


def _payload(to: list[str], subject: str, html: str, tags: dict[str, str] | None) -> dict:
    body = {"from": RESEND_FROM, "to": to, "subject": subject, "html": html}
    if tags:
        # resend only accepts [A-Za-z0-9_-] in tag values
        body["tags"] = [{"name": k, "value": v.replace(".", "_")} for k, v in tags.items()]
    return body


async def send_email(
    to: list[str],
    subject: str,
    html: str,
    tags: dict[str, str] | None = None,
    client: httpx.AsyncClient | None = None,
):
    """POST one message to Resend. Raises on any non-2xx answer."""
    if not RESEND_API_KEY:
        raise MailerNotConfigured("RESEND_API_KEY not set")

    headers = {
        "Authorization": f"Bearer {RESEND_API_KEY}",
        "Content-Type": "application/json",
    }
    body = _payload(to, subject, html, tags)

    if client is None:
        async with httpx.AsyncClient(timeout=20) as own:
            r = await own.post(RESEND_URL, headers=headers, json=body)
    else:
        r = await client.post(RESEND_URL, headers=headers, json=body)

    r.raise_for_status()
    data = r.json()
    logger.debug("email_accepted", recipients=len(to), email_id=data.get("id"))
    return data


def item_link(kind: str, item_id) -> str:
    return f"{APP_BASE_URL}/{kind.lower()}s/{item_id}"
