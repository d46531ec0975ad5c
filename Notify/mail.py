import os
import logging
import msal
import requests
from dotenv import load_dotenv

load_dotenv()
"""
Send dashboard notifications through Microsoft Graph (sendMail) as the
shared mailbox. Best-effort: failures are logged, never raised to the caller.
"""
logger = logging.getLogger(__name__)

# --- Configuration ---
TENANT_ID       = os.getenv("TENANT_ID")
CLIENT_ID       = os.getenv("CLIENT_ID")
CLIENT_SECRET   = os.getenv("CLIENT_SECRET")
MAIL_SENDER     = os.getenv("MAIL_SENDER")
MAIL_RECIPIENTS = [a.strip() for a in os.getenv("MAIL_RECIPIENTS", "").split(",") if a.strip()]
MAIL_TIMEOUT    = float(os.getenv("MAIL_TIMEOUT", "10"))

# Graph setup
SCOPE      = ["https://graph.microsoft.com/.default"]
GRAPH_ROOT = "https://graph.microsoft.com/v1.0"


def is_configured() -> bool:
    return all([TENANT_ID, CLIENT_ID, CLIENT_SECRET, MAIL_SENDER, MAIL_RECIPIENTS])


def _token() -> str:
    app = msal.ConfidentialClientApplication(
        CLIENT_ID,
        authority=f"https://login.microsoftonline.com/{TENANT_ID}",
        client_credential=CLIENT_SECRET,
    )
    tok = app.acquire_token_for_client(scopes=SCOPE)
    if "access_token" not in tok:
        raise RuntimeError(f"Failed to acquire token: {tok.get('error_description', tok)}")
    return tok["access_token"]


def notify(subject: str, body: str) -> bool:
    """Dispatch exactly one mail. Returns False when nothing was sent."""
    if not is_configured():
        logger.warning("Mail not configured, skipping notification '%s'", subject)
        return False

    payload = {
        "message": {
            "subject": subject,
            "body": {"contentType": "Text", "content": body},
            "toRecipients": [{"emailAddress": {"address": a}} for a in MAIL_RECIPIENTS],
        },
        "saveToSentItems": False,
    }
    try:
        headers = {
            "Authorization": f"Bearer {_token()}",
            "Content-Type":  "application/json",
        }
        resp = requests.post(
            f"{GRAPH_ROOT}/users/{MAIL_SENDER}/sendMail",
            headers=headers,
            json=payload,
            timeout=MAIL_TIMEOUT,
        )
        resp.raise_for_status()
    except Exception:
        logger.exception("Notification mail '%s' could not be sent", subject)
        return False

    logger.info("Notification mail '%s' sent to %d recipient(s)", subject, len(MAIL_RECIPIENTS))
    return True


def notify_new_point(point: dict) -> bool:
    subject = f"New data point: {point['label']}"
    body = (
        "A new data point was added to the dashboard.\n\n"
        f"Label: {point['label']}\n"
        f"Value: {point['value']}\n"
        f"Date:  {point['date']}\n"
    )
    return notify(subject, body)
