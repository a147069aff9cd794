"""
Gmail API client integration.

This module handles direct communication with Gmail API:
1. List inbox messages (ids first, then full details concurrently)
2. Fetch a single message
3. Parse Gmail's complex response format into clean objects

Gmail API Reference: https://developers.google.com/gmail/api/reference/rest
"""
import asyncio
import base64
import binascii
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import List, Optional, Tuple

from portal.integrations.google_api import GoogleApiClient
from portal.models.mail import InboxPage, MailMessage
from portal.models.result import Result, result_boundary
from portal.utils.errors import DecodeFailedError, RequestFailedError
from portal.utils.logger import get_logger

logger = get_logger(__name__)

# Gmail API base URL
GMAIL_API_BASE = "https://gmail.googleapis.com/gmail/v1/users/me"


class MailClient(GoogleApiClient):
    """
    Gmail API client for the notices page.

    Usage:
        client = MailClient(Provider.MAIL, token_store)
        result = await client.list_inbox(max_results=10)
        if result.success:
            emails = result.data.emails
    """

    BASE_URL = GMAIL_API_BASE

    @result_boundary("List inbox")
    async def list_inbox(self, max_results: int = 10, query: Optional[str] = None) -> InboxPage:
        """
        Fetch the most recent inbox messages.

        Gmail API flow:
        1. List message IDs (lightweight)
        2. Get full message details for every ID concurrently
        3. Parse into MailMessage objects

        A message whose details cannot be fetched or decoded is left out and
        counted in InboxPage.dropped.

        Args:
            max_results: Number of messages to list
            query: Optional Gmail search query (e.g., "from:john")
        """
        logger.info(f"Fetching {max_results} emails (query: {query})")

        q = "in:inbox"
        if query:
            q = f"{q} {query}"

        list_response = await self._make_request(
            "GET",
            "/messages",
            params={"maxResults": max_results, "q": q},
        )

        entries = list_response.get("messages", [])
        if not entries:
            logger.info("No emails found in inbox")
            return InboxPage(emails=[])

        # Entries without an id cannot be fetched and count as dropped
        ids = [msg.get("id") for msg in entries if msg.get("id")]
        details = await asyncio.gather(*(self._fetch_or_none(message_id) for message_id in ids))
        emails = [email for email in details if email is not None]
        dropped = len(entries) - len(emails)

        if dropped:
            logger.warning(f"Dropped {dropped} of {len(entries)} emails that failed to load")
        logger.info(f"Fetched {len(emails)} emails successfully")
        return InboxPage(emails=emails, dropped=dropped)

    @result_boundary("Get message")
    async def get_message(self, message_id: str) -> MailMessage:
        return await self._get_message_details(message_id)

    async def _fetch_or_none(self, message_id: str) -> Optional[MailMessage]:
        try:
            return await self._get_message_details(message_id)
        except (RequestFailedError, DecodeFailedError) as e:
            logger.warning(f"Failed to fetch email {message_id}: {e.message}")
            return None

    async def _get_message_details(self, message_id: str) -> MailMessage:
        response = await self._make_request(
            "GET",
            f"/messages/{message_id}",
            params={"format": "full"},
        )
        return parse_message(response)


def parse_message(message: dict) -> MailMessage:
    """
    Parse Gmail API message into MailMessage.

    Gmail message structure is complex. Headers are in a list,
    body may be nested in parts, and content is base64url encoded.

    Raises:
        DecodeFailedError: No id or payload, or body data that is not base64url
    """
    if not message.get("id"):
        raise DecodeFailedError("Email has no id")
    payload = message.get("payload")
    if not isinstance(payload, dict):
        raise DecodeFailedError("Email has no payload")

    # Header names are case-insensitive
    headers = {h["name"].lower(): h["value"] for h in payload.get("headers", [])}

    sender_name, sender_email = parse_sender(headers.get("from", "Unknown"))

    return MailMessage(
        id=message["id"],
        thread_id=message.get("threadId", message["id"]),
        sender_name=sender_name,
        sender_email=sender_email,
        subject=headers.get("subject") or "(No Subject)",
        body=extract_body(payload),
        snippet=message.get("snippet", ""),
        date=parse_date(headers.get("date", ""), message.get("internalDate")),
        label_ids=message.get("labelIds", []),
    )


def parse_sender(from_header: str) -> Tuple[str, str]:
    """
    Parse 'From' header into name and email.

    Handles formats:
    - "John Doe <john@example.com>"
    - "john@example.com"
    - "<john@example.com>"
    """
    value = from_header.strip()

    match = re.match(r'^"?([^"<]+)"?\s*<(.+)>$', value)
    if match:
        return match.group(1).strip(), match.group(2).strip()

    match = re.match(r'^<(.+)>$', value)
    if match:
        email = match.group(1).strip()
        return email, email

    return value, value


def parse_date(date_header: str, internal_date: Optional[str]) -> str:
    """
    ISO timestamp from the RFC 2822 Date header, else from internalDate
    (milliseconds since epoch). Falls back to the raw header.
    """
    if date_header:
        try:
            return parsedate_to_datetime(date_header).isoformat()
        except (TypeError, ValueError):
            pass

    if internal_date:
        try:
            timestamp = int(internal_date) / 1000
            return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()
        except (TypeError, ValueError):
            pass

    return date_header


def extract_body(payload: dict) -> str:
    """
    Extract email body from payload.

    Gmail stores body in various places:
    - Simple emails: payload.body.data
    - Multipart: payload.parts[*].body.data, possibly nested

    Plain text wins over HTML.
    """
    data = payload.get("body", {}).get("data")
    if data:
        text = decode_body(data)
        if payload.get("mimeType") == "text/html":
            return strip_html(text)
        return text

    parts: List[dict] = payload.get("parts", [])

    for part in parts:
        if part.get("mimeType") == "text/plain" and part.get("body", {}).get("data"):
            return decode_body(part["body"]["data"])

    for part in parts:
        if part.get("mimeType") == "text/html" and part.get("body", {}).get("data"):
            return strip_html(decode_body(part["body"]["data"]))

    for part in parts:
        if "parts" in part:
            result = extract_body(part)
            if result:
                return result

    return ""


def decode_body(data: str) -> str:
    """
    Decode base64url body data.

    Raises:
        DecodeFailedError: Characters outside the base64url alphabet
    """
    padding = -len(data) % 4
    try:
        decoded = base64.b64decode(data + "=" * padding, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeFailedError(f"Invalid email body encoding: {e}")
    return decoded.decode("utf-8", errors="replace")


def strip_html(html: str) -> str:
    """Strip tags, style and script blocks, and common entities."""
    html = re.sub(r'<style[^>]*>.*?</style>', '', html, flags=re.DOTALL | re.IGNORECASE)
    html = re.sub(r'<script[^>]*>.*?</script>', '', html, flags=re.DOTALL | re.IGNORECASE)

    html = re.sub(r'<[^>]+>', ' ', html)

    html = html.replace("&nbsp;", " ")
    html = html.replace("&lt;", "<")
    html = html.replace("&gt;", ">")
    html = html.replace("&quot;", '"')
    html = html.replace("&#39;", "'")
    html = html.replace("&amp;", "&")

    html = re.sub(r'\s+', ' ', html)

    return html.strip()
