# pob_flashcards/services/share_service.py
import base64
import json
import secrets
import string
from typing import Any, Dict, Mapping, NamedTuple, Optional
from urllib.parse import quote, unquote

from pob_flashcards.core.errors import InvalidFormat
from pob_flashcards.core.ids import now_ms
from pob_flashcards.core.log_manager import logger
from pob_flashcards.schemas import DeckPayload, ShareRecord

# --- CONSTANTS ---
SAFMEDS_PATH = '/safmeds'
IMPORT_PARAM = 'import'
SHARE_ID_PARAM = 'share_id'

SHARE_CODE_ALPHABET = string.digits + string.ascii_lowercase
SHARE_CODE_RANDOM_CHARS = 6
SHARE_CODE_MIN_LENGTH = 12

QR_SERVICE_URL = 'https://api.qrserver.com/v1/create-qr-code/'
CLIPBOARD_TIMEOUT_SECONDS = 3.0


class ImportRequest(NamedTuple):
    kind: str   # IMPORT_PARAM | SHARE_ID_PARAM
    value: str


# --- INLINE PAYLOAD ---

def serialize_payload(payload: Dict[str, Any]) -> str:
    """Compact JSON with non-ASCII kept as-is. Size limits are measured on this."""
    return json.dumps(payload, ensure_ascii=False, separators=(',', ':'))


def encode_inline_payload(deck: DeckPayload) -> str:
    """UTF-8 JSON of {title, description, cards} wrapped in standard base64."""
    raw = serialize_payload(deck.to_payload()).encode('utf-8')
    return base64.b64encode(raw).decode('ascii')


def decode_inline_payload(blob: str) -> Any:
    """
    Reverses encode_inline_payload. Returns the parsed JSON value without
    checking its shape; that is the import service's job.
    """
    if not blob:
        raise InvalidFormat("Invalid share payload format.")

    # Tolerate a blob that was URL-decoded as form data ('+' -> ' ') or not decoded at all
    if '%' in blob:
        blob = unquote(blob)
    blob = blob.strip().replace(' ', '+')

    try:
        raw = base64.b64decode(blob, validate=True)
        return json.loads(raw.decode('utf-8'))
    except ValueError as e:
        # binascii.Error, UnicodeDecodeError and JSONDecodeError are all ValueErrors
        logger.warning(f"Rejected inline share payload: {e}")
        raise InvalidFormat("Invalid share payload format.") from e


# --- SHARE CODES ---

def _to_base36(value: int) -> str:
    if value == 0:
        return '0'
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(SHARE_CODE_ALPHABET[remainder])
    return ''.join(reversed(digits))


def generate_share_code() -> str:
    """
    Short alphanumeric key for shared storage: a base-36 millisecond clock
    followed by random characters. Collisions are not checked.
    """
    clock_part = _to_base36(now_ms())
    random_chars = max(SHARE_CODE_RANDOM_CHARS, SHARE_CODE_MIN_LENGTH - len(clock_part))
    random_part = ''.join(secrets.choice(SHARE_CODE_ALPHABET) for _ in range(random_chars))
    return clock_part + random_part


async def publish_deck(gateway, deck: DeckPayload) -> str:
    """Writes a ShareRecord of the deck under a fresh code and returns the code."""
    key = generate_share_code()
    record = ShareRecord(
        title=deck.title,
        description=deck.description,
        cards=list(deck.cards),
        created_at=now_ms(),
    )
    await gateway.write_shared_deck(key, record)
    logger.info(f"Published set '{deck.title}' ({len(deck.cards)} cards) under code {key}")
    return key


# --- LINKS ---

def build_inline_link(origin: str, deck: DeckPayload) -> str:
    payload = quote(encode_inline_payload(deck), safe='')
    return f"{origin.rstrip('/')}{SAFMEDS_PATH}?{IMPORT_PARAM}={payload}"


def build_share_code_link(origin: str, key: str) -> str:
    return f"{origin.rstrip('/')}{SAFMEDS_PATH}?{SHARE_ID_PARAM}={quote(key, safe='')}"


def qr_code_url(link: str, size: int = 180) -> str:
    return f"{QR_SERVICE_URL}?size={size}x{size}&data={quote(link, safe='')}"


def clipboard_write_script(text: str) -> str:
    """
    Browser expression that copies `text` and resolves to true, or to false
    when the clipboard is refused (insecure origin, denied permission).
    """
    return (
        "(navigator.clipboard ? navigator.clipboard.writeText("
        f"{json.dumps(text)}) : Promise.reject()).then(() => true, () => false)"
    )


def detect_import(params: Mapping[str, str]) -> Optional[ImportRequest]:
    """
    Picks the import path requested by the page's query parameters.
    An inline payload wins over a share code when both are present.
    """
    payload = params.get(IMPORT_PARAM)
    if payload:
        return ImportRequest(IMPORT_PARAM, payload)

    share_id = (params.get(SHARE_ID_PARAM) or '').strip()
    if share_id:
        return ImportRequest(SHARE_ID_PARAM, share_id)

    return None
