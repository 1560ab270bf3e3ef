"""PayNow (SGQR / EMVCo merchant-presented mode) payload encoder.

Builds the text a QR code carries; rendering the image is left to the
client.  Every field is ``tag(2) + length(2, decimal) + value`` and both
the root fields and the merchant-account template are emitted in
ascending tag order.  The payload ends with ``6304`` and a CRC16-CCITT
(poly 0x1021, init 0xFFFF, no final XOR) computed over everything that
precedes the checksum, ``6304`` included.

Length policy: values over 99 characters raise ``FieldTooLong``; the
merchant name is truncated to 25 characters and the reference is
rejected above 25 characters (``ReferenceTooLong``).
"""

from __future__ import annotations

import re
import unicodedata
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, List, Mapping, Optional, Tuple, Union

from modules.payments.exceptions import (
    FieldTooLong,
    InvalidAmount,
    InvalidPayee,
    InvalidReference,
    MalformedPayload,
    ReferenceTooLong,
)

PAYLOAD_FORMAT_INDICATOR = "01"
STATIC_QR = "11"
DYNAMIC_QR = "12"
PAYNOW_NETWORK_ID = "SG.PAYNOW"
PROXY_TYPE_MOBILE = "0"
PROXY_TYPE_UEN = "2"
MERCHANT_CATEGORY_CODE = "0000"
CURRENCY_SGD = "702"
COUNTRY_CODE = "SG"
DEFAULT_MERCHANT_NAME = "MERCHANT"
DEFAULT_MERCHANT_CITY = "Singapore"
CRC_TAG = "6304"

MAX_FIELD_LENGTH = 99
MAX_MERCHANT_NAME_LENGTH = 25
MAX_REFERENCE_LENGTH = 25

_MOBILE = re.compile(r"^(?:\+65)?([89]\d{7})$")
_UEN_PATTERNS = (
    re.compile(r"^\d{9}[A-Z]$"),
    re.compile(r"^\d{10}[A-Z]$"),
    re.compile(r"^[TSR]\d{2}[A-Z]{2}\d{4}[A-Z]$"),
)
_REFERENCE = re.compile(r"^[\x20-\x7E]+$")

Amount = Union[Decimal, int, str]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def is_valid_singapore_mobile(value: str) -> bool:
    return bool(_MOBILE.match(value))


def is_valid_uen(value: str) -> bool:
    return any(pattern.match(value) for pattern in _UEN_PATTERNS)


def resolve_proxy(payee: str) -> Tuple[str, str]:
    """Return ``(proxy_type, proxy_value)`` for a mobile number or UEN."""
    candidate = re.sub(r"[\s-]", "", payee or "").upper()
    mobile = _MOBILE.match(candidate)
    if mobile:
        return PROXY_TYPE_MOBILE, f"+65{mobile.group(1)}"
    if is_valid_uen(candidate):
        return PROXY_TYPE_UEN, candidate
    raise InvalidPayee(attr="payee")


def normalise_amount(amount: Optional[Amount]) -> Decimal:
    try:
        value = Decimal(str(amount if amount is not None else 0))
    except InvalidOperation as exc:
        raise InvalidAmount("Amount must be a number.", attr="amount") from exc
    if not value.is_finite():
        raise InvalidAmount("Amount must be a number.", attr="amount")
    if value < 0:
        raise InvalidAmount(attr="amount")
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _ascii(value: str) -> str:
    return unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")


def merchant_display_name(name: Optional[str]) -> str:
    cleaned = _ascii(name or "").strip() or DEFAULT_MERCHANT_NAME
    return cleaned[:MAX_MERCHANT_NAME_LENGTH]


def validate_reference(reference: str) -> str:
    if len(reference) > MAX_REFERENCE_LENGTH:
        raise ReferenceTooLong(
            f"Reference must be at most {MAX_REFERENCE_LENGTH} characters.",
            attr="reference",
        )
    if not _REFERENCE.match(reference):
        raise InvalidReference(
            "Reference may only contain printable ASCII characters.",
            attr="reference",
        )
    return reference


# ---------------------------------------------------------------------------
# TLV encoding
# ---------------------------------------------------------------------------


def encode_field(tag: str, value: str) -> str:
    if len(value) > MAX_FIELD_LENGTH:
        raise FieldTooLong(
            f"Field {tag} is {len(value)} characters; the limit is {MAX_FIELD_LENGTH}.",
            attr=tag,
        )
    return f"{tag}{len(value):02d}{value}"


def encode_fields(fields: Mapping[str, str]) -> str:
    """Encode a tag->value mapping in ascending tag order."""
    return "".join(encode_field(tag, fields[tag]) for tag in sorted(fields))


def crc16_ccitt(data: str) -> int:
    crc = 0xFFFF
    for byte in data.encode("ascii"):
        crc ^= byte << 8
        for _ in range(8):
            if crc & 0x8000:
                crc = ((crc << 1) ^ 0x1021) & 0xFFFF
            else:
                crc = (crc << 1) & 0xFFFF
    return crc


def format_crc(crc: int) -> str:
    return f"{crc:04X}"


def build_paynow_payload(
    payee: str,
    amount: Optional[Amount] = 0,
    reference: Optional[str] = None,
    merchant_name: Optional[str] = None,
    merchant_city: str = DEFAULT_MERCHANT_CITY,
    expiry: Optional[date] = None,
) -> str:
    """Encode a PayNow payload string.

    ``amount`` of zero produces a static QR: no tag ``54`` and the payer
    may edit the amount.  ``expiry`` is only emitted when given, so the
    same inputs always produce the same payload.
    """
    proxy_type, proxy_value = resolve_proxy(payee)
    value = normalise_amount(amount)
    has_amount = value > 0

    account: Dict[str, str] = {
        "00": PAYNOW_NETWORK_ID,
        "01": proxy_type,
        "02": proxy_value,
        "03": "0" if has_amount else "1",
    }
    if expiry is not None:
        account["04"] = expiry.strftime("%Y%m%d")

    fields: Dict[str, str] = {
        "00": PAYLOAD_FORMAT_INDICATOR,
        "01": DYNAMIC_QR if has_amount else STATIC_QR,
        "26": encode_fields(account),
        "52": MERCHANT_CATEGORY_CODE,
        "53": CURRENCY_SGD,
        "58": COUNTRY_CODE,
        "59": merchant_display_name(merchant_name),
        "60": (_ascii(merchant_city).strip() or DEFAULT_MERCHANT_CITY),
    }
    if has_amount:
        fields["54"] = f"{value:.2f}"
    if reference:
        fields["62"] = encode_fields({"01": validate_reference(reference)})

    body = encode_fields(fields) + CRC_TAG
    return body + format_crc(crc16_ccitt(body))


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def parse_tlv(payload: str) -> List[Tuple[str, str]]:
    """Split a TLV string into ``(tag, value)`` pairs in emitted order."""
    fields: List[Tuple[str, str]] = []
    position = 0
    while position < len(payload):
        header = payload[position : position + 4]
        if len(header) < 4 or not header.isdigit():
            raise MalformedPayload(f"Bad field header at offset {position}.")
        length = int(header[2:])
        value = payload[position + 4 : position + 4 + length]
        if len(value) != length:
            raise MalformedPayload(f"Field {header[:2]} is truncated.")
        fields.append((header[:2], value))
        position += 4 + length
    return fields


def verify_payload_crc(payload: str) -> bool:
    if len(payload) < 8 or payload[-8:-4] != CRC_TAG:
        return False
    return format_crc(crc16_ccitt(payload[:-4])) == payload[-4:].upper()
