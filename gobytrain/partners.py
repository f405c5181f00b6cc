# gobytrain/partners.py
from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from gobytrain.config import get_settings
from gobytrain.normalizer import format_price, parse_price
from gobytrain.schemas import CheckoutSummary, PartnerLinkRequest

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("GOBYTRAIN_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

FALLBACK_URL = "https://partner.example.com/search"


@dataclass(frozen=True)
class PartnerProfile:
    label: str
    base_url: str
    origin_param: str
    destination_param: str
    date_param: str
    tracking_param: str
    tracking_id: str
    # Optional extras: request attribute -> query parameter name.
    extra_params: Dict[str, str] = field(default_factory=dict)


PARTNERS: Dict[str, PartnerProfile] = {
    "omio": PartnerProfile(
        label="Omio",
        base_url="https://www.omio.com/search",
        origin_param="departure",
        destination_param="arrival",
        date_param="date",
        tracking_param="affiliate_id",
        tracking_id="AFF_ID_OMIO",
    ),
    "trainline": PartnerProfile(
        label="Trainline",
        base_url="https://www.thetrainline.com/search",
        origin_param="from",
        destination_param="to",
        date_param="date",
        tracking_param="aff",
        tracking_id="AFF_ID_TRAINLINE",
    ),
    "sj": PartnerProfile(
        label="SJ",
        base_url="https://www.sj.se/en/search",
        origin_param="from",
        destination_param="to",
        date_param="date",
        tracking_param="partner",
        tracking_id="AFF_ID_SJ",
    ),
    "raileurope": PartnerProfile(
        label="Rail Europe",
        base_url="https://www.raileurope.com/en/search",
        origin_param="from",
        destination_param="to",
        date_param="date",
        tracking_param="affiliateId",
        tracking_id="gobytrain-placeholder",
        extra_params={"adults": "passengers", "currency": "currency"},
    ),
}


def normalize_partner_id(partner_id: Optional[str]) -> str:
    return (partner_id or "").strip().lower()


def partner_label(partner_id: Optional[str]) -> str:
    key = normalize_partner_id(partner_id)
    profile = PARTNERS.get(key)
    if profile is not None:
        return profile.label
    return (partner_id or "").strip() or "Partner"


def strict_date(value: Any) -> Optional[str]:
    """``YYYY-MM-DD`` dates pass through; anything else counts as absent."""
    if not isinstance(value, str):
        return None
    return value if _DATE_RE.fullmatch(value) else None


def build_link(partner_id: Optional[str], fields: PartnerLinkRequest | Mapping[str, Any]) -> str:
    """Outbound booking URL for ``partner_id``, or ``""`` when it cannot be built.

    An empty string means the booking action should be disabled. Unknown
    partners get the generic redirect so a link is always constructible
    once both stations are known.
    """
    req = _as_request(fields)
    origin = req.origin.strip()
    destination = req.destination.strip()
    key = normalize_partner_id(partner_id if partner_id is not None else req.partner_id)
    if not origin or not destination:
        logger.info("Booking link unavailable for partner %r: missing origin or destination", key)
        return ""

    date = strict_date(req.date)
    attribution = get_settings().attribution
    profile = PARTNERS.get(key)

    if profile is None:
        return _build_fallback_url(key, req, origin, destination, date, attribution)

    params: Dict[str, Any] = {
        profile.origin_param: origin,
        profile.destination_param: destination,
    }
    if date:
        params[profile.date_param] = date
    for attr, param in profile.extra_params.items():
        value = getattr(req, attr)
        if attr == "adults":
            value = value if value and value > 0 else 1
        params[param] = value
    params[profile.tracking_param] = profile.tracking_id
    params.update(attribution)
    url = f"{profile.base_url}?{urlencode(params)}"
    logger.debug("Built %s link %s", key, url)
    return url


def _build_fallback_url(
    key: str,
    req: PartnerLinkRequest,
    origin: str,
    destination: str,
    date: Optional[str],
    attribution: Dict[str, str],
) -> str:
    params: Dict[str, Any] = {"from": origin, "to": destination}
    if date:
        params["date"] = date
    optional = {
        "rid": req.route_id,
        "price": _plain_price(req.price),
        "duration": req.duration,
        "transfers": req.transfers,
    }
    for name, value in optional.items():
        if value is None or str(value).strip() == "":
            continue
        params[name] = str(value).strip()
    params.update(attribution)
    logger.info("No profile for partner %r; using generic redirect", key)
    return f"{FALLBACK_URL}?{urlencode(params)}"


def _plain_price(value: Any) -> Optional[str]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    amount = parse_price(value)
    return str(int(amount)) if amount.is_integer() else f"{amount:.2f}"


def display_price(value: Any) -> Optional[str]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return format_price(value)


def checkout_summary(fields: PartnerLinkRequest | Mapping[str, Any]) -> CheckoutSummary:
    req = _as_request(fields)
    url = build_link(req.partner_id, req)
    return CheckoutSummary(
        partner_id=normalize_partner_id(req.partner_id),
        partner_label=partner_label(req.partner_id),
        url=url,
        available=bool(url),
        display_price=display_price(req.price),
    )


def _as_request(fields: PartnerLinkRequest | Mapping[str, Any]) -> PartnerLinkRequest:
    if isinstance(fields, PartnerLinkRequest):
        return fields
    return PartnerLinkRequest.model_validate(dict(fields))
