# backend/app/balances.py
"""
Per-wallet material token balances.

A wallet's balance is the sum of the weights of the batches it created,
keyed by material type. Approved and certified batches count towards the
balance, pending ones are reported separately and rejected ones are dropped.
"""

import re
from typing import Dict, Iterable, Optional

from app.lifecycle import BatchStatus

MATERIAL_TYPES = (
    "Cotton",
    "Wool",
    "Silk",
    "Linen",
    "Hemp",
    "Polyester",
    "Nylon",
    "Viscose",
    "Cashmere",
    "Leather",
)

_NUMBER = re.compile(r"[-+]?\d(?:[\d.,]*\d)?")


def _to_float(text: str) -> Optional[float]:
    """Read "1,500", "1.250,5" or "1,5"; None when the separators are ambiguous."""
    if "," in text and "." in text:
        decimal = "," if text.rfind(",") > text.rfind(".") else "."
        thousands = "." if decimal == "," else ","
        text = text.replace(thousands, "").replace(decimal, ".")
    elif "," in text:
        head, *groups = text.split(",")
        if len(groups) == 1 and len(groups[0]) <= 2:
            text = f"{head}.{groups[0]}"
        elif all(len(g) == 3 for g in groups):
            text = text.replace(",", "")
        else:
            return None
    elif text.count(".") > 1:
        if not all(len(g) == 3 for g in text.split(".")[1:]):
            return None
        text = text.replace(".", "")
    try:
        return float(text)
    except ValueError:
        return None


def material_key(material: Optional[str], token_type: Optional[str] = None) -> str:
    """Map free-text material (e.g. "Organic Cotton") onto a known type by substring match."""
    for text in (token_type, material):
        lowered = (text or "").lower()
        for known in MATERIAL_TYPES:
            if known.lower() in lowered:
                return known
    return (material or token_type or "").strip() or "Unknown"


def parse_weight(value) -> float:
    """Weights are free text on chain ("500", "1,5", "1,500 kg"); unreadable ones count as 0."""
    if isinstance(value, (int, float)):
        return float(value)
    match = _NUMBER.search(str(value or ""))
    if not match:
        return 0.0
    number = _to_float(match.group(0))
    return 0.0 if number is None else number


def accumulate_balances(batches: Iterable[dict], address: str) -> Dict[str, Dict[str, float]]:
    balances: Dict[str, float] = {}
    pending: Dict[str, float] = {}
    owner = (address or "").lower()

    for batch in batches:
        if (batch.get("createdBy") or "").lower() != owner:
            continue
        status = batch.get("status", BatchStatus.PENDING)
        if status == BatchStatus.REJECTED:
            continue

        asset = batch.get("physicalAsset", {})
        key = material_key(asset.get("material"), asset.get("tokenType"))
        weight = parse_weight(asset.get("weight"))
        target = pending if status == BatchStatus.PENDING else balances
        target[key] = target.get(key, 0.0) + weight

    return {"balances": balances, "pending": pending}
