"""
ID-card photo verification – inference call and the confidence gate.
"""

import math
import sys
from typing import Any, Iterable, List, Optional

import requests

from medportal.config import (
    ID_CARD_FALLBACK_THRESHOLD,
    ID_CARD_KNOWN_LABEL,
    ID_CARD_MODEL_BASE_URL,
    ID_CARD_MODEL_ID,
    ID_CARD_PRIMARY_THRESHOLD,
    ID_CARD_REQUEST_TIMEOUT,
)
from medportal.models import IdCardVerdict, Prediction

VALID_MESSAGE = "Valid Egyptian ID detected"
FALLBACK_MESSAGE = "Egyptian ID detected"
FALLBACK_NOTE = "Accepted with lower confidence threshold"
INVALID_MESSAGE = (
    "No valid Egyptian ID detected. Please upload a clear image of your ID card."
)


class IdCardServiceError(Exception):
    """The classification service could not be reached or answered badly."""


# ── Helpers ──────────────────────────────────────────────────────────

def to_prediction(raw: Any) -> Optional[Prediction]:
    """Build a Prediction from a raw service record, or None if malformed."""
    if isinstance(raw, Prediction):
        class_name, confidence = raw.class_name, raw.confidence
    elif isinstance(raw, dict):
        class_name, confidence = raw.get("class"), raw.get("confidence")
    else:
        return None
    if not isinstance(class_name, str):
        return None
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        return None
    if not math.isfinite(confidence) or not 0.0 <= confidence <= 1.0:
        return None
    return Prediction(class_name=class_name, confidence=float(confidence))


def is_id_class(class_name: str) -> bool:
    name = class_name.lower()
    return "id" in name or "egyp" in name or name == ID_CARD_KNOWN_LABEL


# ── Confidence gate ──────────────────────────────────────────────────

def evaluate_predictions(predictions: Optional[Iterable[Any]]) -> IdCardVerdict:
    """
    Decide whether a set of predictions shows an Egyptian ID card.

    An ID-like class at or above the primary threshold passes.  Failing
    that, any prediction at or above the fallback threshold passes with a
    note.  Malformed records, and anything that is not a list, are ignored.
    """
    raw = list(predictions) if isinstance(predictions, (list, tuple)) else []
    parsed: List[Prediction] = [p for p in map(to_prediction, raw) if p is not None]

    if not parsed:
        return IdCardVerdict(is_valid=False, confidence=0.0, message=INVALID_MESSAGE,
                             predictions=raw)

    is_valid = any(
        is_id_class(p.class_name) and p.confidence >= ID_CARD_PRIMARY_THRESHOLD
        for p in parsed
    )
    best = max(p.confidence for p in parsed)

    if not is_valid and best >= ID_CARD_FALLBACK_THRESHOLD:
        return IdCardVerdict(is_valid=True, confidence=best, message=FALLBACK_MESSAGE,
                             note=FALLBACK_NOTE, predictions=raw)

    return IdCardVerdict(
        is_valid=is_valid,
        confidence=best,
        message=VALID_MESSAGE if is_valid else INVALID_MESSAGE,
        predictions=raw,
    )


# ── Inference service ────────────────────────────────────────────────

def model_url() -> str:
    return f"{ID_CARD_MODEL_BASE_URL.rstrip('/')}/{ID_CARD_MODEL_ID}"


def classify_id_card(image: bytes, filename: str, content_type: str, api_key: str,
                     session=None) -> List[dict]:
    """Send *image* to the classification service and return its predictions."""
    http = session or requests
    try:
        resp = http.post(
            model_url(),
            params={"api_key": api_key},
            files={"file": (filename, image, content_type)},
            timeout=ID_CARD_REQUEST_TIMEOUT,
        )
        resp.raise_for_status()
        data = resp.json()
    except requests.RequestException as e:
        print(f"[ERROR] ID-card service request failed: {e}", file=sys.stderr)
        raise IdCardServiceError("Failed to get prediction from the ID-card service") from e
    except ValueError as e:
        print(f"[ERROR] ID-card service returned a non-JSON body: {e}", file=sys.stderr)
        raise IdCardServiceError("ID-card service returned an unreadable response") from e

    predictions = data.get("predictions") if isinstance(data, dict) else None
    if not isinstance(predictions, list):
        predictions = []
    print(f"[verify-id] Received {len(predictions)} predictions")
    return predictions
