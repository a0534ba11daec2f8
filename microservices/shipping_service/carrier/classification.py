"""
Carrier response classification.

Maps transport results to CarrierOutcome. Callers branch on the outcome,
never on raw status codes.
"""

from typing import Any, Optional

from .models import CarrierOutcome


def classify_status_code(status_code: int) -> CarrierOutcome:
    """Outcome implied by the HTTP status alone"""
    if status_code in (401, 403):
        return CarrierOutcome.AUTH_ERROR
    if status_code == 404:
        return CarrierOutcome.NOT_FOUND
    if status_code == 429 or status_code >= 500:
        return CarrierOutcome.NETWORK_ERROR
    if 400 <= status_code < 500:
        return CarrierOutcome.VALIDATION_ERROR
    return CarrierOutcome.SUCCESS


def extract_error_message(body: Any) -> Optional[str]:
    """Best human-readable error text in a carrier response body"""
    if body is None:
        return None
    if isinstance(body, str):
        return body.strip() or None
    if not isinstance(body, dict):
        return None

    for key in ("rmk", "message", "detail", "error_message"):
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()

    error = body.get("error")
    if isinstance(error, str) and error.strip():
        return error.strip()
    if isinstance(error, dict):
        nested = extract_error_message(error)
        if nested:
            return nested
    if isinstance(error, list) and error:
        return "; ".join(str(e) for e in error)

    remarks = body.get("remarks")
    if isinstance(remarks, list) and remarks:
        return "; ".join(str(r) for r in remarks)

    packages = body.get("packages")
    if isinstance(packages, list):
        for package in packages:
            if isinstance(package, dict):
                nested = extract_error_message({"remarks": package.get("remarks")})
                if nested:
                    return nested
    return None


def body_reports_rejection(body: Any) -> Optional[str]:
    """
    Detect a carrier-side rejection inside a 2xx response.

    Returns the rejection message, or None when the body looks successful.
    """
    if not isinstance(body, dict):
        return None

    if body.get("success") is False:
        return extract_error_message(body) or "carrier rejected the request"

    packages = body.get("packages")
    if isinstance(packages, list):
        for package in packages:
            if isinstance(package, dict) and str(package.get("status", "")).lower() == "fail":
                return extract_error_message({"remarks": package.get("remarks")}) or "carrier rejected the package"

    if body.get("error") and body.get("success") is not True:
        return extract_error_message(body) or "carrier rejected the request"
    return None
