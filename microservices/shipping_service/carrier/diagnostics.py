"""
Carrier auth diagnostics

Pure functions that explain why a pickup request was refused with an
authorization error. The carrier matches warehouses by exact name, so most
failures come down to either token permissions or an invisible difference
in the warehouse name (typographic dashes, zero-width characters, stray
whitespace).
"""

import re
from typing import Any, Dict, List

from .models import AuthDiagnostic, WarehouseNameAnalysis, WarehouseNameCharacter

NON_ASCII_DASHES = {
    "\u2010": "HYPHEN",
    "\u2011": "NON-BREAKING HYPHEN",
    "\u2012": "FIGURE DASH",
    "\u2013": "EN DASH",
    "\u2014": "EM DASH",
    "\u2212": "MINUS SIGN",
}

ZERO_WIDTH_CHARS = {
    "\u200b": "ZERO WIDTH SPACE",
    "\u200c": "ZERO WIDTH NON-JOINER",
    "\u200d": "ZERO WIDTH JOINER",
    "\ufeff": "ZERO WIDTH NO-BREAK SPACE",
}

CAUSE_TOKEN_PERMISSION = "API token lacks pickup permission for this client account"
CAUSE_NAME_MISMATCH = "Warehouse name does not match the name registered in the carrier dashboard"
CAUSE_WAREHOUSE_INACTIVE = "Warehouse is not registered or not active with the carrier"

RECOMMEND_TOKEN = "Check token permissions: confirm the API token is allowed to create pickup requests"
RECOMMEND_TOKEN_EXPIRY = "Verify the API token has not expired or been rotated"
RECOMMEND_NAME_MATCH = "Verify the warehouse name matches the carrier dashboard exactly (case and punctuation)"
RECOMMEND_WAREHOUSE_ACTIVE = "Ensure the warehouse is registered and active with the carrier"
RECOMMEND_COMPARE = "Compare the warehouse name character-by-character with the carrier dashboard"
RECOMMEND_SUPPORT = "Contact carrier support if the name matches exactly and the token is valid"


def _code_point(ch: str) -> str:
    return f"U+{ord(ch):04X}"


def describe_character(ch: str) -> str:
    """Human-readable class of a single character"""
    if ch == " ":
        return "SPACE"
    if ch == "-":
        return "HYPHEN-MINUS"
    if ch in NON_ASCII_DASHES:
        return f"{NON_ASCII_DASHES[ch]} ({_code_point(ch)})"
    if ch in ZERO_WIDTH_CHARS:
        return f"{ZERO_WIDTH_CHARS[ch]} ({_code_point(ch)})"
    if ch.isascii() and ch.isalpha():
        return "UPPERCASE LETTER" if ch.isupper() else "lowercase letter"
    if ch.isascii() and ch.isdigit():
        return "DIGIT"
    return f"SPECIAL CHAR ({_code_point(ch)})"


def normalize_warehouse_name(name: str) -> str:
    """Canonical form used for tolerant comparison"""
    if not name:
        return ""
    cleaned = "".join(ch for ch in name if ch not in ZERO_WIDTH_CHARS)
    cleaned = "".join("-" if ch in NON_ASCII_DASHES else ch for ch in cleaned)
    return re.sub(r"\s+", " ", cleaned.strip())


def analyze_warehouse_name(name: str) -> WarehouseNameAnalysis:
    """
    Character-level report on a warehouse name.

    One issue is reported per offending character (non-ASCII dash,
    zero-width character, other non-ASCII) and one per structural
    condition (empty, leading/trailing whitespace, repeated spaces,
    leading/trailing hyphen). Positions are 1-based.
    """
    name = name or ""
    characters: List[WarehouseNameCharacter] = []
    issues: List[str] = []

    if not name.strip():
        return WarehouseNameAnalysis(
            original=name,
            normalized="",
            length=len(name),
            characters=[],
            potential_issues=["Warehouse name is empty"],
        )

    for index, ch in enumerate(name, start=1):
        characters.append(
            WarehouseNameCharacter(
                position=index,
                char=ch,
                code_point=_code_point(ch),
                description=describe_character(ch),
            )
        )
        if ch in NON_ASCII_DASHES:
            issues.append(
                f"Position {index}: Uses {NON_ASCII_DASHES[ch]} ({_code_point(ch)}) instead of regular hyphen"
            )
        elif ch in ZERO_WIDTH_CHARS:
            issues.append(
                f"Position {index}: Contains invisible {ZERO_WIDTH_CHARS[ch]} ({_code_point(ch)})"
            )
        elif not ch.isascii():
            issues.append(
                f"Position {index}: Non-ASCII character '{ch}' ({_code_point(ch)}) might cause encoding issues"
            )

    if name != name.lstrip():
        issues.append("Warehouse name has leading whitespace")
    if name != name.rstrip():
        issues.append("Warehouse name has trailing whitespace")

    stripped = name.strip()
    if re.search(r"\s{2,}", stripped):
        issues.append("Warehouse name contains multiple consecutive spaces")
    if stripped.startswith("-"):
        issues.append("Warehouse name starts with a hyphen")
    if stripped.endswith("-"):
        issues.append("Warehouse name ends with a hyphen")

    return WarehouseNameAnalysis(
        original=name,
        normalized=normalize_warehouse_name(name),
        length=len(name),
        characters=characters,
        potential_issues=issues,
    )


def diagnose_auth_error(warehouse_name: str, error_message: str = "") -> AuthDiagnostic:
    """
    Diagnostic block for an AUTH_ERROR returned by a pickup request.

    Likely causes are ordered by how strongly the inputs point at them:
    a malformed name puts the name mismatch first, otherwise token
    permission leads.
    """
    analysis = analyze_warehouse_name(warehouse_name)
    lowered = (error_message or "").lower()
    issues: List[str] = []
    recommendations: List[str] = []

    mentions_warehouse = "warehouse" in lowered or "client_warehouse" in lowered or "pickup_location" in lowered
    mentions_token = "token" in lowered or "auth" in lowered or "permission" in lowered or "login" in lowered

    if mentions_warehouse:
        issues.append("Warehouse-related authorization error")
    if mentions_token:
        issues.append("Token-related authorization error")
    if not error_message:
        issues.append("Authorization error without carrier message; exact cause unknown")
    if analysis.potential_issues:
        issues.append("Warehouse name format issues detected")

    if analysis.potential_issues or mentions_warehouse:
        likely_causes = [CAUSE_NAME_MISMATCH, CAUSE_TOKEN_PERMISSION, CAUSE_WAREHOUSE_INACTIVE]
    else:
        likely_causes = [CAUSE_TOKEN_PERMISSION, CAUSE_NAME_MISMATCH, CAUSE_WAREHOUSE_INACTIVE]

    recommendations.append(RECOMMEND_TOKEN)
    if mentions_token:
        recommendations.append(RECOMMEND_TOKEN_EXPIRY)
    if mentions_warehouse:
        recommendations.append(RECOMMEND_NAME_MATCH)
        recommendations.append(RECOMMEND_WAREHOUSE_ACTIVE)
    for issue in analysis.potential_issues:
        recommendations.append(f"Warehouse name: {issue}")
    recommendations.append(RECOMMEND_COMPARE)
    recommendations.append(RECOMMEND_SUPPORT)

    return AuthDiagnostic(
        warehouse_name=warehouse_name,
        error_message=error_message or "",
        name_analysis=analysis,
        issues=issues,
        likely_causes=likely_causes,
        recommendations=recommendations,
    )


def compare_warehouse_names(name1: str, name2: str) -> Dict[str, Any]:
    """Exact and normalized comparison plus per-position differences"""
    name1 = name1 or ""
    name2 = name2 or ""
    exact_match = name1 == name2
    differences = []

    if not exact_match:
        for index in range(max(len(name1), len(name2))):
            char1 = name1[index] if index < len(name1) else "[MISSING]"
            char2 = name2[index] if index < len(name2) else "[MISSING]"
            if char1 != char2:
                differences.append({
                    "position": index + 1,
                    "char1": "[SPACE]" if char1 == " " else char1,
                    "char2": "[SPACE]" if char2 == " " else char2,
                })

    return {
        "exact_match": exact_match,
        "normalized_match": normalize_warehouse_name(name1) == normalize_warehouse_name(name2),
        "differences": differences,
    }


def build_troubleshooting_guide(warehouse_name: str, error_message: str = "") -> str:
    """Plain-text report an operator can read without the raw logs"""
    diagnostic = diagnose_auth_error(warehouse_name, error_message)
    analysis = diagnostic.name_analysis

    lines = [
        "CARRIER PICKUP AUTHORIZATION TROUBLESHOOTING",
        "=" * 44,
        f"Warehouse name sent: {warehouse_name!r}",
        f"Normalized name:     {analysis.normalized!r}",
        f"Length:              {analysis.length}",
        f"Carrier message:     {error_message or '(none)'}",
        "",
        "Character breakdown:",
    ]
    for character in analysis.characters:
        lines.append(f"  {character.position:>3}  {character.char!r:<6} {character.code_point}  {character.description}")

    lines.append("")
    lines.append("Issues:")
    lines.extend(f"  - {issue}" for issue in (diagnostic.issues or ["None detected"]))
    lines.append("")
    lines.append("Likely causes (most likely first):")
    lines.extend(f"  {i}. {cause}" for i, cause in enumerate(diagnostic.likely_causes, start=1))
    lines.append("")
    lines.append("Recommendations:")
    lines.extend(f"  - {rec}" for rec in diagnostic.recommendations)
    return "\n".join(lines)
