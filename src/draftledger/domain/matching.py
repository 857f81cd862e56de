"""Text matching of statement lines against contacts, savings plans and securities.

All functions are pure: they take the reference data as arguments and never
touch the database.
"""

import re
from functools import lru_cache
from typing import Iterable, Mapping, Optional, Sequence

from draftledger.domain.entities import Contact, SavingsPlan, Security

_UMLAUTS = str.maketrans(
    {"ä": "ae", "ö": "oe", "ü": "ue", "Ä": "Ae", "Ö": "Oe", "Ü": "Ue", "ß": "ss"}
)
_WHITESPACE = re.compile(r"\s+")
_CONTRACT_SEPARATORS = re.compile(r"[\s-]")
_NON_ALNUM = re.compile(r"[^A-Z0-9]")


def normalize_umlauts(text: Optional[str]) -> str:
    """Replace German umlauts and sharp s with their ASCII digraphs."""
    if not text:
        return ""
    return text.translate(_UMLAUTS)


def normalize_text(text: Optional[str], strip_whitespace: bool = False) -> str:
    """Lower-case, umlaut-free form of text used for name comparisons."""
    normalized = normalize_umlauts((text or "").lower().rstrip())
    if strip_whitespace:
        normalized = _WHITESPACE.sub("", normalized)
    return normalized


@lru_cache(maxsize=1024)
def alias_to_regex(pattern: str) -> re.Pattern:
    """Compile a wildcard alias ('*' any run, '?' one char) to a full-string regex."""
    escaped = re.escape(pattern.lower()).replace(r"\*", ".*").replace(r"\?", ".")
    return re.compile(f"^{escaped}$", re.IGNORECASE)


def match_alias(search_text: str, aliases: Mapping[int, Sequence[str]]) -> Optional[int]:
    """Return the contact id of the first alias pattern matching search_text.

    The raw text is tried first, then the same text with all whitespace
    removed.
    """
    for candidate in (search_text, _WHITESPACE.sub("", search_text)):
        for contact_id, patterns in aliases.items():
            for pattern in patterns:
                if not pattern or not pattern.strip():
                    continue
                if alias_to_regex(pattern).match(candidate):
                    return contact_id
    return None


def match_contact(
    search_text: str,
    contacts: Sequence[Contact],
    aliases: Mapping[int, Sequence[str]],
) -> Optional[Contact]:
    """Resolve a normalized search text to a contact.

    Order: exact name, then name contained in the text, then alias patterns.
    """
    if not search_text:
        return None
    named = [(c, normalize_text(c.name)) for c in contacts if c.name and c.name.strip()]

    for contact, name in named:
        if name == search_text:
            return contact
    for contact, name in named:
        if name in search_text:
            return contact

    contact_id = match_alias(search_text, aliases)
    if contact_id is None:
        return None
    for contact in contacts:
        if contact.id == contact_id:
            return contact
    return None


def normalize_contract_number(text: Optional[str]) -> str:
    return _CONTRACT_SEPARATORS.sub("", (text or "").strip()).casefold()


def match_savings_plans(subject: Optional[str], plans: Iterable[SavingsPlan]) -> list[SavingsPlan]:
    """Return all plans whose name or contract number appears in the subject."""
    subject_compact = normalize_text(subject, strip_whitespace=True)
    subject_contract = normalize_contract_number(subject)

    matches = []
    for plan in plans:
        if not plan.name or not plan.name.strip():
            continue
        if normalize_text(plan.name, strip_whitespace=True) in subject_compact:
            matches.append(plan)
            continue
        contract = normalize_contract_number(plan.contract_number)
        if contract and contract in subject_contract:
            matches.append(plan)
    return matches


def normalize_for_security(text: Optional[str]) -> str:
    """Upper-case alphanumeric form used for security matching."""
    return _NON_ALNUM.sub("", normalize_umlauts(text).upper())


def match_securities(
    subject: Optional[str],
    booking_description: Optional[str],
    recipient_name: Optional[str],
    securities: Iterable[Security],
) -> list[Security]:
    """Return securities whose identifier, external code or name occurs in the entry text."""
    haystack = normalize_for_security(
        f"{subject or ''} {booking_description or ''} {recipient_name or ''}"
    )

    def occurs(probe: Optional[str]) -> bool:
        needle = normalize_for_security(probe)
        return bool(needle) and needle in haystack

    return [
        s
        for s in securities
        if occurs(s.identifier) or occurs(s.external_code) or occurs(s.name)
    ]
