# File: umlforge/auth_detector.py
"""
NexaFlow UMLForge - Authentication-Entity Detector
===================================================
Heuristic deciding whether the diagram contains a credentialed user
entity, and which of its attributes are the identifier / secret pair.

Precedence is fixed:

1. Class-name gate: the first persistable class (IR order) whose name
   contains a user-like fragment is the candidate. No candidate → no auth.
2. On that class only, the first attribute whose name contains an
   identifier fragment, then the first *other* attribute whose name
   contains a secret fragment. Both are required.

The heuristic lives here, isolated and pure, so the backend and
API-collection generators only consume its result.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from umlforge.models import AttributeSpec, AuthDetection, ClassEntity
from umlforge.naming import fold_ascii

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("umlforge.auth_detector")

USER_NAME_FRAGMENTS: Tuple[str, ...] = (
    "user",
    "usuario",
    "account",
    "cuenta",
    "cliente",
    "client",
)

IDENTIFIER_FRAGMENTS: Tuple[str, ...] = (
    "email",
    "correo",
    "mail",
    "e-mail",
    "username",
)

SECRET_FRAGMENTS: Tuple[str, ...] = (
    "password",
    "contrasena",
    "clave",
    "pass",
    "pwd",
)


def _matches(name: str, fragments: Sequence[str]) -> bool:
    lowered: str = fold_ascii(name).lower()
    return any(fragment in lowered for fragment in fragments)


def find_user_candidate(classes: Iterable[ClassEntity]) -> Optional[ClassEntity]:
    """First persistable class whose name looks like a user."""
    for cls in classes:
        if cls.is_persistable and _matches(cls.name, USER_NAME_FRAGMENTS):
            return cls
    return None


def _first_attribute(
    attributes: Sequence[AttributeSpec],
    fragments: Sequence[str],
    exclude: Optional[str] = None,
) -> Optional[AttributeSpec]:
    for attribute in attributes:
        if attribute.name != exclude and _matches(attribute.name, fragments):
            return attribute
    return None


def detect(classes: Iterable[ClassEntity]) -> AuthDetection:
    """
    Run the heuristic over *classes* (in IR order).

    Returns ``AuthDetection(needs_auth=False)`` unless a user-like class
    carries both an identifier-like and a secret-like attribute.
    """
    candidate: Optional[ClassEntity] = find_user_candidate(classes)
    if candidate is None:
        logger.debug("No user-like class found; authentication disabled.")
        return AuthDetection(needs_auth=False)

    credential: Optional[AttributeSpec] = _first_attribute(
        candidate.attributes, IDENTIFIER_FRAGMENTS
    )
    secret: Optional[AttributeSpec] = _first_attribute(
        candidate.attributes,
        SECRET_FRAGMENTS,
        exclude=credential.name if credential else None,
    )
    if credential is None or secret is None:
        logger.info(
            "Class '%s' looks like a user but lacks %s; authentication disabled.",
            candidate.name,
            "an identifier field" if credential is None else "a secret field",
        )
        return AuthDetection(needs_auth=False)

    logger.info(
        "Authentication entity detected: %s (%s / %s).",
        candidate.name,
        credential.name,
        secret.name,
    )
    return AuthDetection(
        needs_auth=True,
        user_entity=candidate.name,
        credential_field=credential.name,
        secret_field=secret.name,
    )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "USER_NAME_FRAGMENTS",
    "IDENTIFIER_FRAGMENTS",
    "SECRET_FRAGMENTS",
    "find_user_candidate",
    "detect",
]

logger.debug("umlforge.auth_detector loaded.")
