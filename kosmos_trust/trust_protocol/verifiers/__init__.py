"""
Proof verifier backends.

``load_verifier`` builds the backend named by the deployment, falling back to
``KOSMOS_VERIFIER_BACKEND`` and then to the placeholder. A backend module is
imported only when it is selected.
"""

from __future__ import annotations

import logging
import os
from typing import Callable, Dict, Optional

from ..config import DEFAULT_VERIFIER_BACKEND, VERIFIER_BACKEND_ENV_VAR
from ..exceptions import ConfigurationError
from ..interfaces import ProofVerifier

logger = logging.getLogger(__name__)


def _placeholder() -> ProofVerifier:
    from .placeholder import PlaceholderVerifier

    return PlaceholderVerifier()


def _hmac() -> ProofVerifier:
    from .hmac_verifier import HmacVerifier

    return HmacVerifier()


VERIFIER_BACKENDS: Dict[str, Callable[[], ProofVerifier]] = {
    "placeholder": _placeholder,
    "hmac": _hmac,
}


def select_backend(configured: Optional[str] = None) -> str:
    """
    Name of the verifier backend to use.

    An empty setting counts as unset.

    Raises:
        ConfigurationError: If the chosen name is not a known backend
    """
    name = configured or os.getenv(VERIFIER_BACKEND_ENV_VAR) or DEFAULT_VERIFIER_BACKEND
    if name not in VERIFIER_BACKENDS:
        raise ConfigurationError(
            f"Unknown verifier backend {name!r}; "
            f"choose one of {', '.join(sorted(VERIFIER_BACKENDS))}"
        )
    return name


def load_verifier(configured: Optional[str] = None) -> ProofVerifier:
    name = select_backend(configured)
    verifier = VERIFIER_BACKENDS[name]()
    logger.info("Using %s verifier", name)
    return verifier
