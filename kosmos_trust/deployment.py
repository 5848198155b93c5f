"""
Single-node deployment of the three trust services.

Wires one ledger, one authority provider and one service directory into an
IdentityRegistry, an IssuerAuthority and a ProofGate, and persists the ledger
to a CBOR snapshot between runs. Settings come from an optional YAML file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .trust_protocol.config import DEFAULT_GATE_INSTANCE, DEFAULT_WHITELIST_INSTANCE
from .trust_protocol.directory import ServiceDirectory
from .trust_protocol.exceptions import ConfigurationError
from .trust_protocol.gate import ProofGate
from .trust_protocol.interfaces import AuthorityProvider, ProofVerifier
from .trust_protocol.ledger import Ledger
from .trust_protocol.registry import IdentityRegistry
from .trust_protocol.verifiers import load_verifier
from .trust_protocol.whitelist import IssuerAuthority

logger = logging.getLogger(__name__)

DEFAULT_STATE_PATH = "kosmos_state.cbor"


@dataclass
class DeploymentConfig:
    """
    Deployment settings.

    Attributes:
        state_path: CBOR snapshot file holding the ledger
        verifier_backend: Verifier backend name (None defers to KOSMOS_VERIFIER_BACKEND)
        whitelist_instance: Instance name and directory handle of the whitelist
        gate_instance: Instance name of the proof gate
    """

    state_path: str = DEFAULT_STATE_PATH
    verifier_backend: Optional[str] = None
    whitelist_instance: str = DEFAULT_WHITELIST_INSTANCE
    gate_instance: str = DEFAULT_GATE_INSTANCE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown deployment settings: {', '.join(sorted(unknown))}"
            )
        return cls(**data)


def load_config(path: Union[str, Path]) -> DeploymentConfig:
    """
    Load deployment settings from a YAML file.

    Raises:
        ConfigurationError: If the file is unreadable or malformed
    """
    source = Path(path)
    try:
        with source.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config {source}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {source}: {exc}") from exc

    if data is None:
        return DeploymentConfig()
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config {source} must be a mapping")
    return DeploymentConfig.from_dict(data)


class Deployment:
    """The registry, whitelist and gate sharing one ledger."""

    def __init__(
        self,
        config: DeploymentConfig,
        authority: AuthorityProvider,
        ledger: Optional[Ledger] = None,
        verifier: Optional[ProofVerifier] = None,
    ) -> None:
        self.config = config
        self.ledger = ledger if ledger is not None else Ledger()
        self.authority = authority
        self.directory = ServiceDirectory()

        self.registry = IdentityRegistry(self.ledger, authority)
        self.whitelist = IssuerAuthority(
            self.ledger, authority, instance=config.whitelist_instance
        )
        self.directory.register(config.whitelist_instance, self.whitelist)

        if verifier is None:
            verifier = load_verifier(config.verifier_backend)
        self.gate = ProofGate(
            self.ledger,
            authority,
            self.directory,
            verifier,
            instance=config.gate_instance,
        )

    @classmethod
    def open(
        cls,
        config: DeploymentConfig,
        authority: AuthorityProvider,
        verifier: Optional[ProofVerifier] = None,
    ) -> "Deployment":
        """Load the ledger snapshot if it exists, otherwise start empty."""
        state_path = Path(config.state_path)
        if state_path.exists():
            ledger = Ledger.load(state_path)
            logger.info("Loaded ledger from %s", state_path)
        else:
            ledger = Ledger()
            logger.info("Starting new ledger at %s", state_path)
        return cls(config, authority, ledger=ledger, verifier=verifier)

    def save(self) -> None:
        self.ledger.save(self.config.state_path)
