"""
govrelay Configuration Loader

Loads the relayer configuration once at startup: an optional TOML file,
then environment variables (and the .env file) on top.

Environment variable mapping (each also accepted with a GOVRELAY_ prefix):
    [ledger] rpc_url            → RPC_URL
    [ledger] chain_id           → CHAIN_ID            (fallback NEXT_PUBLIC_CHAIN_ID)
    [contracts] dao_address     → DAO_ADDRESS         (fallback NEXT_PUBLIC_DAO_ADDRESS)
    [contracts] forwarder_address → FORWARDER_ADDRESS (fallback NEXT_PUBLIC_FORWARDER_ADDRESS)
    relayer key                 → RELAYER_PRIVATE_KEY

The relayer key MUST come from the environment, never TOML.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

import httpx
from dotenv import dotenv_values
from eth_account import Account
from eth_utils import is_address, to_checksum_address

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..constants import (
    DEFAULT_CHAIN_ID,
    DEFAULT_RPC_URL,
    RECEIPT_POLL_INTERVAL,
    RECEIPT_TIMEOUT,
    RPC_TIMEOUT,
    SWEEP_CONCURRENCY,
)
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)


# field name → (primary env var, legacy fallbacks)
_ENV_KEYS = {
    "rpc_url": ("RPC_URL", ()),
    "relayer_private_key": ("RELAYER_PRIVATE_KEY", ()),
    "dao_address": ("DAO_ADDRESS", ("NEXT_PUBLIC_DAO_ADDRESS",)),
    "forwarder_address": ("FORWARDER_ADDRESS", ("NEXT_PUBLIC_FORWARDER_ADDRESS",)),
    "chain_id": ("CHAIN_ID", ("NEXT_PUBLIC_CHAIN_ID",)),
    "rpc_timeout": ("RPC_TIMEOUT", ()),
    "receipt_timeout": ("RECEIPT_TIMEOUT", ()),
    "receipt_poll_interval": ("RECEIPT_POLL_INTERVAL", ()),
    "sweep_concurrency": ("SWEEP_CONCURRENCY", ()),
}


def _checksum_or_empty(value: Optional[str], name: str) -> str:
    if not value:
        return ""
    if not is_address(value):
        raise ConfigurationError(f"{name} is not a valid address: {value!r}")
    return to_checksum_address(value)


def _number(data: Mapping[str, Any], key: str, cast: Callable[[Any], Any], default: Any) -> Any:
    value = data.get(key)
    if value is None or value == "":
        return default
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{key} must be a number, got {value!r}")


def _check_rpc_url(value: str) -> None:
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL as e:
        raise ConfigurationError(f"rpc_url is not a valid URL: {value!r} ({e})") from e
    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError(f"rpc_url must be an http(s) URL: {value!r}")


@dataclass(frozen=True)
class RelayerConfig:
    """
    Read-only process-wide configuration.

    Attributes:
        rpc_url:               JSON-RPC endpoint of the node
        relayer_private_key:   Operator key paying for relayed and execution txs
        dao_address:           Governance contract
        forwarder_address:     MinimalForwarder contract
        chain_id:              Expected network identifier
        rpc_timeout:           Seconds per JSON-RPC call
        receipt_timeout:       Seconds to wait for a transaction to be included
        receipt_poll_interval: Seconds between receipt polls
        sweep_concurrency:     Proposals processed in parallel per sweep
    """
    rpc_url: str = DEFAULT_RPC_URL
    relayer_private_key: str = ""
    dao_address: str = ""
    forwarder_address: str = ""
    chain_id: int = DEFAULT_CHAIN_ID
    rpc_timeout: float = RPC_TIMEOUT
    receipt_timeout: float = RECEIPT_TIMEOUT
    receipt_poll_interval: float = RECEIPT_POLL_INTERVAL
    sweep_concurrency: int = SWEEP_CONCURRENCY

    def __post_init__(self):
        _check_rpc_url(self.rpc_url)
        if self.sweep_concurrency < 1:
            raise ConfigurationError("sweep_concurrency must be >= 1")
        if self.receipt_poll_interval <= 0:
            raise ConfigurationError("receipt_poll_interval must be > 0")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RelayerConfig":
        """Build from a flat mapping; unknown keys are ignored."""
        return cls(
            rpc_url=data.get("rpc_url") or DEFAULT_RPC_URL,
            relayer_private_key=data.get("relayer_private_key") or "",
            dao_address=_checksum_or_empty(data.get("dao_address"), "dao_address"),
            forwarder_address=_checksum_or_empty(data.get("forwarder_address"), "forwarder_address"),
            chain_id=_number(data, "chain_id", int, DEFAULT_CHAIN_ID),
            rpc_timeout=_number(data, "rpc_timeout", float, RPC_TIMEOUT),
            receipt_timeout=_number(data, "receipt_timeout", float, RECEIPT_TIMEOUT),
            receipt_poll_interval=_number(data, "receipt_poll_interval", float, RECEIPT_POLL_INTERVAL),
            sweep_concurrency=_number(data, "sweep_concurrency", int, SWEEP_CONCURRENCY),
        )

    @classmethod
    def from_file(cls, path: Path) -> "RelayerConfig":
        return cls.from_dict(read_toml(path))

    # ── Derived ───────────────────────────────────────────────────────

    @property
    def relay_configured(self) -> bool:
        """Relayer key and forwarder address present."""
        return bool(self.relayer_private_key and self.forwarder_address)

    @property
    def daemon_configured(self) -> bool:
        """Relayer key and governance address present."""
        return bool(self.relayer_private_key and self.dao_address)

    @property
    def relayer_address(self) -> Optional[str]:
        if not self.relayer_private_key:
            return None
        try:
            return Account.from_key(self.relayer_private_key).address
        except Exception as e:
            raise ConfigurationError(f"Invalid relayer private key: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        """Public view; never includes the private key."""
        return {
            "rpcUrl": self.rpc_url,
            "daoAddress": self.dao_address,
            "forwarderAddress": self.forwarder_address,
            "chainId": self.chain_id,
            "relayConfigured": self.relay_configured,
            "daemonConfigured": self.daemon_configured,
        }

    def __repr__(self) -> str:
        key = "<set>" if self.relayer_private_key else "<unset>"
        return (
            f"RelayerConfig(rpc_url={self.rpc_url!r}, dao={self.dao_address!r}, "
            f"forwarder={self.forwarder_address!r}, chain_id={self.chain_id}, key={key})"
        )


def read_toml(path: Path) -> Dict[str, Any]:
    """
    Read a TOML file and flatten its [ledger] / [contracts] / [daemon] tables.
    A relayer key found in the file is dropped with a warning.
    """
    with open(path, "rb") as f:
        raw = tomli.load(f)

    flat: Dict[str, Any] = {}
    for section in ("ledger", "contracts", "daemon"):
        flat.update(raw.get(section, {}))
    for key, value in raw.items():
        if not isinstance(value, dict):
            flat[key] = value

    if flat.pop("relayer_private_key", None):
        logger.warning("relayer_private_key in %s ignored; set RELAYER_PRIVATE_KEY instead", path)
    return flat


def _env_overrides(environ: Mapping[str, str], dotenv: Mapping[str, Optional[str]]) -> Dict[str, str]:
    overrides: Dict[str, str] = {}
    for field_name, (primary, fallbacks) in _ENV_KEYS.items():
        keys = (f"GOVRELAY_{primary}", primary, *fallbacks)
        for source in (environ, dotenv):
            value = next((source.get(k) for k in keys if source.get(k)), None)
            if value:
                overrides[field_name] = value
                break
    return overrides


def load_config(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    env_file: Optional[str] = ".env",
) -> RelayerConfig:
    """
    Load the configuration once at process start.

    Precedence: process environment > .env file > TOML file > defaults.
    """
    data: Dict[str, Any] = {}
    if path is not None:
        data.update(read_toml(Path(path)))

    environ = os.environ if environ is None else environ
    dotenv = dotenv_values(env_file) if env_file else {}
    data.update(_env_overrides(environ, dotenv))

    known = {f.name for f in fields(RelayerConfig)}
    config = RelayerConfig.from_dict({k: v for k, v in data.items() if k in known})
    logger.debug("Loaded %r", config)
    return config
