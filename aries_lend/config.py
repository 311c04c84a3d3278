"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_MAX_LIST_NODES = 1000

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WalletConfig:
    label: str = ""
    chain: str = ""
    address: str = ""
    profile_address: str | None = None
    protocols: tuple[str, ...] = ()


@dataclass(frozen=True)
class ChainConfig:
    rest_endpoints: tuple[str, ...] = ()
    rest_timeout: int = 30


@dataclass(frozen=True)
class ProtocolConfig:
    chain: str = ""
    contract_address: str = ""
    max_list_nodes: int | None = DEFAULT_MAX_LIST_NODES


@dataclass(frozen=True)
class AppConfig:
    wallets: tuple[WalletConfig, ...] = ()
    chains: dict[str, ChainConfig] = field(default_factory=dict)
    protocols: dict[str, ProtocolConfig] = field(default_factory=dict)
    reserves: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_wallets(raw: list[dict[str, Any]]) -> tuple[WalletConfig, ...]:
    wallets: list[WalletConfig] = []
    for w in raw:
        wallets.append(
            WalletConfig(
                label=w.get("label", ""),
                chain=w.get("chain", ""),
                address=w.get("address", ""),
                profile_address=w.get("profile_address") or None,
                protocols=tuple(w.get("protocols", [])),
            )
        )
    return tuple(wallets)


def _build_chains(raw: dict[str, Any]) -> dict[str, ChainConfig]:
    chains: dict[str, ChainConfig] = {}
    for name, cfg in raw.items():
        chains[name] = ChainConfig(
            rest_endpoints=tuple(cfg.get("rest_endpoints", [])),
            rest_timeout=int(cfg.get("rest_timeout", 30)),
        )
    return chains


def _build_protocols(raw: dict[str, Any]) -> dict[str, ProtocolConfig]:
    protocols: dict[str, ProtocolConfig] = {}
    for name, cfg in raw.items():
        max_nodes = cfg.get("max_list_nodes", DEFAULT_MAX_LIST_NODES)
        protocols[name] = ProtocolConfig(
            chain=cfg.get("chain", ""),
            contract_address=cfg.get("contract_address", ""),
            max_list_nodes=int(max_nodes) if max_nodes is not None else None,
        )
    return protocols


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        wallets=_build_wallets(raw.get("wallets", [])),
        chains=_build_chains(raw.get("chains", {})),
        protocols=_build_protocols(raw.get("protocols", {})),
        reserves=tuple(raw.get("reserves", [])),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.wallets:
        raise ValueError("At least one wallet must be configured")

    for name, chain in cfg.chains.items():
        if not chain.rest_endpoints:
            raise ValueError(f"Chain '{name}' has no REST endpoints")

    for name, proto in cfg.protocols.items():
        if not proto.contract_address:
            raise ValueError(f"Protocol '{name}' has no contract address")
        if proto.chain not in cfg.chains:
            raise ValueError(
                f"Protocol '{name}' references unknown chain '{proto.chain}'"
            )
        if proto.max_list_nodes is not None and proto.max_list_nodes <= 0:
            raise ValueError(f"Protocol '{name}' max_list_nodes must be positive")

    for wallet in cfg.wallets:
        if not wallet.address:
            raise ValueError(f"Wallet '{wallet.label}' has no address")
        if wallet.chain not in cfg.chains:
            raise ValueError(
                f"Wallet '{wallet.label}' references unknown chain '{wallet.chain}'"
            )
        for proto in wallet.protocols:
            if proto not in cfg.protocols:
                raise ValueError(
                    f"Wallet '{wallet.label}' references unknown protocol '{proto}'"
                )
