from __future__ import annotations
"""
multisig.config - settings for the governance engine

Covers:
- Storage backend URI for the durable KV (sqlite:///path or memory://)
- Governance tuning: ledger seconds per TTL unit, maximum TTL, self address
- Logging format/level/file
- Genesis values used by `multisig init` (admins, threshold, payout wallet)

Environment overrides (all optional; sensible defaults provided):

  # Storage
  MULTISIG_DB_URI=sqlite:///./multisig.db

  # Governance
  MULTISIG_LEDGER_SECONDS=1        # logical time units per TTL step
  MULTISIG_MAX_TTL=0               # 0 = unbounded
  MULTISIG_SELF_ADDRESS=           # governed contract's own address

  # Logging
  MULTISIG_LOG_LEVEL=INFO
  MULTISIG_LOG_FORMAT=json|text
  MULTISIG_LOG_FILE=/var/log/multisig.jsonl

  # Genesis (comma separated admins)
  MULTISIG_GENESIS_ADMINS=alice,bob,carol
  MULTISIG_GENESIS_THRESHOLD=2
  MULTISIG_GENESIS_WALLET=treasury

You can also load from a JSON or YAML file via
`MULTISIG_CONFIG_FILE=/path/to/config.(json|yaml|yml)`.
File values override defaults; environment overrides the file.
"""


from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple
import json
import os
from pathlib import Path

import yaml


# -------------------------- Data classes --------------------------


@dataclass
class StorageSettings:
    """Where governance state lives."""
    uri: str = "sqlite:///multisig.db"

    def validate(self) -> None:
        if not (self.uri.startswith("sqlite://") or self.uri.startswith("memory://")):
            raise ValueError(f"Unsupported storage URI: {self.uri!r}")


@dataclass
class GovernanceSettings:
    """Proposal lifetime and address policy."""
    ledger_seconds: int = 1           # expires_at = now + ttl * ledger_seconds
    max_ttl: int = 0                  # 0 = unbounded
    self_address: Optional[str] = None

    def validate(self) -> None:
        if self.ledger_seconds <= 0:
            raise ValueError("ledger_seconds must be positive.")
        if self.max_ttl < 0:
            raise ValueError("max_ttl must be non-negative (0 = unbounded).")
        if self.self_address is not None and not str(self.self_address).strip():
            raise ValueError("self_address must be non-empty when set.")


@dataclass
class LogSettings:
    level: str = "INFO"
    format: str = "auto"              # auto | json | text
    file: Optional[str] = None

    def validate(self) -> None:
        if self.format not in ("auto", "json", "text"):
            raise ValueError(f"log format must be auto|json|text (got {self.format!r}).")


@dataclass
class GenesisSettings:
    """Bootstrap values consumed once by `initialize`."""
    admins: Tuple[str, ...] = ()
    threshold: int = 1
    wallet: Optional[str] = None

    def validate(self) -> None:
        if self.threshold < 1:
            raise ValueError("genesis threshold must be >= 1.")
        if self.admins and self.threshold > len(self.admins):
            raise ValueError(
                f"genesis threshold {self.threshold} exceeds admin count {len(self.admins)}."
            )
        if len(set(self.admins)) != len(self.admins):
            raise ValueError("genesis admins must be unique.")


@dataclass
class Settings:
    """Top-level configuration container."""
    storage: StorageSettings = field(default_factory=StorageSettings)
    governance: GovernanceSettings = field(default_factory=GovernanceSettings)
    log: LogSettings = field(default_factory=LogSettings)
    genesis: GenesisSettings = field(default_factory=GenesisSettings)

    def validate(self) -> None:
        self.storage.validate()
        self.governance.validate()
        self.log.validate()
        self.genesis.validate()

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["genesis"]["admins"] = list(self.genesis.admins)
        return d


# -------------------------- Loaders --------------------------


def _getenv_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(str(v).replace("_", ""))
    except Exception as e:
        raise ValueError(f"Invalid int for {name}: {v!r}") from e


def _getenv_str(name: str, default: Optional[str]) -> Optional[str]:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    return v


def _split_admins(raw: Any) -> Tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        items = raw.split(",")
    else:
        items = list(raw)
    return tuple(str(a).strip() for a in items if str(a).strip())


def from_env(base: Optional[Settings] = None, prefix: str = "MULTISIG_") -> Settings:
    """
    Build Settings from environment variables, optionally layering on top of `base`.
    """
    cfg = base if base is not None else Settings()

    admins_raw = os.getenv(f"{prefix}GENESIS_ADMINS")
    admins = _split_admins(admins_raw) if admins_raw else cfg.genesis.admins

    new_cfg = Settings(
        storage=StorageSettings(uri=_getenv_str(f"{prefix}DB_URI", cfg.storage.uri) or cfg.storage.uri),
        governance=GovernanceSettings(
            ledger_seconds=_getenv_int(f"{prefix}LEDGER_SECONDS", cfg.governance.ledger_seconds),
            max_ttl=_getenv_int(f"{prefix}MAX_TTL", cfg.governance.max_ttl),
            self_address=_getenv_str(f"{prefix}SELF_ADDRESS", cfg.governance.self_address),
        ),
        log=LogSettings(
            level=_getenv_str(f"{prefix}LOG_LEVEL", cfg.log.level) or cfg.log.level,
            format=_getenv_str(f"{prefix}LOG_FORMAT", cfg.log.format) or cfg.log.format,
            file=_getenv_str(f"{prefix}LOG_FILE", cfg.log.file),
        ),
        genesis=GenesisSettings(
            admins=admins,
            threshold=_getenv_int(f"{prefix}GENESIS_THRESHOLD", cfg.genesis.threshold),
            wallet=_getenv_str(f"{prefix}GENESIS_WALLET", cfg.genesis.wallet),
        ),
    )
    new_cfg.validate()
    return new_cfg


def from_file(path: str | os.PathLike[str]) -> Settings:
    """
    Load settings from a JSON or YAML file.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text or "{}")
    if not isinstance(data, dict):
        raise ValueError(f"config file {p} must contain a mapping at top level")

    storage = data.get("storage", {})
    gov = data.get("governance", {})
    log = data.get("log", {})
    genesis = data.get("genesis", {})

    cfg = Settings(
        storage=StorageSettings(uri=storage.get("uri", StorageSettings().uri)),
        governance=GovernanceSettings(
            ledger_seconds=int(gov.get("ledger_seconds", GovernanceSettings().ledger_seconds)),
            max_ttl=int(gov.get("max_ttl", GovernanceSettings().max_ttl)),
            self_address=gov.get("self_address", GovernanceSettings().self_address),
        ),
        log=LogSettings(
            level=log.get("level", LogSettings().level),
            format=log.get("format", LogSettings().format),
            file=log.get("file", LogSettings().file),
        ),
        genesis=GenesisSettings(
            admins=_split_admins(genesis.get("admins")),
            threshold=int(genesis.get("threshold", GenesisSettings().threshold)),
            wallet=genesis.get("wallet", GenesisSettings().wallet),
        ),
    )
    cfg.validate()
    return cfg


def load() -> Settings:
    """
    Load settings using the following precedence:
      1) File at $MULTISIG_CONFIG_FILE (JSON/YAML)
      2) Environment variables (MULTISIG_*), applied on top of defaults or file values
    """
    file_path = os.getenv("MULTISIG_CONFIG_FILE")
    base = from_file(file_path) if file_path else Settings()
    return from_env(base=base)


# -------------------------- Utilities --------------------------


def pretty(cfg: Optional[Settings] = None) -> str:
    """Return a human-readable JSON string of the current settings."""
    obj = (cfg or load()).to_dict()
    return json.dumps(obj, indent=2, sort_keys=True)


__all__ = [
    "StorageSettings",
    "GovernanceSettings",
    "LogSettings",
    "GenesisSettings",
    "Settings",
    "from_env",
    "from_file",
    "load",
    "pretty",
]
