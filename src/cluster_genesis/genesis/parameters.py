"""
Genesis parameters.

`GenesisParameters` is the single, validated configuration value a genesis
is built from. The command line constructs it once (optionally on top of a
YAML file) and hands it to `build_from_parameters`; nothing downstream
reads flags or the environment.

Example YAML:

    bootstrapValidator:
    - 0x6c3a...  # identity
    - 0x1f0b...  # vote
    - 0x9e4d...  # stake
    faucetPubkey: 0x2a77...
    faucetLamports: 500000000000000000
    clusterType: development
    hashesPerTick: auto
    enableWarmupEpochs: true
    policy:
      ticksPerSlot: 64
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field, field_validator, model_validator
from pydantic.alias_generators import to_snake
from typing_extensions import Self

from cluster_genesis.config import (
    DEFAULT_BOOTSTRAP_VALIDATOR_LAMPORTS,
    DEFAULT_BOOTSTRAP_VALIDATOR_STAKE_LAMPORTS,
    DEFAULT_FEE_BURN_PERCENT,
    DEFAULT_LAMPORTS_PER_BYTE_YEAR,
    DEFAULT_POLICY,
    DEFAULT_RENT_BURN_PERCENT,
    DEFAULT_RENT_EXEMPTION_THRESHOLD_BPS,
    DEFAULT_TARGET_LAMPORTS_PER_SIGNATURE,
    DEFAULT_TARGET_SIGNATURES_PER_SLOT,
    ClusterPolicy,
)
from cluster_genesis.types import Bytes32, CamelModel

from .cluster_type import ClusterType
from .economics import FeeRateGovernor, InflationPreset, Rent
from .tick_rate import AutoTickRate, FixedTickRate, TickRateMode


def _parse_pubkey(value: Any) -> Any:
    """
    Accept a public key as hex (with or without 0x) or raw bytes.

    YAML parsers read unquoted 0x-prefixed values as integers, so those
    are converted back to 32-byte hex.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        value = f"{value:064x}"
    if isinstance(value, str):
        raw = bytes.fromhex(value.removeprefix("0x"))
        if len(raw) != Bytes32.LENGTH:
            raise ValueError(f"public key must be {Bytes32.LENGTH} bytes, got {len(raw)}")
        return Bytes32(raw)
    return value


def merge_parameters(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """
    Layer `overrides` on top of `base`.

    Keys may be given in camelCase or snake_case. The nested `policy`
    mapping is merged key by key rather than replaced.
    """

    def snake(mapping: dict[str, Any]) -> dict[str, Any]:
        return {to_snake(key): value for key, value in mapping.items()}

    merged = snake(base)
    for key, value in snake(overrides).items():
        if key == "policy" and isinstance(value, dict):
            value = snake(merged.get("policy") or {}) | snake(value)
        merged[key] = value
    return merged


class PrimordialAccount(CamelModel):
    """An extra balance account funded at genesis."""

    model_config = CamelModel.model_config | {"extra": "forbid", "frozen": True}

    pubkey: Bytes32
    lamports: int = Field(ge=0)

    parse_pubkey = field_validator("pubkey", mode="before")(_parse_pubkey)


class GenesisParameters(CamelModel):
    """Everything an operator chooses when creating a cluster."""

    model_config = CamelModel.model_config | {"extra": "forbid", "frozen": True}

    # Identities
    bootstrap_validator: tuple[Bytes32, Bytes32, Bytes32]
    """Identity, vote and stake public keys of the bootstrap validator."""

    bootstrap_stake_authorized_pubkey: Bytes32 | None = None
    """Stake authority of the bootstrap stake account; defaults to the identity."""

    faucet_pubkey: Bytes32 | None = None
    faucet_lamports: int = Field(default=0, ge=0)
    primordial_accounts: tuple[PrimordialAccount, ...] = ()

    # Balances
    bootstrap_validator_lamports: int = Field(default=DEFAULT_BOOTSTRAP_VALIDATOR_LAMPORTS, ge=0)
    bootstrap_validator_stake_lamports: int = Field(
        default=DEFAULT_BOOTSTRAP_VALIDATOR_STAKE_LAMPORTS, ge=0
    )

    # Cluster and timing
    cluster_type: str = ClusterType.MAINNET_BETA.value
    """Validated by the builder, so an unknown name surfaces as its own error."""

    hashes_per_tick: int | Literal["auto"] = "auto"
    enable_warmup_epochs: bool = False
    slots_per_epoch: int | None = Field(default=None, gt=0)
    """Steady-state slots per epoch; defaults depend on the cluster type."""

    creation_time: int | None = Field(default=None, ge=0)
    """Unix timestamp of the genesis; the build time when omitted."""

    # Economics
    lamports_per_byte_year: int = Field(default=DEFAULT_LAMPORTS_PER_BYTE_YEAR, ge=0)
    rent_exemption_threshold_bps: int = Field(default=DEFAULT_RENT_EXEMPTION_THRESHOLD_BPS, ge=0)
    rent_burn_percentage: int = Field(default=DEFAULT_RENT_BURN_PERCENT, ge=0, le=100)
    fee_burn_percentage: int = Field(default=DEFAULT_FEE_BURN_PERCENT, ge=0, le=100)
    target_lamports_per_signature: int = Field(default=DEFAULT_TARGET_LAMPORTS_PER_SIGNATURE, ge=0)
    target_signatures_per_slot: int = Field(default=DEFAULT_TARGET_SIGNATURES_PER_SLOT, ge=0)
    inflation: InflationPreset = InflationPreset.FULL

    # Policy
    policy: ClusterPolicy = DEFAULT_POLICY

    @field_validator(
        "bootstrap_stake_authorized_pubkey", "faucet_pubkey", mode="before"
    )
    @classmethod
    def parse_optional_pubkey(cls, v: Any) -> Any:
        """Convert hex strings (or YAML integers) to public keys."""
        return None if v is None else _parse_pubkey(v)

    @field_validator("bootstrap_validator", mode="before")
    @classmethod
    def parse_bootstrap_validator(cls, v: Any) -> Any:
        """
        Convert the three bootstrap public keys.

        Duplicates are left for the builder, which reports every repeated
        account key the same way.
        """
        if not isinstance(v, (list, tuple)) or len(v) != 3:
            raise ValueError("bootstrap validator needs exactly three public keys")
        return tuple(_parse_pubkey(pubkey) for pubkey in v)

    @field_validator("policy", mode="before")
    @classmethod
    def parse_policy(cls, v: Any) -> Any:
        """Build the policy from a (possibly partial) mapping of overrides."""
        if isinstance(v, dict):
            return ClusterPolicy.model_validate(v)
        return v

    @field_validator("hashes_per_tick", mode="before")
    @classmethod
    def parse_hashes_per_tick(cls, v: Any) -> Any:
        """Accept "auto" in any case, or an integer (checked when the tick rate is resolved)."""
        if isinstance(v, str) and v.strip().lower() == "auto":
            return "auto"
        if isinstance(v, str) and v.strip().lstrip("-").isdigit():
            return int(v.strip())
        return v

    @model_validator(mode="after")
    def validate_faucet(self) -> Self:
        """A funded faucet needs a public key."""
        if self.faucet_lamports and self.faucet_pubkey is None:
            raise ValueError("faucet lamports given without a faucet public key")
        return self

    @property
    def tick_rate_mode(self) -> TickRateMode:
        """The `--hashes-per-tick` choice as a tick-rate mode."""
        if self.hashes_per_tick == "auto":
            return AutoTickRate()
        return FixedTickRate(self.hashes_per_tick)

    def resolved_slots_per_epoch(self, cluster_type: ClusterType) -> int:
        """Explicit slots per epoch, or the policy default for `cluster_type`."""
        if self.slots_per_epoch is not None:
            return self.slots_per_epoch
        if cluster_type is ClusterType.DEVELOPMENT:
            return self.policy.dev_slots_per_epoch
        return self.policy.slots_per_epoch

    def rent(self) -> Rent:
        """Rent built from these parameters."""
        return Rent(
            lamports_per_byte_year=self.lamports_per_byte_year,
            exemption_threshold_bps=self.rent_exemption_threshold_bps,
            burn_percent=self.rent_burn_percentage,
        )

    def fee_rate_governor(self) -> FeeRateGovernor:
        """Fee governor built from these parameters."""
        return FeeRateGovernor.new(
            target_lamports_per_signature=self.target_lamports_per_signature,
            target_signatures_per_slot=self.target_signatures_per_slot,
            burn_percent=self.fee_burn_percentage,
        )

    @classmethod
    def from_yaml_file(cls, path: Path | str, **overrides: Any) -> GenesisParameters:
        """
        Load parameters from a YAML file, then apply `overrides` on top.

        Raises:
            FileNotFoundError: If the file does not exist.
            yaml.YAMLError: If the file is not valid YAML.
            pydantic.ValidationError: If the data fails validation.
        """
        path = Path(path)
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path} must contain a mapping, got {type(data).__name__}")
        return cls.model_validate(merge_parameters(data, overrides))

    @classmethod
    def from_yaml(cls, content: str) -> GenesisParameters:
        """Load parameters from a YAML string."""
        return cls.model_validate(yaml.safe_load(content))
