"""Pydantic models for the Docaroo Care Navigation Data API.

Defines the billing code types, the validated request values sent to the
API and the typed responses decoded from it. Field names are snake_case in
Python and camelCase on the wire.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .errors import InvalidRequestError

# The API rejects bulk lookups above this size
MAX_NPIS_PER_REQUEST = 10

# Plan used by the API's published examples
DEFAULT_PLAN_ID = "942404110"

NPI_PATTERN = re.compile(r"^\d{10}$")

# CMS health industry prefix applied before the Luhn check
NPI_LUHN_PREFIX = "80840"


class CodeType(str, Enum):
    """Medical billing code standards supported by the API."""

    CPT = "CPT"  # Current Procedural Terminology
    NDC = "NDC"  # National Drug Code
    HCPCS = "HCPCS"  # Healthcare Common Procedure Coding System
    RC = "RC"  # Revenue Code
    ICD = "ICD"  # International Classification of Diseases
    MS_DRG = "MS-DRG"  # Medicare Severity DRG
    R_DRG = "R-DRG"  # Refined DRG
    S_DRG = "S-DRG"  # Severity DRG
    APS_DRG = "APS-DRG"  # All Patient Severity DRG
    AP_DRG = "AP-DRG"  # All Patient DRG
    APR_DRG = "APR-DRG"  # All Patient Refined DRG
    APC = "APC"  # Ambulatory Payment Classification
    LOCAL = "LOCAL"
    EAPG = "EAPG"  # Enhanced Ambulatory Patient Grouping
    HIPPS = "HIPPS"  # Health Insurance Prospective Payment System
    CDT = "CDT"  # Current Dental Terminology
    CSTM_ALL = "CSTM-ALL"

    @classmethod
    def parse(cls, value: str | CodeType) -> CodeType:
        """Resolve an API token such as "ms-drg" or "MS_DRG" to a CodeType.

        Raises:
            ValueError: If the token is not a known code type
        """
        if isinstance(value, cls):
            return value
        token = str(value).strip().upper().replace("_", "-")
        try:
            return cls(token)
        except ValueError:
            raise ValueError(f"Unknown code type: '{value}'") from None


def _luhn_valid(npi: str) -> bool:
    total = 0
    for i, digit in enumerate(reversed(NPI_LUHN_PREFIX + npi)):
        n = int(digit)
        if i % 2 == 1:
            n *= 2
            if n > 9:
                n -= 9
        total += n
    return total % 10 == 0


def validate_npi(npi: str, check_luhn: bool = False) -> bool:
    """Check that an NPI is well formed.

    Args:
        npi: National Provider Identifier
        check_luhn: Also verify the check digit (Luhn over the 80840 prefix)

    Returns:
        True if the NPI is exactly 10 digits (and passes the check digit
        test when requested)
    """
    if not isinstance(npi, str) or not NPI_PATTERN.match(npi):
        return False
    if check_luhn:
        return _luhn_valid(npi)
    return True


def _normalize_npis(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, Iterable):
        raise ValueError("npis must be a list of NPI strings")

    npis = tuple(str(npi).strip() for npi in value)

    if not npis:
        raise ValueError("At least one NPI must be provided")
    if len(npis) > MAX_NPIS_PER_REQUEST:
        raise ValueError(
            f"Maximum {MAX_NPIS_PER_REQUEST} NPIs allowed per request, got {len(npis)}"
        )
    for npi in npis:
        if not validate_npi(npi):
            raise ValueError(
                f"Invalid NPI format: '{npi}'. NPIs must be 10-digit numbers"
            )
    seen: set[str] = set()
    for npi in npis:
        if npi in seen:
            raise ValueError(f"Duplicate NPI: '{npi}'")
        seen.add(npi)
    return npis


def _validation_message(exc: ValidationError) -> str:
    """Flatten a pydantic ValidationError into one readable line."""
    parts = []
    for error in exc.errors():
        msg = error.get("msg", "")
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, ") :]
        field = ".".join(str(loc) for loc in error.get("loc", ()))
        parts.append(f"{field}: {msg}" if field else msg)
    return "; ".join(parts)


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _RequestModel(_WireModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )

    npis: tuple[str, ...]
    condition_code: str

    @field_validator("npis", mode="before")
    @classmethod
    def validate_npis(cls, v: Any) -> tuple[str, ...]:
        """Enforce 1-10 unique, 10-digit NPIs."""
        return _normalize_npis(v)

    @field_validator("condition_code", mode="before")
    @classmethod
    def validate_condition_code(cls, v: Any) -> str:
        """Condition code must be a non-empty string."""
        if v is None or not str(v).strip():
            raise ValueError("Condition code cannot be empty")
        return str(v).strip()

    @classmethod
    def _build(cls, **fields: Any) -> Any:
        try:
            return cls(**{k: v for k, v in fields.items() if v is not None})
        except ValidationError as e:
            raise InvalidRequestError(_validation_message(e)) from e

    @classmethod
    def from_mapping(cls, fields: Mapping[str, Any]) -> Any:
        """Build from a mapping keyed by field name or wire (camelCase) name.

        Raises:
            InvalidRequestError: If a field is unknown or fails validation
        """
        return cls._build(**{str(k): v for k, v in fields.items()})

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the JSON body expected by the API."""
        return self.model_dump(by_alias=True, mode="json")


class PricingRequest(_RequestModel):
    """Request for in-network contracted rates."""

    plan_id: str = DEFAULT_PLAN_ID
    code_type: CodeType = CodeType.CPT

    @field_validator("plan_id", mode="before")
    @classmethod
    def validate_plan_id(cls, v: Any) -> str:
        """Plan ID (EIN, HIOS ID or custom plan ID) must not be blank."""
        if not str(v).strip():
            raise ValueError("Plan ID cannot be empty")
        return str(v).strip()

    @field_validator("code_type", mode="before")
    @classmethod
    def validate_code_type(cls, v: Any) -> CodeType:
        return CodeType.parse(v)

    @classmethod
    def build(
        cls,
        npis: Iterable[str] | str,
        condition_code: str,
        plan_id: str | None = None,
        code_type: CodeType | str | None = None,
    ) -> PricingRequest:
        """Build a validated pricing request.

        Omitted plan_id and code_type fall back to DEFAULT_PLAN_ID and CPT.

        Raises:
            InvalidRequestError: If any field fails validation
        """
        return cls._build(
            npis=npis,
            condition_code=condition_code,
            plan_id=plan_id,
            code_type=code_type,
        )


class LikelihoodRequest(_RequestModel):
    """Request for procedure likelihood scores."""

    code_type: str = CodeType.CPT.value

    @field_validator("code_type", mode="before")
    @classmethod
    def validate_code_type(cls, v: Any) -> str:
        """Accept a CodeType or any non-empty code type token."""
        if isinstance(v, CodeType):
            return v.value
        if v is None or not str(v).strip():
            raise ValueError("Code type cannot be empty")
        return str(v).strip()

    @classmethod
    def build(
        cls,
        npis: Iterable[str] | str,
        condition_code: str,
        code_type: CodeType | str | None = None,
    ) -> LikelihoodRequest:
        """Build a validated likelihood request (code type defaults to CPT).

        Raises:
            InvalidRequestError: If any field fails validation
        """
        return cls._build(npis=npis, condition_code=condition_code, code_type=code_type)


# --- Responses ---


class RateData(_WireModel):
    """Contracted rate for one billing code."""

    code: str
    code_type: str
    negotiated_type: str | None = None
    avg_rate: float
    min_rate: float | None = None
    max_rate: float | None = None
    instances: int | None = None


class PricingMeta(_WireModel):
    request_id: str
    processing_time_ms: int
    plan_id: str | None = None
    payer: str | None = None
    timestamp: datetime | None = None
    in_network_records_count: int | None = None


class PricingResponse(_WireModel):
    """Rates keyed by NPI, in the order the API returned them."""

    data: dict[str, list[RateData]]
    meta: PricingMeta

    @property
    def npis(self) -> list[str]:
        return list(self.data)

    def rates_for(self, npi: str) -> list[RateData]:
        """Get the rates returned for an NPI (empty if none)."""
        return self.data.get(npi, [])

    def average_rate(self, npi: str) -> float | None:
        """Mean of avg_rate across all rate records for an NPI."""
        rates = self.rates_for(npi)
        if not rates:
            return None
        return sum(r.avg_rate for r in rates) / len(rates)


class LikelihoodData(_WireModel):
    code: str
    code_type: str
    likelihood: float = Field(ge=0.0, le=1.0)


class LikelihoodMeta(_WireModel):
    request_id: str
    processing_time_ms: int
    timestamp: datetime | None = None
    out_of_network_records_count: int | None = None


class LikelihoodResponse(_WireModel):
    """Likelihood scores keyed by NPI."""

    data: dict[str, LikelihoodData]
    meta: LikelihoodMeta

    @property
    def npis(self) -> list[str]:
        return list(self.data)

    def scores(self) -> dict[str, float]:
        """Map each NPI to its likelihood score."""
        return {npi: item.likelihood for npi, item in self.data.items()}

    def ranked(self) -> list[tuple[str, float]]:
        """NPIs sorted by likelihood, most likely first."""
        return sorted(self.scores().items(), key=lambda kv: kv[1], reverse=True)

    def likely_providers(self, threshold: float = 0.6) -> list[str]:
        """NPIs whose score is at or above threshold, most likely first."""
        return [npi for npi, score in self.ranked() if score >= threshold]


class ErrorResponse(_WireModel):
    """Error body returned by the API on non-2xx responses."""

    error: str
    message: str
    details: Any = None
    request_id: str | None = None
    timestamp: str | None = None


class ConnectionTestResult(BaseModel):
    """Result of probing the API gateway."""

    success: bool
    message: str
    latency_ms: float | None = None
    details: dict[str, Any] = {}


# Score bands used when presenting likelihood results
LIKELIHOOD_BANDS: list[tuple[float, str]] = [
    (0.8, "Highly likely to perform this procedure"),
    (0.6, "Likely to perform this procedure"),
    (0.4, "Moderately likely to perform this procedure"),
    (0.2, "Unlikely to perform this procedure"),
]


def likelihood_label(score: float) -> str:
    """Describe a likelihood score in words."""
    for floor, label in LIKELIHOOD_BANDS:
        if score >= floor:
            return label
    return "Very unlikely to perform this procedure"
