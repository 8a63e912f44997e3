"""
NPI verification against the CMS NPPES NPI Registry.

API documentation: https://npiregistry.cms.hhs.gov/api-page

Registry failures are never raised to the caller. Every outcome, including
timeouts and HTTP errors, comes back as an NPIVerificationResult so the
credentialing workflow can persist a failed verification instead of aborting.
"""
import re
from typing import Dict, List, Optional, Union

import httpx
from pydantic import BaseModel, Field

from app.config.credentialing import CredentialingSettings, get_credentialing_settings
from app.utils.logger import get_logger

logger = get_logger(__name__)

NPI_PATTERN = re.compile(r"^\d{10}$")
# ISO/IEC 7812 card issuer prefix for US health applications
NPI_LUHN_PREFIX = "80840"

INDIVIDUAL_ENUMERATION = "NPI-1"


class NPITaxonomy(BaseModel):
    """One taxonomy (specialty) entry from the registry."""

    code: Optional[str] = None
    description: Optional[str] = None
    primary: bool = False
    license: Optional[str] = None
    state: Optional[str] = None


class NPIVerificationResult(BaseModel):
    """Outcome of an NPI lookup. `valid=False` always carries `error`."""

    valid: bool
    npi_number: Optional[str] = None
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    credentials: Optional[str] = None
    specialty: Optional[str] = None
    specialty_description: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    phone: Optional[str] = None
    enumeration_type: Optional[str] = None
    enumeration_date: Optional[str] = None
    last_updated: Optional[str] = None
    status: Optional[str] = None
    taxonomies: List[NPITaxonomy] = Field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "NPIVerificationResult":
        return cls(valid=False, error=error)


def validate_npi_checksum(npi_number: str) -> bool:
    """
    Validate the Luhn check digit embedded in an NPI.

    The check digit is computed over the nine leading digits prefixed with
    "80840". Working right to left, every second digit (starting with the one
    next to the check digit) is doubled and reduced by 9 when above 9. The
    expected check digit is (10 - sum % 10) % 10.

    This is an offline structural check; it does not prove the NPI exists.

    Args:
        npi_number: 10-digit NPI

    Returns:
        True if the final digit matches the computed check digit
    """
    if not isinstance(npi_number, str) or not NPI_PATTERN.match(npi_number):
        return False

    full_number = NPI_LUHN_PREFIX + npi_number
    total = 0
    double = True

    for char in reversed(full_number[:-1]):
        digit = int(char)
        if double:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
        double = not double

    check_digit = (10 - (total % 10)) % 10
    return check_digit == int(npi_number[-1])


class NPIVerifier:
    """
    Client for the NPI Registry.

    The HTTP client is injected so one connection pool is shared across the
    process (see app/services/credentialing/container.py). When none is given
    a client with the configured timeout is created and owned by the verifier.
    """

    SOURCE = "CMS NPI Registry API"
    DEFAULT_SEARCH_LIMIT = 10
    MAX_SEARCH_LIMIT = 200

    def __init__(
        self,
        settings: Optional[CredentialingSettings] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.settings = settings or get_credentialing_settings()
        self._owns_client = client is None
        self.client = client or httpx.Client(timeout=self.settings.http_timeout)

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def verify_npi(self, npi_number: str) -> NPIVerificationResult:
        """
        Look up a single NPI.

        Args:
            npi_number: 10-digit NPI

        Returns:
            NPIVerificationResult with identity, specialty and address on success;
            `valid=False` with a human-readable `error` otherwise
        """
        npi_number = (npi_number or "").strip()
        if not NPI_PATTERN.match(npi_number):
            return NPIVerificationResult.failure("Invalid NPI format. Must be exactly 10 digits.")

        data = self._query({"number": npi_number})
        if isinstance(data, str):
            return NPIVerificationResult.failure(data)

        results = data.get("results") or []
        if not data.get("result_count") or not results:
            return NPIVerificationResult.failure("NPI number not found in registry")

        result = self._parse_result(results[0], detailed=True)
        logger.info(
            "NPI verified",
            npi=npi_number,
            enumeration_type=result.enumeration_type,
            specialty=result.specialty,
        )
        return result

    def search_npi(
        self,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        organization_name: Optional[str] = None,
        city: Optional[str] = None,
        state: Optional[str] = None,
        postal_code: Optional[str] = None,
        taxonomy_description: Optional[str] = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> List[NPIVerificationResult]:
        """
        Search the registry by name and location.

        Used when a provider does not know their own NPI. Registry failures
        return an empty list.

        Returns:
            Up to `limit` results in the same shape as verify_npi
        """
        criteria = {
            "first_name": first_name,
            "last_name": last_name,
            "organization_name": organization_name,
            "city": city,
            "state": state,
            "postal_code": postal_code,
            "taxonomy_description": taxonomy_description,
        }
        params = {key: value for key, value in criteria.items() if value}
        if not params:
            logger.warning("NPI search called without criteria")
            return []

        limit = max(1, min(limit or self.DEFAULT_SEARCH_LIMIT, self.MAX_SEARCH_LIMIT))
        params["limit"] = limit

        data = self._query(params)
        if isinstance(data, str):
            logger.warning("NPI search failed", error=data, criteria=list(params))
            return []

        results = data.get("results") or []
        return [self._parse_result(raw, detailed=False) for raw in results[:limit]]

    def _query(self, params: Dict) -> Union[Dict, str]:
        """Call the registry; returns the decoded body or an error string."""
        request_params = {"version": self.settings.npi_api_version, **params}
        try:
            response = self.client.get(
                self.settings.npi_api_url,
                params=request_params,
                timeout=self.settings.http_timeout,
            )
        except httpx.TimeoutException:
            logger.error("NPI Registry request timed out", timeout=self.settings.http_timeout)
            return "NPI Registry API error: request timed out"
        except httpx.HTTPError as e:
            logger.error("NPI Registry request failed", error=str(e))
            return f"NPI Registry API error: {e}"

        if response.is_error:
            logger.error(
                "NPI Registry returned an error",
                status_code=response.status_code,
                reason=response.reason_phrase,
            )
            return f"NPI Registry API error: {response.reason_phrase or response.status_code}"

        try:
            data = response.json()
        except ValueError:
            logger.error("NPI Registry returned invalid JSON", status_code=response.status_code)
            return "NPI Registry API error: invalid response body"

        if not isinstance(data, dict):
            return "NPI Registry API error: invalid response body"
        if data.get("Errors"):
            description = data["Errors"][0].get("description", "request rejected")
            return f"NPI Registry API error: {description}"
        return data

    def _parse_result(self, raw: Dict, detailed: bool) -> NPIVerificationResult:
        """
        Convert one registry result into an NPIVerificationResult.

        The primary taxonomy falls back to the first listed; the LOCATION
        address falls back to the first listed. Search results (detailed=False)
        omit street address, phone and last-updated date.
        """
        basic = raw.get("basic") or {}
        taxonomies = raw.get("taxonomies") or []
        addresses = raw.get("addresses") or []

        primary_taxonomy = next((t for t in taxonomies if t.get("primary")), None)
        if primary_taxonomy is None and taxonomies:
            primary_taxonomy = taxonomies[0]

        address = next((a for a in addresses if a.get("address_purpose") == "LOCATION"), None)
        if address is None and addresses:
            address = addresses[0]

        is_individual = raw.get("enumeration_type") == INDIVIDUAL_ENUMERATION

        result = NPIVerificationResult(
            valid=True,
            npi_number=str(raw.get("number")) if raw.get("number") is not None else None,
            enumeration_type="Individual" if is_individual else "Organization",
            enumeration_date=basic.get("enumeration_date"),
            status=basic.get("status"),
        )

        if is_individual:
            result.first_name = basic.get("first_name")
            result.last_name = basic.get("last_name")
            name_parts = [basic.get("first_name"), basic.get("last_name")]
            if detailed:
                name_parts.insert(1, basic.get("middle_name"))
            result.name = " ".join(part for part in name_parts if part) or None
            result.credentials = basic.get("credential")
        else:
            result.name = basic.get("organization_name") or basic.get("name")

        if primary_taxonomy:
            result.specialty = primary_taxonomy.get("code")
            result.specialty_description = primary_taxonomy.get("desc")

        if address:
            result.city = address.get("city")
            result.state = address.get("state")
            result.zip_code = address.get("postal_code")

        if detailed:
            result.last_updated = basic.get("last_updated")
            if address:
                street = [address.get("address_1"), address.get("address_2")]
                result.address = ", ".join(part for part in street if part) or None
                result.phone = address.get("telephone_number")
            result.taxonomies = [
                NPITaxonomy(
                    code=t.get("code"),
                    description=t.get("desc"),
                    primary=bool(t.get("primary")),
                    license=t.get("license"),
                    state=t.get("state"),
                )
                for t in taxonomies
            ]

        return result
