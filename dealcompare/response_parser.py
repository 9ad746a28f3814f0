import json
from typing import Any, Iterable

from pydantic import ValidationError

from .constants import CODE_FENCE_MARKERS
from .errors import ResponseParseError, SchemaValidationError
from .models import ComparisonResult
from .utils.logger import get_logger

logger = get_logger(__name__)

def strip_code_fences(text: str) -> str:
    """Remove every markdown code fence marker and the surrounding whitespace."""
    for marker in CODE_FENCE_MARKERS:
        text = text.replace(marker, "")
    return text.strip()

def decode_json(text: str) -> Any:
    """Parse the cleaned model answer as JSON."""
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        raise ResponseParseError(
            f"Model response is not valid JSON: {e}",
            details={"response_preview": (text or "")[:200]},
        ) from e

def validate_comparison(payload: Any) -> ComparisonResult:
    """Check the decoded JSON against the comparison schema."""
    try:
        return ComparisonResult.model_validate(payload)
    except ValidationError as e:
        raise SchemaValidationError(
            f"Model response does not match the comparison schema ({e.error_count()} errors)",
            details={"errors": e.errors(include_url=False, include_input=False)},
        ) from e

def parse_comparison(raw_text: str) -> ComparisonResult:
    """Fence-strip, decode and validate a raw model answer."""
    return validate_comparison(decode_json(strip_code_fences(raw_text)))

def _normalize_vendor(name: str) -> str:
    return name.strip().casefold()

def enforce_vendor_allowlist(result: ComparisonResult, allowed_vendors: Iterable[str]) -> ComparisonResult:
    """
    Drop deals from vendors outside the allowlist and clear a best deal that names one.

    Kept deals carry the vendor name exactly as spelled in the allowlist.
    """
    canonical = {}
    for vendor in allowed_vendors:
        canonical.setdefault(_normalize_vendor(vendor), vendor)

    kept = []
    for deal in result.deals:
        vendor = canonical.get(_normalize_vendor(deal.vendor))
        if vendor is None:
            logger.warning(f"Dropping deal from vendor outside the allowlist: '{deal.vendor}'")
        else:
            kept.append(deal.model_copy(update={"vendor": vendor}))

    best_deal = result.best_deal
    if best_deal is not None and best_deal.best_vendor is not None:
        best_vendor = canonical.get(_normalize_vendor(best_deal.best_vendor))
        if best_vendor is None:
            logger.warning(f"Clearing best deal from vendor outside the allowlist: '{best_deal.best_vendor}'")
            best_deal = None
        else:
            best_deal = best_deal.model_copy(update={"best_vendor": best_vendor})

    return result.model_copy(update={"deals": kept, "best_deal": best_deal})
