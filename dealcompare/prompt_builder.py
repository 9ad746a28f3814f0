import re
from pathlib import Path
from typing import Any, List, Optional, Tuple

from .constants import DEFAULT_VENDORS, DEFAULT_VENDORS_TEXT
from .errors import InvalidVendorsError
from .utils.logger import get_logger

PROMPT_DIR = Path(__file__).parent / 'prompts'
PLACEHOLDER_PATTERN = re.compile(r'\[(product_name|vendors_text|image_note|location)\]')

IMAGE_ATTACHED_NOTE = "An image of the product is attached to this request."
NO_IMAGE_NOTE = "No image provided."

logger = get_logger(__name__)

def is_vendor_list(vendors: Any) -> bool:
    """True for a list or tuple whose items are all strings."""
    return isinstance(vendors, (list, tuple)) and all(isinstance(v, str) for v in vendors)

def resolve_vendors(vendors: Any, fallback_policy: str = "substitute") -> Tuple[List[str], str]:
    """
    Turn the vendors argument into the allowlist and the text embedded in the prompt.

    Args:
        vendors: Decoded `platforms` value, normally a list of vendor names.
        fallback_policy: "substitute" replaces anything that is not a list of
            names with the default vendors, "reject" raises instead.

    Returns:
        Tuple: allowed vendor names, comma-joined vendor text
    """
    if is_vendor_list(vendors):
        return list(vendors), ", ".join(vendors)

    if fallback_policy == "reject":
        raise InvalidVendorsError(
            "Vendors must be a list of vendor names",
            details={"received_type": type(vendors).__name__},
        )

    logger.warning(f"Vendors argument is not a list of names ({type(vendors).__name__}); using defaults: {DEFAULT_VENDORS_TEXT}")
    return list(DEFAULT_VENDORS), DEFAULT_VENDORS_TEXT

def build_vendors_text(vendors: Any) -> str:
    """Comma-joined vendor names, or the default vendor text for a malformed argument."""
    return resolve_vendors(vendors)[1]

def load_prompt_template(name: str = 'comparison.txt') -> str:
    return (PROMPT_DIR / name).read_text(encoding='utf-8')

def build_prompt(product_name: Optional[str], vendors_text: str, location: str,
                 has_image: bool = False, template: Optional[str] = None) -> str:
    """Fill the comparison prompt template.

    Placeholders are replaced in one pass, so text coming from the user is
    inserted verbatim and never substituted again.
    """
    if template is None:
        template = load_prompt_template()

    values = {
        'product_name': product_name or "",
        'vendors_text': vendors_text,
        'image_note': IMAGE_ATTACHED_NOTE if has_image else NO_IMAGE_NOTE,
        'location': location,
    }
    return PLACEHOLDER_PATTERN.sub(lambda match: values[match.group(1)], template)
