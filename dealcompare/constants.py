# Vendor text used when the vendors argument is not a list of names
DEFAULT_VENDORS = ("Flipkart", "Amazon", "Myntra")
DEFAULT_VENDORS_TEXT = ", ".join(DEFAULT_VENDORS)

# substitute: fall back to DEFAULT_VENDORS; reject: fail the request
VENDOR_FALLBACK_POLICIES = ("substitute", "reject")

MODEL_PROVIDERS = ("gemini", "openai")
DEFAULT_MODEL_NAMES = {
    "gemini": "gemini-2.0-flash",
    "openai": "gpt-4o-mini",
}

# Markers a model may wrap around its JSON answer, longest first
CODE_FENCE_MARKERS = ("```json", "```")

# The only error body ever returned to HTTP clients
SEARCH_ERROR_MESSAGE = "Failed to fetch comparison data"

# How often the caller checks the cancellation token while the model call runs
MODEL_POLL_INTERVAL_SECONDS = 0.1
