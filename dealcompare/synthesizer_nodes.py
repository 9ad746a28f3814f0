from .model_providers import load_image_payload
from .prompt_builder import build_prompt, resolve_vendors
from .response_parser import enforce_vendor_allowlist, parse_comparison

def build_comparison_prompt(state: dict) -> dict:
    synthesizer = state["synthesizer"]
    allowed_vendors, vendors_text = resolve_vendors(
        state.get("vendors"), synthesizer.config.VENDOR_FALLBACK_POLICY
    )
    prompt = build_prompt(
        state.get("product_name"),
        vendors_text,
        location=synthesizer.config.MARKET_LOCATION,
        has_image=state.get("image") is not None,
        template=synthesizer.prompt_template,
    )
    return {
        **state,
        "allowed_vendors": allowed_vendors,
        "prompt": prompt
    }


def invoke_model(state: dict) -> dict:
    synthesizer = state["synthesizer"]
    image = state.get("image")
    image_payload = load_image_payload(image.path, image.mime_type) if image is not None else None
    raw_response = synthesizer.call_model(state["prompt"], image_payload, state["cancel_token"])
    return {
        **state,
        "raw_response": raw_response
    }


def decode_response(state: dict) -> dict:
    return {
        **state,
        "result": parse_comparison(state["raw_response"])
    }


def enforce_allowlist(state: dict) -> dict:
    """
    Keeps only the deals whose vendor was allowed by the request, when the
    allowlist is enforced by configuration.
    """
    synthesizer = state["synthesizer"]
    if not synthesizer.config.ENFORCE_VENDOR_ALLOWLIST:
        return state

    state["result"] = enforce_vendor_allowlist(state["result"], state.get("allowed_vendors", []))
    return state
