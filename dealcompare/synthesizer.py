from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, List, Optional, TypedDict

from langgraph.graph import StateGraph, END

from .constants import MODEL_POLL_INTERVAL_SECONDS
from .errors import ComparisonError, ModelInvocationError, ModelTimeoutError, RequestCancelledError
from .model_providers import ImagePayload, ModelProvider, get_provider
from .models import ComparisonResult
from .prompt_builder import load_prompt_template
from .synthesizer_nodes import build_comparison_prompt, invoke_model, decode_response, enforce_allowlist
from .utils.cancellation import CancellationToken
from .utils.config import Config
from .utils.logger import get_logger

class SynthesisState(TypedDict, total=False):
    synthesizer: "ComparisonSynthesizer"
    product_name: str
    image: Any
    vendors: Any
    cancel_token: CancellationToken
    allowed_vendors: List[str]
    prompt: str
    raw_response: str
    result: ComparisonResult

def build_synthesis_graph():
    """Compile the prompt -> model -> decode -> allowlist pipeline."""
    graph = StateGraph(state_schema=SynthesisState)
    graph.add_node("build_prompt", build_comparison_prompt)
    graph.add_node("invoke_model", invoke_model)
    graph.add_node("decode_response", decode_response)
    graph.add_node("enforce_allowlist", enforce_allowlist)

    graph.add_edge("build_prompt", "invoke_model")
    graph.add_edge("invoke_model", "decode_response")
    graph.add_edge("decode_response", "enforce_allowlist")
    graph.add_edge("enforce_allowlist", END)

    graph.set_entry_point("build_prompt")
    return graph.compile()

class ComparisonSynthesizer:
    def __init__(self, config: Optional[Config] = None, provider: Optional[ModelProvider] = None):
        self.config = config or Config()
        self.provider = provider or get_provider(self.config)
        self.logger = get_logger(__name__)
        self.prompt_template = load_prompt_template()
        self.graph_app = build_synthesis_graph()

    def synthesize(self, product_name: Optional[str], image=None, vendors: Any = (),
                   cancel_token: Optional[CancellationToken] = None) -> ComparisonResult:
        """
        Produces a price comparison for a product across the given vendors.
        Args:
            product_name (str): Free-text product name, may be empty when an image is given.
            image (UploadedImage): Saved upload with `path` and `mime_type`, or None.
            vendors (List[str]): Allowed vendor names.
            cancel_token (CancellationToken): Aborts the model call when cancelled or expired.
                Defaults to a token expiring after MODEL_TIMEOUT_SECONDS.
        Returns:
            ComparisonResult: The validated comparison.
        """
        if cancel_token is None:
            cancel_token = CancellationToken(timeout=self.config.MODEL_TIMEOUT_SECONDS)

        initial_state = {
            "synthesizer": self,
            "product_name": product_name or "",
            "image": image,
            "vendors": vendors,
            "cancel_token": cancel_token
        }

        try:
            result = self.graph_app.invoke(initial_state)
        except ComparisonError as e:
            self.logger.error(f"Comparison synthesis failed: {e.to_log_dict()}", exc_info=True)
            raise
        except Exception as e:
            self.logger.error(f"Comparison synthesis failed: {e}", exc_info=True)
            raise

        comparison = result["result"]
        self.logger.info(f"Comparison ready: {len(comparison.deals)} deals, best deal: {comparison.best_deal is not None}")
        return comparison

    def call_model(self, prompt: str, image: Optional[ImagePayload], cancel_token: CancellationToken) -> str:
        """Run the single model call on a worker thread, giving up when the token is cancelled or expires."""
        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(self.provider.generate, prompt, image)
        try:
            while True:
                done, _ = wait([future], timeout=MODEL_POLL_INTERVAL_SECONDS)
                if done:
                    break
                if cancel_token.cancelled:
                    raise RequestCancelledError("Model call abandoned: request was cancelled")
                if cancel_token.expired:
                    raise ModelTimeoutError("Model call exceeded its deadline")
        finally:
            # A call still in flight runs to completion on its own thread; its result is discarded
            executor.shutdown(wait=False, cancel_futures=True)

        try:
            return future.result()
        except ComparisonError:
            raise
        except Exception as e:
            raise ModelInvocationError(f"Model call failed: {e}") from e

def initialize_synthesizer():
    """
    Loads the configuration and builds the ComparisonSynthesizer for it.
    Returns:
        Tuple: config, synthesizer
    """
    config = Config()
    logger = get_logger(__name__)
    if not config.api_key:
        logger.warning(f"No API key set for model provider '{config.MODEL_PROVIDER}'; searches will fail until one is configured.")
    synthesizer = ComparisonSynthesizer(config=config)
    return config, synthesizer

def format_best_deal(result: ComparisonResult) -> str:
    """Formats the best deal for display."""
    best = result.best_deal
    if best is None:
        return "No best deal could be identified."
    return f"\nBest Deal:\n{best.product_name} - {best.best_price} at {best.best_vendor}\n{best.best_vendor_link}"

def format_display_results(result: ComparisonResult) -> str:
    """Formats the deals for display."""
    if not result.deals:
        return "No deals to display."

    output_lines = ["\nDeals:"]
    for i, deal in enumerate(result.deals, 1):
        coupon = f" (coupon: {deal.coupon})" if deal.coupon else ""
        output_lines.append(f"\n{i}. {deal.vendor} - {deal.price or 'N/A'}{coupon} ( Rating: {deal.rating or 'N/A'} ) \n\n{deal.vendor_url or 'URL not available'}\n")
        output_lines.append("-" * 80)
    return "\n".join(output_lines)
