import base64
import json
import time

import pytest

from dealcompare.errors import (
    InvalidVendorsError,
    ModelInvocationError,
    ModelTimeoutError,
    RequestCancelledError,
    ResponseParseError,
    SchemaValidationError,
)
from dealcompare.intake import UploadedImage
from dealcompare.synthesizer import ComparisonSynthesizer, format_best_deal, format_display_results
from dealcompare.utils.cancellation import CancellationToken
from dealcompare.utils.config import Config

from conftest import FakeProvider

def _deal(vendor, price="₹399"):
    return {
        "vendor": vendor,
        "price": price,
        "rating": "4.1",
        "coupon": None,
        "couponTag": None,
        "logoUrl": None,
        "vendorUrl": f"https://{vendor.lower()}.example/search?q=sunscreen",
        "buttonStyle": {},
    }

MIXED_RESPONSE = "```json\n" + json.dumps({
    "bestDeal": {
        "productName": "Dot & Key Sunscreen SPF 50",
        "bestPrice": "₹349",
        "bestVendor": "Nykaa",
        "bestVendorLink": "https://nykaa.example/sunscreen",
    },
    "deals": [_deal("Flipkart"), _deal("Amazon", "₹379"), _deal("Nykaa", "₹349")],
}) + "\n```"

def test_empty_response_round_trip(config, fake_provider):
    synthesizer = ComparisonSynthesizer(config=config, provider=fake_provider)
    result = synthesizer.synthesize("Dot & Key Sunscreen SPF 50", None, ["Flipkart", "Amazon"])
    assert result.best_deal is None
    assert result.deals == []
    assert len(fake_provider.calls) == 1
    assert fake_provider.calls[0]["image"] is None
    assert "Flipkart, Amazon" in fake_provider.calls[0]["prompt"]

def test_deals_outside_allowlist_are_dropped(config):
    provider = FakeProvider(config, response=MIXED_RESPONSE)
    synthesizer = ComparisonSynthesizer(config=config, provider=provider)
    result = synthesizer.synthesize("Dot & Key Sunscreen SPF 50", None, ["Flipkart", "Amazon"])
    assert {deal.vendor for deal in result.deals} <= {"Flipkart", "Amazon"}
    assert len(result.deals) == 2
    assert result.best_deal is None

def test_allowlist_enforcement_can_be_disabled(clean_env):
    clean_env.setenv("ENFORCE_VENDOR_ALLOWLIST", "false")
    config = Config()
    provider = FakeProvider(config, response=MIXED_RESPONSE)
    result = ComparisonSynthesizer(config=config, provider=provider).synthesize("sunscreen", None, ["Amazon"])
    assert len(result.deals) == 3
    assert result.best_deal.best_vendor == "Nykaa"

def test_image_is_sent_as_base64_with_mime_type(config, fake_provider, tmp_path):
    image_path = tmp_path / "product.png"
    image_path.write_bytes(b"\x89PNG\r\n\x1a\nfake image")
    image = UploadedImage(path=str(image_path), mime_type="image/png", filename="product.png")

    ComparisonSynthesizer(config=config, provider=fake_provider).synthesize("", image, ["Amazon"])

    call = fake_provider.calls[0]
    assert call["image"].mime_type == "image/png"
    assert call["image"].data == base64.b64encode(b"\x89PNG\r\n\x1a\nfake image").decode("ascii")
    assert "An image of the product is attached" in call["prompt"]

def test_malformed_vendors_use_default_text(config, fake_provider):
    ComparisonSynthesizer(config=config, provider=fake_provider).synthesize("kettle", None, {"not": "a list"})
    assert "Allowed vendors (use ONLY these vendors):\nFlipkart, Amazon, Myntra\n" in fake_provider.calls[0]["prompt"]

def test_malformed_vendors_rejected_without_model_call(clean_env):
    clean_env.setenv("VENDOR_FALLBACK_POLICY", "reject")
    config = Config()
    provider = FakeProvider(config)
    with pytest.raises(InvalidVendorsError):
        ComparisonSynthesizer(config=config, provider=provider).synthesize("kettle", None, "Amazon")
    assert provider.calls == []

def test_invalid_json_fails_with_parse_error(config):
    provider = FakeProvider(config, response="Here are the deals you asked for!")
    with pytest.raises(ResponseParseError):
        ComparisonSynthesizer(config=config, provider=provider).synthesize("kettle", None, ["Amazon"])
    assert len(provider.calls) == 1

def test_schema_mismatch_fails_with_schema_error(config):
    provider = FakeProvider(config, response='{"bestDeal": null, "deals": [{"price": "₹399"}]}')
    with pytest.raises(SchemaValidationError):
        ComparisonSynthesizer(config=config, provider=provider).synthesize("kettle", None, ["Amazon"])

def test_provider_errors_are_model_invocation_errors(config):
    provider = FakeProvider(config, error=ConnectionError("quota exceeded"))
    with pytest.raises(ModelInvocationError, match="quota exceeded"):
        ComparisonSynthesizer(config=config, provider=provider).synthesize("kettle", None, ["Amazon"])
    assert len(provider.calls) == 1

def test_empty_model_answer_is_an_invocation_error(config):
    provider = FakeProvider(config, response="")
    with pytest.raises(ModelInvocationError):
        ComparisonSynthesizer(config=config, provider=provider).synthesize("kettle", None, ["Amazon"])

def test_missing_file_propagates(config, fake_provider, tmp_path):
    image = UploadedImage(path=str(tmp_path / "gone.png"), mime_type="image/png")
    with pytest.raises(FileNotFoundError):
        ComparisonSynthesizer(config=config, provider=fake_provider).synthesize("", image, ["Amazon"])
    assert fake_provider.calls == []

class SlowProvider(FakeProvider):
    def _generate(self, client, prompt, image):
        time.sleep(1.0)
        return super()._generate(client, prompt, image)

def test_model_call_times_out(config):
    synthesizer = ComparisonSynthesizer(config=config, provider=SlowProvider(config))
    with pytest.raises(ModelTimeoutError):
        synthesizer.synthesize("kettle", None, ["Amazon"], cancel_token=CancellationToken(timeout=0.2))

def test_cancelled_request_abandons_model_call(config):
    token = CancellationToken()
    token.cancel()
    synthesizer = ComparisonSynthesizer(config=config, provider=SlowProvider(config))
    with pytest.raises(RequestCancelledError):
        synthesizer.synthesize("kettle", None, ["Amazon"], cancel_token=token)

def test_format_helpers(config):
    provider = FakeProvider(config, response=MIXED_RESPONSE)
    result = ComparisonSynthesizer(config=config, provider=provider).synthesize(
        "sunscreen", None, ["Flipkart", "Amazon", "Nykaa"]
    )
    assert "Nykaa" in format_best_deal(result)
    display = format_display_results(result)
    assert "1. Flipkart - ₹399" in display
    assert "3. Nykaa - ₹349" in display

def test_format_helpers_without_deals(config, fake_provider):
    result = ComparisonSynthesizer(config=config, provider=fake_provider).synthesize("x", None, [])
    assert format_best_deal(result) == "No best deal could be identified."
    assert format_display_results(result) == "No deals to display."

def test_null_rating_reaches_the_caller(config):
    response = json.dumps({"bestDeal": None, "deals": [dict(_deal("Amazon"), rating=None)]})
    provider = FakeProvider(config, response=response)
    result = ComparisonSynthesizer(config=config, provider=provider).synthesize("kettle", None, ["Amazon"])
    assert result.deals[0].rating is None
    assert result.to_response()["deals"][0]["rating"] is None
    assert "Rating: N/A" in format_display_results(result)

def test_vendor_spelling_follows_the_request(config):
    response = json.dumps({"bestDeal": None, "deals": [_deal("amazon "), _deal("FLIPKART")]})
    provider = FakeProvider(config, response=response)
    result = ComparisonSynthesizer(config=config, provider=provider).synthesize(
        "Dot & Key Sunscreen SPF 50", None, ["Flipkart", "Amazon"]
    )
    assert [deal.vendor for deal in result.deals] == ["Amazon", "Flipkart"]
    assert all(deal.vendor in {"Flipkart", "Amazon"} for deal in result.deals)
