import pytest

from dealcompare.model_providers import ModelProvider
from dealcompare.utils.config import Config

CONFIG_ENV_VARS = (
    "MODEL_PROVIDER", "GEMINI_API_KEY", "GOOGLE_API_KEY", "OPENAI_API_KEY", "MODEL_NAME",
    "MODEL_TEMPERATURE", "MODEL_TIMEOUT_SECONDS", "VENDOR_FALLBACK_POLICY",
    "ENFORCE_VENDOR_ALLOWLIST", "MARKET_LOCATION", "UPLOAD_DIR", "HOST", "PORT", "LOG_LEVEL",
)

class FakeProvider(ModelProvider):
    """Records every call and answers with a canned response or error."""
    provider_name = "fake"

    def __init__(self, config, response='{"bestDeal": null, "deals": []}', error=None):
        super().__init__(config)
        self.response = response
        self.error = error
        self.calls = []

    def _create_client(self):
        return object()

    def _get_client(self):
        return None

    def _generate(self, client, prompt, image):
        self.calls.append({"prompt": prompt, "image": image})
        if self.error is not None:
            raise self.error
        return self.response

@pytest.fixture
def clean_env(monkeypatch):
    """Start every config from a known environment, ignoring any local .env file."""
    monkeypatch.setattr("dealcompare.utils.config.load_dotenv", lambda **kwargs: None)
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    return monkeypatch

@pytest.fixture
def config(clean_env, tmp_path):
    clean_env.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    clean_env.setenv("MODEL_TIMEOUT_SECONDS", "5")
    return Config()

@pytest.fixture
def fake_provider(config):
    return FakeProvider(config)
