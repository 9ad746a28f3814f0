import os
from dotenv import load_dotenv

from ..constants import DEFAULT_MODEL_NAMES, MODEL_PROVIDERS, VENDOR_FALLBACK_POLICIES

class Config:
    def __init__(self):
        # Load environment variables from .env file, overriding existing env vars
        load_dotenv(override=True)

        self.MODEL_PROVIDER = os.getenv('MODEL_PROVIDER', 'gemini').strip().lower()
        self.GEMINI_API_KEY = os.getenv('GEMINI_API_KEY') or os.getenv('GOOGLE_API_KEY')
        self.OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')

        self.MODEL_NAME = os.getenv('MODEL_NAME') or DEFAULT_MODEL_NAMES.get(self.MODEL_PROVIDER, '')
        self.MODEL_TEMPERATURE = float(os.getenv('MODEL_TEMPERATURE', '0.2'))
        self.MODEL_TIMEOUT_SECONDS = float(os.getenv('MODEL_TIMEOUT_SECONDS', '60'))

        # Comparison rules
        self.VENDOR_FALLBACK_POLICY = os.getenv('VENDOR_FALLBACK_POLICY', 'substitute').strip().lower()
        raw_enforce_allowlist_env = os.getenv('ENFORCE_VENDOR_ALLOWLIST', 'True')
        self.ENFORCE_VENDOR_ALLOWLIST = raw_enforce_allowlist_env.lower() in ('1', 'true', 'yes', 'on')
        self.MARKET_LOCATION = os.getenv('MARKET_LOCATION', 'India,Andhra Pradesh,Visakhapatnam')

        # Server
        self.UPLOAD_DIR = os.getenv('UPLOAD_DIR', 'uploads')
        self.HOST = os.getenv('HOST', '0.0.0.0')
        self.PORT = int(os.getenv('PORT', '5000'))
        self.LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

        self._validate_config()

    @property
    def api_key(self):
        """API key of the selected model provider, or None when unset."""
        if self.MODEL_PROVIDER == 'openai':
            return self.OPENAI_API_KEY
        return self.GEMINI_API_KEY

    def _validate_config(self) -> None:
        """Validate the configuration values."""
        if self.MODEL_PROVIDER not in MODEL_PROVIDERS:
            raise ValueError(f"MODEL_PROVIDER must be one of {', '.join(MODEL_PROVIDERS)}")

        if not self.MODEL_NAME:
            raise ValueError("MODEL_NAME must not be empty")

        if self.MODEL_TIMEOUT_SECONDS <= 0:
            raise ValueError("MODEL_TIMEOUT_SECONDS must be greater than 0")

        if not 0 <= self.MODEL_TEMPERATURE <= 2:
            raise ValueError("MODEL_TEMPERATURE must be between 0 and 2")

        if self.VENDOR_FALLBACK_POLICY not in VENDOR_FALLBACK_POLICIES:
            raise ValueError(f"VENDOR_FALLBACK_POLICY must be one of {', '.join(VENDOR_FALLBACK_POLICIES)}")

        if not 0 < self.PORT < 65536:
            raise ValueError("PORT must be between 1 and 65535")
