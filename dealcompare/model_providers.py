import base64
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Type, Union

import openai

from .errors import ModelInvocationError, ModelTimeoutError
from .utils.config import Config
from .utils.logger import get_logger

logger = get_logger(__name__)

@dataclass(frozen=True)
class ImagePayload:
    """An image inlined into a model call as base64 text plus its MIME type."""
    data: str
    mime_type: str

    @property
    def raw_bytes(self) -> bytes:
        return base64.b64decode(self.data)

    def as_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"

def load_image_payload(path: Union[str, Path], mime_type: str) -> ImagePayload:
    """Read an image file and encode it for inlining into a model call."""
    data = Path(path).read_bytes()
    return ImagePayload(data=base64.b64encode(data).decode("ascii"), mime_type=mime_type)

class ModelProvider(ABC):
    """Base interface for generative model backends."""
    provider_name: str = "base"

    def __init__(self, config: Config):
        self.config = config
        self.api_key = config.api_key
        self.model = config.MODEL_NAME
        self._client = None

    @abstractmethod
    def _create_client(self):
        ...

    @abstractmethod
    def _generate(self, client, prompt: str, image: Optional[ImagePayload]) -> Optional[str]:
        ...

    def _get_client(self):
        if self._client is None:
            if not self.api_key:
                raise ModelInvocationError(f"No API key configured for model provider '{self.provider_name}'")
            self._client = self._create_client()
        return self._client

    def generate(self, prompt: str, image: Optional[ImagePayload] = None) -> str:
        """Send the prompt (and the optional image) in one call and return the raw answer text."""
        client = self._get_client()
        logger.info(f"Calling {self.provider_name} model={self.model} image={image.mime_type if image else None} prompt_chars={len(prompt)}")
        text = self._generate(client, prompt, image)
        if not text:
            raise ModelInvocationError(f"{self.provider_name} returned an empty response")
        return text

class GeminiModelProvider(ModelProvider):
    """Google Gemini backend using the google-genai SDK."""
    provider_name = "gemini"

    def _create_client(self):
        from google import genai
        from google.genai import types

        return genai.Client(
            api_key=self.api_key,
            http_options=types.HttpOptions(timeout=int(self.config.MODEL_TIMEOUT_SECONDS * 1000)),
        )

    def _generate(self, client, prompt: str, image: Optional[ImagePayload]) -> Optional[str]:
        from google.genai import errors as genai_errors
        from google.genai import types

        contents = [prompt]
        if image is not None:
            contents.append(types.Part.from_bytes(data=image.raw_bytes, mime_type=image.mime_type))

        try:
            response = client.models.generate_content(
                model=self.model,
                contents=contents,
                config=types.GenerateContentConfig(temperature=self.config.MODEL_TEMPERATURE),
            )
        except genai_errors.APIError as e:
            raise ModelInvocationError(
                f"Gemini request failed: {e}", details={"status_code": getattr(e, "code", None)}
            ) from e
        except Exception as e:
            if "timeout" in type(e).__name__.lower():
                raise ModelTimeoutError(f"Gemini request timed out: {e}") from e
            raise ModelInvocationError(f"Gemini request failed: {e}") from e

        return response.text

class OpenAIModelProvider(ModelProvider):
    """OpenAI chat completions backend with vision input."""
    provider_name = "openai"

    def _create_client(self):
        return openai.OpenAI(
            api_key=self.api_key,
            timeout=self.config.MODEL_TIMEOUT_SECONDS,
            max_retries=0,
        )

    def _generate(self, client, prompt: str, image: Optional[ImagePayload]) -> Optional[str]:
        if image is None:
            content = prompt
        else:
            content = [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": image.as_data_url()}},
            ]

        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": content}],
                temperature=self.config.MODEL_TEMPERATURE,
            )
        except openai.APITimeoutError as e:
            raise ModelTimeoutError(f"OpenAI request timed out: {e}") from e
        except openai.OpenAIError as e:
            raise ModelInvocationError(
                f"OpenAI request failed: {e}", details={"status_code": getattr(e, "status_code", None)}
            ) from e

        return response.choices[0].message.content

def get_provider(config: Config) -> ModelProvider:
    """Factory function to get the provider selected by the configuration."""
    providers: Dict[str, Type[ModelProvider]] = {
        "gemini": GeminiModelProvider,
        "openai": OpenAIModelProvider,
    }
    if config.MODEL_PROVIDER not in providers:
        raise ValueError(f"Unknown provider: {config.MODEL_PROVIDER}. Available: {list(providers.keys())}")
    return providers[config.MODEL_PROVIDER](config)
