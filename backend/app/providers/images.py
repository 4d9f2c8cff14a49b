"""
Image-generation providers.

Every provider implements generate(description, subject) -> List[GeneratedImage]
and raises ImageGenerationError on failure. Outbound calls are bounded by
IMAGE_GENERATION_TIMEOUT_SECONDS; nothing is retried.

Providers:
- dalle:  OpenAI images API (single image, remote URL)
- flux:   Replicate predictions API (one or more remote URLs)
- gemini: Gemini image preview via google-genai (inline bytes -> data: URIs)
"""

import base64
import os
from typing import List, Optional

import requests
from requests.exceptions import RequestException
from pydantic import BaseModel
from google import genai
from google.genai import types

from app.providers.image_prompts import build_image_prompt
from app.logging import logger

IMAGE_PROVIDER = os.getenv("IMAGE_PROVIDER", "dalle")
IMAGE_GENERATION_TIMEOUT_SECONDS = float(os.getenv("IMAGE_GENERATION_TIMEOUT_SECONDS", "45"))

OPENAI_IMAGES_URL = "https://api.openai.com/v1/images/generations"
DALLE_MODEL = os.getenv("DALLE_MODEL", "dall-e-3")

REPLICATE_API_URL = "https://api.replicate.com/v1/models"
FLUX_MODEL = os.getenv("FLUX_MODEL", "black-forest-labs/flux-schnell")
FLUX_NUM_OUTPUTS = int(os.getenv("FLUX_NUM_OUTPUTS", "1"))

GEMINI_IMAGE_MODEL = os.getenv("GEMINI_IMAGE_MODEL", "gemini-2.5-flash-image-preview")


class ImageGenerationError(RuntimeError):
    """The provider failed, timed out or returned no usable image."""


class GeneratedImage(BaseModel):
    url: str
    revised_prompt: Optional[str] = None


class ImageGenerator:
    """Base capability: description + subject -> zero or more images."""

    name = "base"

    def generate(self, description: str, subject: str) -> List[GeneratedImage]:
        raise NotImplementedError


def _http_error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}: {response.text[:200]}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    if isinstance(body, dict) and body.get("detail"):
        return str(body["detail"])
    return f"HTTP {response.status_code}"


class DalleImageGenerator(ImageGenerator):
    name = "dalle"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = IMAGE_GENERATION_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key or os.getenv("OPENAI_API_KEY", "")
        self.timeout = timeout
        self.http = session or requests.Session()

    def generate(self, description: str, subject: str) -> List[GeneratedImage]:
        try:
            response = self.http.post(
                OPENAI_IMAGES_URL,
                json={
                    "model": DALLE_MODEL,
                    "prompt": build_image_prompt(description, subject),
                    "n": 1,
                    "size": "1024x1024",
                    "quality": "hd",
                    "style": "natural",
                },
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        except RequestException as e:
            raise ImageGenerationError(str(e)) from e

        if response.status_code != 200:
            raise ImageGenerationError(_http_error_message(response))

        images = [
            GeneratedImage(url=item["url"], revised_prompt=item.get("revised_prompt"))
            for item in response.json().get("data") or []
            if item.get("url")
        ]
        if not images:
            raise ImageGenerationError("No image URL returned from DALL-E")
        return images


class FluxImageGenerator(ImageGenerator):
    name = "flux"

    def __init__(
        self,
        api_token: Optional[str] = None,
        model: str = FLUX_MODEL,
        num_outputs: int = FLUX_NUM_OUTPUTS,
        timeout: float = IMAGE_GENERATION_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.api_token = api_token or os.getenv("REPLICATE_API_TOKEN", "")
        self.model = model
        self.num_outputs = num_outputs
        self.timeout = timeout
        self.http = session or requests.Session()

    def generate(self, description: str, subject: str) -> List[GeneratedImage]:
        try:
            response = self.http.post(
                f"{REPLICATE_API_URL}/{self.model}/predictions",
                json={
                    "input": {
                        "prompt": build_image_prompt(description, subject),
                        "num_outputs": self.num_outputs,
                        "aspect_ratio": "1:1",
                        "output_format": "png",
                    }
                },
                headers={
                    "Authorization": f"Bearer {self.api_token}",
                    "Content-Type": "application/json",
                    # Block until the prediction finishes (bounded by timeout)
                    "Prefer": "wait",
                },
                timeout=self.timeout,
            )
        except RequestException as e:
            raise ImageGenerationError(str(e)) from e

        if response.status_code not in (200, 201):
            raise ImageGenerationError(_http_error_message(response))

        prediction = response.json()
        if prediction.get("error") or prediction.get("status") in ("failed", "canceled"):
            raise ImageGenerationError(
                str(prediction.get("error") or f"Prediction {prediction.get('status')}")
            )

        output = prediction.get("output")
        if isinstance(output, str):
            output = [output]
        if not output:
            raise ImageGenerationError(
                f"No image returned from Replicate (status: {prediction.get('status')})"
            )
        return [GeneratedImage(url=url) for url in output if url]


class GeminiImageGenerator(ImageGenerator):
    name = "gemini"

    def __init__(
        self,
        client: Optional["genai.Client"] = None,
        model: str = GEMINI_IMAGE_MODEL,
        timeout: float = IMAGE_GENERATION_TIMEOUT_SECONDS,
    ):
        self.client = client or genai.Client(
            api_key=os.getenv("GEMINI_API_KEY"),
            http_options=types.HttpOptions(timeout=int(timeout * 1000)),
        )
        self.model = model

    def generate(self, description: str, subject: str) -> List[GeneratedImage]:
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=build_image_prompt(description, subject),
                config=types.GenerateContentConfig(response_modalities=["IMAGE", "TEXT"]),
            )
        except Exception as e:
            raise ImageGenerationError(f"{type(e).__name__}: {e}") from e

        images: List[GeneratedImage] = []
        for candidate in response.candidates or []:
            if candidate.content is None:
                continue
            for part in candidate.content.parts or []:
                inline = getattr(part, "inline_data", None)
                if inline is not None and inline.data:
                    mime_type = inline.mime_type or "image/png"
                    encoded = base64.b64encode(inline.data).decode("utf-8")
                    images.append(GeneratedImage(url=f"data:{mime_type};base64,{encoded}"))

        if not images:
            raise ImageGenerationError("No image data found in Gemini response")
        return images


def build_image_generator(provider: str = IMAGE_PROVIDER) -> ImageGenerator:
    provider = provider.strip().lower()
    if provider == "dalle":
        generator = DalleImageGenerator()
    elif provider == "flux":
        generator = FluxImageGenerator()
    elif provider == "gemini":
        generator = GeminiImageGenerator()
    else:
        raise ValueError(f"Unknown IMAGE_PROVIDER: {provider}")

    logger.info("IMAGE_PROVIDER_CONFIGURED", extra={"provider": generator.name})
    return generator
