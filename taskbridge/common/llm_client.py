"""
Provider-agnostic LLM client for the transcript normalizer.

Supports OpenAI, Anthropic, and Google Gemini with a shared text-generation
interface.
"""

from __future__ import annotations

import logging
from typing import Optional

from .config import LLMConfig

logger = logging.getLogger("taskbridge.common.llm_client")


class LLMClient:
    """Unified text generation client across LLM providers."""

    def __init__(
        self,
        provider: str = "openai",
        model: str = "",
        anthropic_api_key: Optional[str] = None,
        openai_api_key: Optional[str] = None,
        google_api_key: Optional[str] = None,
    ) -> None:
        self.provider = (provider or "openai").lower()
        self.model = model
        self._client = None

        if self.provider == "openai":
            if not openai_api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                from openai import OpenAI

                self._client = OpenAI(api_key=openai_api_key)
            except ImportError:
                logger.warning("openai package not installed")
            except Exception as e:
                logger.warning("Failed to initialize OpenAI client: %s", e)
            return

        if self.provider == "anthropic":
            if not anthropic_api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                import anthropic

                self._client = anthropic.Anthropic(api_key=anthropic_api_key)
            except ImportError:
                logger.warning("anthropic package not installed")
            except Exception as e:
                logger.warning("Failed to initialize Anthropic client: %s", e)
            return

        if self.provider == "google":
            if not google_api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                import google.generativeai as genai

                genai.configure(api_key=google_api_key)
                self._client = genai  # Store the module, not a model instance
                self._google_models = {}  # Cache models by system prompt hash
            except ImportError:
                logger.warning("google-generativeai package not installed")
            except Exception as e:
                logger.warning("Failed to initialize Gemini client: %s", e)
            return

        logger.warning("Unsupported LLM provider: %s", self.provider)

    @classmethod
    def from_config(cls, config: LLMConfig) -> "LLMClient":
        models = {
            "openai": config.openai_model,
            "anthropic": config.anthropic_model,
            "google": config.google_model,
        }
        return cls(
            provider=config.provider,
            model=models.get((config.provider or "").lower(), ""),
            anthropic_api_key=config.anthropic_api_key or None,
            openai_api_key=config.openai_api_key or None,
            google_api_key=config.google_api_key or None,
        )

    @property
    def is_available(self) -> bool:
        return self._client is not None

    def generate(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        max_tokens: int = 1024,
        timeout: float = 60.0,
        json_mode: bool = False,
    ) -> str:
        if not self.is_available:
            raise RuntimeError("LLM client is not available")

        if self.provider == "openai":
            messages = []
            if system:
                messages.append({"role": "system", "content": system})
            messages.append({"role": "user", "content": prompt})
            kwargs = {}
            if json_mode:
                kwargs["response_format"] = {"type": "json_object"}
            response = self._client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens,
                messages=messages,
                timeout=timeout,
                **kwargs,
            )
            return (response.choices[0].message.content or "").strip()

        if self.provider == "anthropic":
            response = self._client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                system=system,
                messages=[{"role": "user", "content": prompt}],
                timeout=timeout,
            )
            return response.content[0].text.strip()

        if self.provider == "google":
            import hashlib

            cache_key = hashlib.md5((system or "").encode()).hexdigest()
            if cache_key not in self._google_models:
                kwargs = {"model_name": self.model}
                if system:
                    kwargs["system_instruction"] = system
                self._google_models[cache_key] = self._client.GenerativeModel(**kwargs)
            model = self._google_models[cache_key]
            generation_config = {"max_output_tokens": max_tokens}
            if json_mode:
                generation_config["response_mime_type"] = "application/json"
            response = model.generate_content(
                prompt,
                generation_config=generation_config,
                request_options={"timeout": timeout},
            )
            return response.text.strip()

        raise RuntimeError(f"Unsupported LLM provider: {self.provider}")
