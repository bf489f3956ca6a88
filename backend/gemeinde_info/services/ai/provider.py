"""
OpenAI-compatible Provider

Most hosted and local models (Gemini AI Studio, OpenRouter, Ollama, OpenAI)
speak the OpenAI chat completions format, so a single adapter covers them.
"""

import structlog
from openai import APIConnectionError, APITimeoutError, AsyncOpenAI, RateLimitError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from gemeinde_info.core.config import Settings, settings as default_settings
from gemeinde_info.services.ai.interface import TextGenerationInterface

logger = structlog.get_logger()


class OpenAICompatibleProvider(TextGenerationInterface):
    """Chat completions adapter requesting a JSON object response."""

    def __init__(self, settings: Settings | None = None, client: AsyncOpenAI | None = None):
        self.settings = settings or default_settings
        self._client = client

    @property
    def model_name(self) -> str:
        return self.settings.ai_model

    def _get_client(self) -> AsyncOpenAI:
        """Get or create OpenAI client."""
        if self._client is None:
            self._client = AsyncOpenAI(
                base_url=self.settings.ai_api_url,
                # Local endpoints such as Ollama accept any key
                api_key=self.settings.ai_api_key or "not-required",
                timeout=self.settings.ai_timeout,
                max_retries=0,
            )
        return self._client

    @retry(
        retry=retry_if_exception_type((RateLimitError, APITimeoutError, APIConnectionError)),
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        reraise=True,
    )
    async def generate(self, prompt: str) -> str:
        logger.info("ai_generate_start", model=self.model_name, prompt_len=len(prompt))

        response = await self._get_client().chat.completions.create(
            model=self.settings.ai_model,
            messages=[{"role": "user", "content": prompt}],
            response_format={"type": "json_object"},
            max_tokens=self.settings.ai_max_output_tokens,
            temperature=0,
        )

        content = response.choices[0].message.content or ""

        usage = None
        if response.usage:
            usage = response.usage.total_tokens
        logger.info("ai_generate_success", model=self.model_name, response_len=len(content), total_tokens=usage)

        return content


def create_text_generator(settings: Settings | None = None) -> TextGenerationInterface | None:
    """Provider for the configured endpoint, None when AI is not configured."""
    settings = settings or default_settings
    if not settings.ai_enabled:
        logger.warning("AI extraction not configured, default records will be served")
        return None
    return OpenAICompatibleProvider(settings)
