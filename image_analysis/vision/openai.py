"""OpenAIVisionClient — OpenAI chat-completions vision backend."""
from openai import APITimeoutError, AsyncOpenAI

from image_analysis.constants import MSG_NO_ANALYSIS, VISION_USER_PROMPT
from image_analysis.vision.client import VisionClient, to_image_url, wrap_provider_error


class OpenAIVisionClient(VisionClient):

    provider = "OpenAI"

    async def analyze(self, image_reference: str) -> str:
        client = AsyncOpenAI(api_key=self._api_key, timeout=self._timeout)
        try:
            image_url = await to_image_url(image_reference)
            response = await client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": self._system_prompt},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": VISION_USER_PROMPT},
                            {"type": "image_url", "image_url": {"url": image_url}},
                        ],
                    },
                ],
                max_tokens=self._max_tokens,
            )
        except Exception as exc:
            raise wrap_provider_error(self.provider, exc, (APITimeoutError,)) from exc

        choices = response.choices or []
        content = choices[0].message.content if choices else None
        return content.strip() if content and content.strip() else MSG_NO_ANALYSIS
