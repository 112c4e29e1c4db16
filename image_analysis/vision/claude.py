"""ClaudeVisionClient — Anthropic Claude vision backend."""
from anthropic import APITimeoutError, AsyncAnthropic

from image_analysis.constants import MSG_NO_ANALYSIS, VISION_USER_PROMPT
from image_analysis.vision.client import VisionClient, read_local_image, wrap_provider_error


async def _image_block(image_reference: str) -> dict:
    match image_reference.split(":", 1)[0]:
        case "http" | "https":
            return {"type": "image", "source": {"type": "url", "url": image_reference}}
        case "data":
            header, _, data = image_reference.partition(",")
            media_type = header.removeprefix("data:").split(";", 1)[0]
        case _:
            media_type, data = await read_local_image(image_reference)
    return {
        "type": "image",
        "source": {"type": "base64", "media_type": media_type, "data": data},
    }


class ClaudeVisionClient(VisionClient):

    provider = "Anthropic"

    async def analyze(self, image_reference: str) -> str:
        client = AsyncAnthropic(api_key=self._api_key, timeout=self._timeout)
        try:
            image = await _image_block(image_reference)
            message = await client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                system=self._system_prompt,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": VISION_USER_PROMPT},
                            image,
                        ],
                    }
                ],
            )
        except Exception as exc:
            raise wrap_provider_error(self.provider, exc, (APITimeoutError,)) from exc

        text = "".join(
            block.text for block in message.content if getattr(block, "type", None) == "text"
        ).strip()
        return text or MSG_NO_ANALYSIS
