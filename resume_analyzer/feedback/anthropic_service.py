"""Feedback services backed by the Anthropic Messages API."""

import base64
import logging
from typing import Optional

import anthropic

from resume_analyzer.feedback.content import (
    ContentBlock,
    FeedbackMessage,
    FeedbackResponse,
)
from resume_analyzer.pipeline.contracts import BlobStore, FeedbackService

logger = logging.getLogger(__name__)


class AnthropicFeedbackService(FeedbackService):
    """Sends the stored résumé PDF plus instructions to Claude.

    The résumé is read back from the blob store by its handle, so the
    service only ever sees what was actually uploaded.
    """

    def __init__(
        self,
        blob_store: BlobStore,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 4096,
        client: Optional[anthropic.AsyncAnthropic] = None,
    ):
        self._blob_store = blob_store
        self._client = client or anthropic.AsyncAnthropic(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens

    async def feedback(
        self, resume_path: str, instructions: str
    ) -> Optional[FeedbackResponse]:
        pdf_bytes = await self._blob_store.download(resume_path)
        document = base64.standard_b64encode(pdf_bytes).decode("ascii")

        response = await self._client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "document",
                            "source": {
                                "type": "base64",
                                "media_type": "application/pdf",
                                "data": document,
                            },
                        },
                        {"type": "text", "text": instructions},
                    ],
                }
            ],
        )
        logger.info(
            f"Feedback from {self.model}: "
            f"{response.usage.input_tokens} in / {response.usage.output_tokens} out tokens"
        )

        blocks = [
            ContentBlock(type="text", text=block.text)
            for block in response.content
            if getattr(block, "type", None) == "text"
        ]
        if not blocks:
            return None
        return FeedbackResponse(message=FeedbackMessage(content=blocks))


class UnavailableFeedbackService(FeedbackService):
    """Used when no model is configured: every request gets no response."""

    async def feedback(self, resume_path: str, instructions: str) -> None:
        logger.warning("No feedback model configured (set ANTHROPIC_API_KEY)")
        return None
