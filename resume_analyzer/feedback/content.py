"""Feedback service response shapes and text extraction.

The model response carries its content either as one string or as a list
of typed content blocks. Both shapes are normalized into a small tagged
union before the text is pulled out, so callers never inspect raw types.
"""

from dataclasses import dataclass
from typing import List, Optional, Union

from pydantic import BaseModel


class ContentBlock(BaseModel):
    type: str = "text"
    text: str = ""


class FeedbackMessage(BaseModel):
    content: Union[str, List[ContentBlock]]


class FeedbackResponse(BaseModel):
    message: FeedbackMessage


@dataclass(frozen=True)
class PlainContent:
    text: str


@dataclass(frozen=True)
class BlockContent:
    blocks: List[ContentBlock]


FeedbackContent = Union[PlainContent, BlockContent]


def classify_content(message: FeedbackMessage) -> FeedbackContent:
    if isinstance(message.content, str):
        return PlainContent(text=message.content)
    return BlockContent(blocks=list(message.content))


def extract_text(content: FeedbackContent) -> Optional[str]:
    """Return the response text, or None when a block list is empty.

    For block lists only the first block is read.
    """
    if isinstance(content, PlainContent):
        return content.text
    if isinstance(content, BlockContent):
        if not content.blocks:
            return None
        return content.blocks[0].text
    raise TypeError(f"Unknown feedback content: {type(content).__name__}")
