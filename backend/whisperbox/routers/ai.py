"""Generative-AI pass-through endpoints: suggestions and moderation replies."""
import logging

from fastapi import APIRouter, Body, Depends, HTTPException, status

from ..ai import DEFAULT_SUGGESTION_PROMPT, GenerationError, TextGenerator, get_text_generator
from ..schemas import ModerationResponse, PromptRequest, SuggestionsResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ai"])


@router.post("/suggest-messages", response_model=SuggestionsResponse)
async def suggest_messages(
    payload: PromptRequest | None = Body(default=None),
    generator: TextGenerator = Depends(get_text_generator),
) -> SuggestionsResponse:
    """Ask the model for '||'-separated conversation starters."""

    prompt = (payload.prompt if payload else None) or DEFAULT_SUGGESTION_PROMPT
    try:
        content = await generator.generate(prompt)
    except GenerationError as exc:
        logger.error("Error in suggest-messages: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate messages",
        ) from exc

    return SuggestionsResponse(content=content)


@router.post(
    "/messages-check",
    response_model=ModerationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def check_message(
    payload: PromptRequest,
    generator: TextGenerator = Depends(get_text_generator),
) -> ModerationResponse:
    """Forward a moderation prompt and return the raw verdict text.

    The caller builds the prompt and interprets the reply; nothing here
    blocks a later /send-message.
    """

    if not payload.prompt or not payload.prompt.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Prompt is required")

    try:
        reply = await generator.generate(payload.prompt)
    except GenerationError as exc:
        logger.error("Moderation check failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get response from the AI provider",
        ) from exc

    return ModerationResponse(response=reply, message="Response generated successfully")
