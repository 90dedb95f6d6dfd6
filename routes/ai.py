from typing import Any, AsyncIterator, Dict, List, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from app import config
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["ai"])


class ChatMessage(BaseModel):
    role: Optional[str] = None
    content: str = ""


class PredictRequest(BaseModel):
    messages: List[ChatMessage] = []
    model: Optional[str] = None


async def get_ollama() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(base_url=config.OLLAMA_URL, timeout=config.OLLAMA_TIMEOUT_SECONDS) as client:
        yield client


async def generate(client: httpx.AsyncClient, prompt: str, model: Optional[str] = None) -> str:
    """Run a non-streaming completion on the Ollama server."""
    resp = await client.post(
        "/api/generate",
        json={"model": model or config.OLLAMA_MODEL, "prompt": prompt, "stream": False},
    )
    resp.raise_for_status()
    return resp.json().get("response", "")


@router.post("/predict")
async def predict(data: PredictRequest, ollama: httpx.AsyncClient = Depends(get_ollama)) -> Dict[str, Any]:
    prompt = data.messages[0].content if data.messages else ""
    try:
        text = await generate(ollama, prompt, data.model)
    except httpx.HTTPStatusError as e:
        logger.error("ollama_error", status_code=e.response.status_code)
        raise HTTPException(500, f"Ollama API error: {e.response.reason_phrase}")
    except Exception as e:
        logger.error("ollama_unreachable", error=str(e))
        raise HTTPException(500, str(e))

    return {"choices": [{"message": {"content": text}}]}
