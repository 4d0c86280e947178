#!/usr/bin/env python3
"""
Chat API endpoints for the campus assistant
"""

from typing import Optional, List, Dict, Any
from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel

from .errors import CampusAssistantError, DataStoreUnavailable, ValidationError
from .orchestrator import CampusAssistant, get_campus_assistant

router = APIRouter(prefix="/api/chat", tags=["chat"])


class ChatRequest(BaseModel):
    """Chat request model"""
    message: str


class StructuredData(BaseModel):
    query: str
    sections: List[Dict[str, Any]]
    timestamp: str
    totalResults: int
    aiResponse: Optional[str] = None


class ChatResponse(BaseModel):
    """Chat response model"""
    success: bool
    message: str
    data: StructuredData
    aiResponse: str
    totalResults: int
    timestamp: str
    requestId: str


@router.post("", response_model=ChatResponse)
async def chat(
        request: ChatRequest,
        assistant: CampusAssistant = Depends(get_campus_assistant),
        x_user_id: Optional[str] = Header(default=None),
):
    """
    Match the message against campus data and attach an AI reply
    """
    try:
        return await assistant.handle_message(request.message, user_id=x_user_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DataStoreUnavailable as e:
        raise HTTPException(status_code=503, detail=f"Service unavailable: {e}")
    except CampusAssistantError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/health")
async def health_check(assistant: CampusAssistant = Depends(get_campus_assistant)):
    """
    Health check endpoint
    """
    if assistant.store is None:
        return {"status": "unhealthy", "error": "Database not initialized"}
    try:
        stats = await assistant.store.stats()
    except CampusAssistantError as e:
        return {"status": "unhealthy", "error": str(e)}

    models = getattr(assistant.generator, "models", None)
    return {
        "status": "healthy",
        "models": models or [],
        "documents": stats["totalDocuments"],
        "retriever": type(assistant.retriever).__name__,
    }
