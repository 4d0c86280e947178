#!/usr/bin/env python3
"""
Admin CRUD endpoints for campus data
"""

from typing import Any, Dict
from fastapi import APIRouter, Body, Depends, HTTPException, Query

from .data_store import BaseDataStore, check_category
from .errors import CampusAssistantError
from .orchestrator import CampusAssistant, get_campus_assistant

router = APIRouter(prefix="/api/admin", tags=["admin"])


def get_store(assistant: CampusAssistant = Depends(get_campus_assistant)) -> BaseDataStore:
    if assistant.store is None:
        raise HTTPException(status_code=503, detail="Database not initialized")
    return assistant.store


def _http_error(e: CampusAssistantError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/data")
async def get_all_data(collection: str = Query(...), store: BaseDataStore = Depends(get_store)):
    try:
        check_category(collection)
        documents = await store.list_all(collection)
    except CampusAssistantError as e:
        raise _http_error(e)
    documents.sort(key=lambda d: str(d.get("createdAt") or ""), reverse=True)
    return {"success": True, "collection": collection, "count": len(documents), "data": documents}


@router.get("/data/{collection}/{record_id}")
async def get_data_by_id(collection: str, record_id: str, store: BaseDataStore = Depends(get_store)):
    try:
        document = await store.get(collection, record_id)
    except CampusAssistantError as e:
        raise _http_error(e)
    return {"success": True, "collection": collection, "id": record_id, "data": document}


@router.post("/data/{collection}", status_code=201)
async def add_data(collection: str, data: Dict[str, Any] = Body(...),
                   store: BaseDataStore = Depends(get_store)):
    try:
        record_id = await store.add(collection, data)
    except CampusAssistantError as e:
        raise _http_error(e)
    return {"success": True, "collection": collection, "id": record_id,
            "message": "Document added successfully"}


@router.put("/data/{collection}/{record_id}")
async def update_data(collection: str, record_id: str, data: Dict[str, Any] = Body(...),
                      store: BaseDataStore = Depends(get_store)):
    try:
        await store.update(collection, record_id, data)
    except CampusAssistantError as e:
        raise _http_error(e)
    return {"success": True, "collection": collection, "id": record_id,
            "message": "Document updated successfully"}


@router.delete("/data/{collection}/{record_id}")
async def delete_data(collection: str, record_id: str, store: BaseDataStore = Depends(get_store)):
    try:
        await store.delete(collection, record_id)
    except CampusAssistantError as e:
        raise _http_error(e)
    return {"success": True, "collection": collection, "id": record_id,
            "message": "Document deleted successfully"}


@router.get("/search")
async def search_data(collection: str = Query(...), query: str = Query(""),
                      store: BaseDataStore = Depends(get_store)):
    try:
        check_category(collection)
        results = await store.search(collection, query)
    except CampusAssistantError as e:
        raise _http_error(e)
    return {"success": True, "collection": collection, "query": query,
            "count": len(results), "data": results}


@router.get("/stats")
async def get_database_stats(store: BaseDataStore = Depends(get_store)):
    try:
        stats = await store.stats()
    except CampusAssistantError as e:
        raise _http_error(e)
    return {"success": True, **stats}
