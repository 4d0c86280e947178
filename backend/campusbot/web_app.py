import logging
from typing import Any, Dict

from fastapi import FastAPI

from .admin import router as admin_router
from .chatbot import router as chat_router
from .classifier import CATEGORIES


def create_app() -> FastAPI:
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(name)s - %(message)s')

    app = FastAPI(title="Campus Assistant")
    app.include_router(chat_router)
    app.include_router(admin_router)

    @app.get('/')
    def index() -> Dict[str, Any]:
        return {
            "service": "campus-assistant",
            "chat": "/api/chat",
            "admin": "/api/admin",
            "categories": list(CATEGORIES),
        }

    return app


app = create_app()

if __name__ == '__main__':
    import uvicorn
    uvicorn.run(app, host='0.0.0.0', port=8000)
