"""
FastAPI main application for the document chat system.
"""
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from docchat.api import chat_api, document_api
from docchat.core.config import configure_logging


load_dotenv()
configure_logging()

app = FastAPI(
    title="Document Chat API",
    description="API for chatting with a local model over ingested PDF documents",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat_api.router)
app.include_router(document_api.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Document Chat API",
        "version": "1.0.0",
        "endpoints": {
            "chat": "/api/chat",
            "models": "/api/models",
            "system_prompt": "/api/system-prompt",
            "documents": "/documents",
            "docs": "/docs"
        }
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


def main():
    """Run the API server with uvicorn."""
    import uvicorn
    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000"))
    )


if __name__ == "__main__":
    main()
