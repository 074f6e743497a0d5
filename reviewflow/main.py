import os
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from reviewflow.logging_config import bind_request_context, clear_request_context, configure_logging, get_logger
from reviewflow.routers.scripts import router as scripts_router
from reviewflow.routers.videos import router as videos_router

configure_logging()
logger = get_logger(__name__)

app = FastAPI(title="Review Workflow")

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    bind_request_context(request_id, method=request.method, path=request.url.path)
    try:
        response = await call_next(request)
    finally:
        clear_request_context()
    response.headers["x-request-id"] = request_id
    return response


app.include_router(scripts_router)
app.include_router(videos_router)


@app.get("/")
def health_check():
    return {"status": "ok"}
