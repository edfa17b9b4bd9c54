import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from deenly.config import settings
from deenly.errors import ConcurrentRequest, LimitReached, StoreError, ThreadNotFound
from deenly.routers import account, chat, hadiths, memories, threads

logger = logging.getLogger(__name__)

app = FastAPI(title="Deenly")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(threads.router)
app.include_router(chat.router)
app.include_router(memories.router)
app.include_router(hadiths.router)
app.include_router(account.router)


@app.exception_handler(ThreadNotFound)
async def thread_not_found_handler(request: Request, exc: ThreadNotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.warning(f"Store error on {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(LimitReached)
async def limit_reached_handler(request: Request, exc: LimitReached):
    return JSONResponse(
        status_code=429,
        content={"detail": str(exc), "limit_reached": True, "limit": exc.limit},
    )


@app.exception_handler(ConcurrentRequest)
async def concurrent_request_handler(request: Request, exc: ConcurrentRequest):
    return JSONResponse(
        status_code=409, content={"detail": "A response is already being generated"}
    )


@app.get("/health")
async def health():
    return {"status": "ok"}
