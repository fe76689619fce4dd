import os
import asyncio
import logging
from contextlib import asynccontextmanager
from dotenv import load_dotenv
load_dotenv()

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import Any, Dict, List, Optional
import httpx

from backend.agents.orchestrator import FallbackOrchestrator, create_orchestrator
from backend.config import Settings
from backend.schemas import TASK_CHAT, TASK_KINDS, TASK_VISION, AnalysisRequest, StructuredResult
from backend.services.images import decode_image_data, prepare_image

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings.from_env()
    # One pooled client for every provider call; per-request timeouts are set by the clients.
    async with httpx.AsyncClient(timeout=settings.provider_timeout_s) as client:
        app.state.settings = settings
        app.state.orchestrator = create_orchestrator(settings, client)
        logger.info("[startup] orchestrator ready (deadline=%.0fs, retries=%d)",
                    settings.deadline_s, settings.max_retries)
        yield
    app.state.orchestrator = None


app = FastAPI(title="KrishiMitra API", version="0.3.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_orchestrator(request: Request) -> FallbackOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        # Lifespan did not run (e.g. mounted under another app); build one per process.
        orchestrator = create_orchestrator(Settings.from_env())
        request.app.state.orchestrator = orchestrator
    return orchestrator


def _language(value: Optional[str]) -> str:
    return (value or "en").strip().lower() or "en"


class AnalyzeImageRequest(BaseModel):
    imageData: Optional[str] = None  # bare base64 or data:image/...;base64,...
    language: Optional[str] = "en"

class AnalyzeImageResponse(BaseModel):
    success: bool
    result: StructuredResult
    rawResponse: Optional[str] = None
    provider: Optional[str] = None

class ChatRequest(BaseModel):
    query: Optional[str] = None
    language: Optional[str] = "en"

class ChatResponse(BaseModel):
    success: bool
    response: str
    provider: Optional[str] = None

class ProviderStatus(BaseModel):
    name: str
    model: str
    configured: bool
    authKind: str
    priority: int

class HealthResponse(BaseModel):
    status: str
    providers: Dict[str, List[ProviderStatus]]


@app.get("/healthz")
def healthz():
    return {"status": "ok"}


@app.get("/health", response_model=HealthResponse)
def health(orchestrator: FallbackOrchestrator = Depends(get_orchestrator)):
    """Which providers are configured, per task. Keys themselves are never returned."""
    providers: Dict[str, List[Dict[str, Any]]] = {task: [] for task in TASK_KINDS}
    for d in orchestrator.descriptors:
        if d.client is None:
            continue
        info = d.client.describe()
        info["priority"] = d.priority
        for task in d.tasks:
            providers.setdefault(task, []).append(info)
    for task in providers:
        providers[task].sort(key=lambda p: p["priority"])
    any_configured = any(p["configured"] for entries in providers.values() for p in entries)
    return {"status": "ok" if any_configured else "degraded", "providers": providers}


@app.post("/analyze-image", response_model=AnalyzeImageResponse)
async def analyze_image(req: AnalyzeImageRequest, orchestrator: FallbackOrchestrator = Depends(get_orchestrator)):
    try:
        payload = decode_image_data(req.imageData or "")
        # Pillow decode/resize runs in a worker thread
        payload = await asyncio.to_thread(prepare_image, payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    resolution = await orchestrator.resolve_detailed(
        AnalysisRequest(task_kind=TASK_VISION, language=_language(req.language), image_payload=payload)
    )
    return AnalyzeImageResponse(
        success=True,
        result=resolution.result,
        rawResponse=resolution.raw_response,
        provider=resolution.provider,
    )


@app.post("/agricultural-chat", response_model=ChatResponse)
async def agricultural_chat(req: ChatRequest, orchestrator: FallbackOrchestrator = Depends(get_orchestrator)):
    query = (req.query or "").strip()
    if not query:
        raise HTTPException(status_code=400, detail="query is required")

    resolution = await orchestrator.resolve_detailed(
        AnalysisRequest(task_kind=TASK_CHAT, language=_language(req.language), text_query=query)
    )
    return ChatResponse(success=True, response=resolution.result.content, provider=resolution.provider)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
