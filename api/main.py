"""
MangaTranslator Core - API FastAPI

API REST para o fatiamento híbrido e a fila de tradução.
Endpoints para fatiar uma tira (/split) e acompanhar itens (/jobs).
"""

import sys
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

# Adiciona raiz do projeto ao path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from fastapi import BackgroundTasks, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field
import uvicorn

from config.settings import (
    CONCURRENCY_LIMIT, RPM_LIMIT, TARGET_CHUNK_HEIGHT,
    SUPPORTED_LANGUAGES, DEFAULT_TARGET_LANGUAGE,
)
from core.constants import ReadingMode, SortOrder
from core.exceptions import InvalidTransitionError, SlicingError, UnknownItemError
from core.logging.setup import get_logger, setup_logging
from core.pipeline import PageSource, TranslationOptions, TranslationPipeline
from core.slicing.hybrid_slicer import HybridSlicer, SlicingOptions
from core.slicing.interfaces import StaticZoneSuggester
from core.translation.echo_worker import EchoWorker
from core.utils.image_ops import decode_image, encode_image

setup_logging()
logger = get_logger("API")

API_VERSION = "1.0.0"


# =============================================================================
# MODELOS PYDANTIC
# =============================================================================

class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str = API_VERSION
    concurrency_limit: int
    rpm_limit: int


class ChunkInfo(BaseModel):
    name: str
    index: int
    top: int
    bottom: int
    height: int


class SplitResponse(BaseModel):
    filename: str
    width: int
    height: int
    cuts: List[int]
    chunks: List[ChunkInfo]
    hints_received: int
    zone_cuts: int
    fallback_cuts: int
    forced_cuts: int


class ItemInfo(BaseModel):
    id: str
    name: str
    page_number: int
    status: str
    has_result: bool
    error: Optional[str] = None
    generation: int
    synthetic: bool
    target_language: Optional[str] = None
    width: int
    height: int


class StatsInfo(BaseModel):
    total: int
    pending: int
    processing: int
    completed: int
    error: int
    progress: float


class JobsResponse(BaseModel):
    items: List[ItemInfo]
    stats: StatsInfo
    context: Dict[str, Any] = Field(default_factory=dict)


class EnqueueResponse(BaseModel):
    queued: int
    item_ids: List[str]
    mode: str
    target_language: str
    message: str


# =============================================================================
# ESTADO GLOBAL
# =============================================================================

pipeline: Optional[TranslationPipeline] = None
runner_active = False


def get_pipeline() -> TranslationPipeline:
    """Retorna instância global do pipeline (lazy loading)."""
    global pipeline
    if pipeline is None:
        logger.info("Criando pipeline de tradução (worker offline)")
        pipeline = TranslationPipeline(worker=EchoWorker())
    return pipeline


async def process_queue():
    """
    Roda o agendador até esvaziar a fila.

    Uma única execução por vez: itens submetidos enquanto ela roda são
    admitidos pelo mesmo laço.
    """
    global runner_active
    if runner_active:
        return
    runner_active = True
    try:
        stats = await get_pipeline().translate_all()
        logger.info(f"Fila vazia: {stats.completed} ok, {stats.error} com erro")
    except Exception as e:
        logger.error(f"Erro no processamento da fila: {e}")
    finally:
        runner_active = False


# =============================================================================
# LIFESPAN
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Gerencia inicialização e shutdown."""
    logger.info("Iniciando MangaTranslator API...")
    _ = get_pipeline()

    yield

    logger.info("Encerrando...")
    global pipeline
    if pipeline:
        await pipeline.scheduler.shutdown()
        pipeline = None


# =============================================================================
# APP FASTAPI
# =============================================================================

app = FastAPI(
    title="MangaTranslator API",
    description="Fatiamento híbrido de tiras longas e fila de tradução com limite de concorrência/RPM",
    version=API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# ENDPOINTS DE SAÚDE
# =============================================================================

@app.get("/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(),
        concurrency_limit=CONCURRENCY_LIMIT,
        rpm_limit=RPM_LIMIT,
    )


# =============================================================================
# FATIAMENTO
# =============================================================================

@app.post("/split", response_model=SplitResponse)
async def split_image(
    file: UploadFile = File(..., description="Imagem da tira vertical"),
    target_height: int = Form(TARGET_CHUNK_HEIGHT),
    zones: Optional[str] = Form(None, description="JSON com zonas seguras"),
):
    """
    Calcula o plano de cortes de uma imagem.

    `zones` é opcional; zonas malformadas são ignoradas e o fallback
    matemático cobre o resto.
    """
    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Arquivo vazio recebido")

    filename = file.filename or "image.png"
    try:
        raster = decode_image(content, filename)
    except SlicingError as e:
        raise HTTPException(status_code=400, detail=f"Formato de imagem inválido: {e}")

    try:
        options = SlicingOptions(target_chunk_height=target_height)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    suggester = StaticZoneSuggester(zones) if zones else None
    slicer = HybridSlicer(suggester=suggester, options=options)
    result = await slicer.slice(
        raster, file.content_type or "image/png", image_bytes=content, name=filename
    )

    return SplitResponse(
        filename=filename,
        width=raster.width,
        height=raster.height,
        cuts=result.cuts,
        chunks=[
            ChunkInfo(
                name=chunk.name_for(filename),
                index=chunk.index,
                top=chunk.top,
                bottom=chunk.bottom,
                height=chunk.height,
            )
            for chunk in result.chunks
        ],
        hints_received=result.hints_received,
        zone_cuts=result.zone_cuts,
        fallback_cuts=result.fallback_cuts,
        forced_cuts=result.forced_cuts,
    )


# =============================================================================
# FILA DE TRADUÇÃO
# =============================================================================

@app.post("/jobs", response_model=EnqueueResponse)
async def enqueue_pages(
    background_tasks: BackgroundTasks,
    files: List[UploadFile] = File(..., description="Imagens das páginas"),
    mode: ReadingMode = Form(ReadingMode.MANGA),
    sort_order: Optional[SortOrder] = Form(None),
    target_language: str = Form(DEFAULT_TARGET_LANGUAGE),
):
    """
    Enfileira um lote de páginas. O processamento roda em background;
    acompanhe por GET /jobs.
    """
    if not files:
        raise HTTPException(status_code=400, detail="Nenhum arquivo enviado")
    if target_language not in SUPPORTED_LANGUAGES:
        raise HTTPException(status_code=422, detail=f"Idioma não suportado: {target_language}")

    sources = []
    for upload in files:
        content = await upload.read()
        sources.append(PageSource(
            name=upload.filename or f"page_{len(sources) + 1}.png",
            data=content,
            mime_type=upload.content_type or "image/png",
        ))

    options = TranslationOptions(mode=mode, sort_order=sort_order, target_language=target_language)
    items = await get_pipeline().prepare_pages(sources, options)
    background_tasks.add_task(process_queue)

    return EnqueueResponse(
        queued=len(items),
        item_ids=[item.id for item in items],
        mode=mode.value,
        target_language=target_language,
        message=f"{len(items)} item(ns) na fila a partir de {len(sources)} arquivo(s)",
    )


@app.get("/jobs", response_model=JobsResponse)
async def list_jobs():
    """Itens na ordem de submissão + contagem por status."""
    current = get_pipeline()
    return JobsResponse(
        items=[ItemInfo(**item.to_dict()) for item in current.items],
        stats=StatsInfo(**current.stats().to_dict()),
        context=current.context.to_dict(),
    )


@app.get("/jobs/{item_id}", response_model=ItemInfo)
async def get_job(item_id: str):
    try:
        item = get_pipeline().scheduler.get(item_id)
    except UnknownItemError:
        raise HTTPException(status_code=404, detail="Item não encontrado")
    return ItemInfo(**item.to_dict())


@app.get("/jobs/{item_id}/result")
async def download_result(item_id: str):
    """Imagem resultante de um item concluído."""
    try:
        item = get_pipeline().scheduler.get(item_id)
    except UnknownItemError:
        raise HTTPException(status_code=404, detail="Item não encontrado")
    if item.result is None:
        raise HTTPException(status_code=409, detail=f"Item ainda sem resultado ({item.status.value})")
    return Response(content=encode_image(item.result, "image/png"), media_type="image/png")


@app.post("/jobs/{item_id}/regenerate", response_model=ItemInfo)
async def regenerate_job(item_id: str, background_tasks: BackgroundTasks):
    """Devolve um item COMPLETED/ERROR à fila."""
    try:
        item = get_pipeline().regenerate(item_id)
    except UnknownItemError:
        raise HTTPException(status_code=404, detail="Item não encontrado")
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    background_tasks.add_task(process_queue)
    return ItemInfo(**item.to_dict())


@app.get("/config/languages")
async def get_languages():
    return {"languages": list(SUPPORTED_LANGUAGES), "default": DEFAULT_TARGET_LANGUAGE}


# =============================================================================
# MAIN
# =============================================================================

if __name__ == "__main__":
    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
        workers=1
    )
