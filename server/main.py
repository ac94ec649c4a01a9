import logging
import secrets
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

from fastapi import Depends, FastAPI, File, HTTPException, Query, Request, Response, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import database as db
from config import settings
from functions import legal
from functions.llm import ChatClient, build_chat_client
from functions.readers import FileReference
from functions.util import ChatProcessingError, generate_gpt_response
from models.chat_models import (
    Category, CategoryCreate, CategoryGroupListing, ChatRequest, ChatResponse, ErrorResponse, Gpt,
    GptChatRequest, GptCreate, GptUpdate,
    LegalAnalysisRequest, LegalDraftRequest, LegalReferencesRequest, UploadedDocument, UsageLog,
)

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

ALLOWED_DOCUMENT_EXTENSIONS = {".pdf", ".txt", ".md", ".docx", ".doc", ".rtf", ".csv", ".json"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown: create DB tables, upload dir and the chat client."""
    logger.info("Creating database tables...")
    db.create_tables()
    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
    app.state.chat_client = build_chat_client(settings)
    yield
    app.state.chat_client = None
    logger.info("Application shutdown complete.")


app = FastAPI(
    title="GPT Catalog API",
    description="Catalog of curated GPTs with document-aware chat.",
    version="0.4.0",
    lifespan=lifespan
)


def get_chat_client(request: Request) -> ChatClient:
    return request.app.state.chat_client


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    parts = []
    for err in exc.errors():
        field = ".".join(str(loc) for loc in err["loc"] if loc != "body")
        parts.append(f"{field}: {err['msg']}" if field else err["msg"])
    message = "; ".join(parts)
    return JSONResponse(status_code=422, content={"message": message or "Requisição inválida"})


@app.exception_handler(ChatProcessingError)
async def chat_processing_error_handler(request: Request, exc: ChatProcessingError):
    return JSONResponse(status_code=502, content={"message": exc.message})


def resolve_file_reference(path: str) -> FileReference:
    """Resolve a stored or requested file path inside the upload directory."""
    upload_dir = Path(settings.upload_dir).resolve()
    candidate = Path(path)
    if not candidate.is_absolute():
        candidate = upload_dir / candidate
    candidate = candidate.resolve()
    if upload_dir not in candidate.parents:
        raise HTTPException(status_code=400, detail=f"Arquivo fora do diretório de uploads: {path}")
    return FileReference.from_path(candidate)


def get_gpt_or_404(gpt_id: int) -> dict:
    gpt = db.get_gpt(gpt_id)
    if not gpt:
        raise HTTPException(status_code=404, detail="GPT não encontrado")
    return gpt


# --- API Endpoints ---
@app.post("/documents", response_model=List[UploadedDocument], status_code=201)
async def upload_documents(files: List[UploadFile] = File(...)):
    """Store reference documents on disk for later use as chat context."""
    if len(files) > settings.max_upload_files:
        raise HTTPException(
            status_code=400,
            detail=f"Muitos arquivos. O máximo permitido é {settings.max_upload_files} arquivos por vez."
        )

    max_bytes = settings.max_upload_size_mb * 1024 * 1024
    pending = []
    for file in files:
        extension = Path(file.filename or "").suffix.lower()
        if extension not in ALLOWED_DOCUMENT_EXTENSIONS:
            raise HTTPException(
                status_code=400,
                detail=f"Tipo de arquivo não suportado: {file.filename}. "
                       f"Extensões permitidas: {', '.join(sorted(ALLOWED_DOCUMENT_EXTENSIONS))}"
            )
        # at most one byte past the limit
        data = await file.read(max_bytes + 1)
        if len(data) > max_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"Arquivo muito grande. O tamanho máximo permitido é {settings.max_upload_size_mb}MB."
            )
        pending.append((file.filename, extension, data))

    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().isoformat().replace(":", "-")
    result = []
    for original_name, extension, data in pending:
        stored_name = f"{timestamp}-{secrets.token_hex(8)}{extension}"
        (upload_dir / stored_name).write_bytes(data)
        logger.info("Stored %s as %s (%d bytes)", original_name, stored_name, len(data))
        result.append({"path": stored_name, "original_name": original_name, "size": len(data)})
    return result


@app.get("/models", response_model=List[str])
async def list_models(client: ChatClient = Depends(get_chat_client)):
    return await client.list_models()


@app.post("/chat", response_model=ChatResponse, responses={502: {"model": ErrorResponse}})
async def chat(request: ChatRequest, client: ChatClient = Depends(get_chat_client)):
    """Chat with ad-hoc instructions and reference files."""
    files = [resolve_file_reference(p) for p in request.files]
    answer = await generate_gpt_response(
        client, request.message, request.system_instructions,
        model=request.model, temperature=request.temperature, files=files
    )
    return ChatResponse(message=answer)


@app.post("/gpts", response_model=Gpt, status_code=201)
async def create_gpt(request: GptCreate):
    data = request.model_dump()
    data["model"] = data["model"] or settings.default_model
    return db.add_gpt(data)


@app.get("/gpts", response_model=List[Gpt])
async def list_gpts(category: Optional[str] = None):
    return db.get_gpts(category)


@app.get("/gpts/popular", response_model=List[Gpt])
async def list_popular_gpts(limit: int = 10):
    return db.get_popular_gpts(limit)


@app.get("/gpts/featured", response_model=List[Gpt])
async def list_featured_gpts():
    return db.get_featured_gpts()


@app.get("/gpts/new", response_model=List[Gpt])
async def list_new_gpts(limit: int = 10):
    return db.get_new_gpts(limit)


@app.get("/gpts/{gpt_id}", response_model=Gpt)
async def get_gpt(gpt_id: int):
    """Fetch a GPT, counting the visit."""
    get_gpt_or_404(gpt_id)
    db.increment_gpt_views(gpt_id)
    return db.get_gpt(gpt_id)


@app.put("/gpts/{gpt_id}", response_model=Gpt)
async def update_gpt(gpt_id: int, request: GptUpdate):
    updated = db.update_gpt(gpt_id, request.model_dump(exclude_unset=True))
    if not updated:
        raise HTTPException(status_code=404, detail="GPT não encontrado")
    return updated


@app.delete("/gpts/{gpt_id}", status_code=204)
async def delete_gpt(gpt_id: int):
    if not db.delete_gpt(gpt_id):
        raise HTTPException(status_code=404, detail="GPT não encontrado")
    return Response(status_code=204)


@app.post("/gpts/{gpt_id}/view")
async def register_view(gpt_id: int):
    get_gpt_or_404(gpt_id)
    db.increment_gpt_views(gpt_id)
    return {"success": True}


@app.post("/gpts/{gpt_id}/chat", response_model=ChatResponse, responses={502: {"model": ErrorResponse}})
async def chat_with_gpt(gpt_id: int, request: GptChatRequest, client: ChatClient = Depends(get_chat_client)):
    """Chat with a stored GPT using its instructions, model, temperature and files."""
    gpt = get_gpt_or_404(gpt_id)
    files = [resolve_file_reference(p) for p in gpt["files"]]
    answer = await generate_gpt_response(
        client, request.message, gpt["system_instructions"],
        model=gpt["model"], temperature=gpt["temperature"], files=files
    )
    db.add_usage_log(gpt_id, request.message, answer)
    return ChatResponse(message=answer)


@app.get("/gpts/{gpt_id}/logs", response_model=List[UsageLog])
async def get_gpt_logs(gpt_id: int):
    get_gpt_or_404(gpt_id)
    return db.get_usage_logs(gpt_id)


@app.get("/categories", response_model=Union[List[Category], Dict[str, CategoryGroupListing]])
async def list_categories(only_with_gpts: bool = Query(False, alias="onlyWithGpts"), grouped: bool = False):
    """List categories, optionally only those in use and grouped by area of law."""
    categories = db.get_categories(only_with_gpts=only_with_gpts)
    if not grouped:
        return categories
    result = {}
    for category in categories:
        group = db.CategoryGroup(category["group"])
        listing = result.setdefault(group.value, {"name": db.GROUP_DISPLAY_NAMES[group], "categories": []})
        listing["categories"].append(category)
    return result


@app.post("/categories", response_model=Category, status_code=201)
async def create_category(request: CategoryCreate):
    try:
        return db.add_category(request.model_dump())
    except db.DuplicateCategoryError:
        raise HTTPException(status_code=400, detail=f"Categoria já existe: {request.name}")


@app.post("/legal/analyze", response_model=ChatResponse, responses={502: {"model": ErrorResponse}})
async def analyze_document(request: LegalAnalysisRequest, client: ChatClient = Depends(get_chat_client)):
    return ChatResponse(message=await legal.analyze_legal_document(client, request.text))


@app.post("/legal/draft", response_model=ChatResponse, responses={502: {"model": ErrorResponse}})
async def draft_response(request: LegalDraftRequest, client: ChatClient = Depends(get_chat_client)):
    answer = await legal.draft_legal_response(client, request.case_details, request.response_type)
    return ChatResponse(message=answer)


@app.post("/legal/references", response_model=ChatResponse, responses={502: {"model": ErrorResponse}})
async def legal_references(request: LegalReferencesRequest, client: ChatClient = Depends(get_chat_client)):
    return ChatResponse(message=await legal.get_legal_references(client, request.query))
