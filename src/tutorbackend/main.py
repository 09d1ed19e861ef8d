from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from typing import List, Optional
from contextlib import asynccontextmanager
import logging

from .config import Settings, get_settings
from .context import ContextAssembler
from .database.conversations import ConversationStore
from .database.models import ChatResponse, Conversation, ConversationStats, Message
from .exceptions import AccessError, StorageError, ValidationError
from .memory import create_window_store
from .prompts import load_template
from .registry import ConversationRegistry
from .services.llm import BaseLLM, create_llm
from .tutor import TutorService

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


class StartConversationRequest(BaseModel):
    title: Optional[str] = None


class AskRequest(BaseModel):
    question: str
    user_name: Optional[str] = None


class DeleteAllResponse(BaseModel):
    deleted: int


def build_service(settings: Settings, llm: Optional[BaseLLM] = None) -> TutorService:
    """Wire the tutor service. A template that fails to load aborts startup."""
    template = load_template(settings.prompt_template_path)
    windows = create_window_store(settings)
    registry = ConversationRegistry(ConversationStore(settings.database_url), windows)
    assembler = ContextAssembler(
        template, recap_size=settings.recap_size, quote_limit=settings.quote_limit
    )
    return TutorService(
        registry=registry,
        windows=windows,
        assembler=assembler,
        llm=llm or create_llm(settings),
        settings=settings,
    )


def create_app(settings: Optional[Settings] = None, llm: Optional[BaseLLM] = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.tutor = build_service(settings, llm)
        logger.info(
            f"Tutor service ready: window={settings.window_backend}"
            f"({settings.window_capacity}), llm={settings.llm_provider}"
        )
        yield

    app = FastAPI(title="Tutor Backend", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    return app


def get_tutor(request: Request) -> TutorService:
    return request.app.state.tutor


router = APIRouter(prefix="/api/tutor")


@asynccontextmanager
async def tutor_errors():
    """Map service exceptions onto HTTP responses"""
    try:
        yield
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except AccessError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except StorageError as e:
        logger.error(f"Storage failure: {e.message}")
        raise HTTPException(status_code=500, detail="Storage error")


@router.post("/start/{user_id}", response_model=Conversation)
async def start_conversation(
    user_id: str,
    request: Optional[StartConversationRequest] = None,
    title: Optional[str] = None,
    tutor: TutorService = Depends(get_tutor),
):
    chosen = title if title is not None else (request.title if request else None)
    async with tutor_errors():
        return await tutor.start_conversation(user_id, chosen or "")


@router.get("/list/{user_id}", response_model=List[Conversation])
async def list_conversations(user_id: str, tutor: TutorService = Depends(get_tutor)):
    async with tutor_errors():
        return await tutor.list_conversations(user_id)


@router.get("/conversations/{user_id}/{conversation_id}", response_model=ConversationStats)
async def get_conversation(
    user_id: str, conversation_id: str, tutor: TutorService = Depends(get_tutor)
):
    async with tutor_errors():
        return await tutor.get_conversation(user_id, conversation_id)


@router.post("/ask/{user_id}/{conversation_id}", response_model=ChatResponse)
async def ask_question(
    user_id: str,
    conversation_id: str,
    request: AskRequest,
    tutor: TutorService = Depends(get_tutor),
):
    async with tutor_errors():
        return await tutor.ask(user_id, conversation_id, request.question, request.user_name or "")


@router.get("/history/{user_id}/{conversation_id}", response_model=List[Message])
async def get_history(
    user_id: str, conversation_id: str, tutor: TutorService = Depends(get_tutor)
):
    async with tutor_errors():
        return await tutor.get_history(user_id, conversation_id)


@router.delete("/clear/{user_id}/{conversation_id}")
async def delete_conversation(
    user_id: str, conversation_id: str, tutor: TutorService = Depends(get_tutor)
):
    async with tutor_errors():
        await tutor.delete_conversation(user_id, conversation_id)
    return {"status": "deleted", "conversation_id": conversation_id}


@router.delete("/clearAll/{user_id}", response_model=DeleteAllResponse)
async def delete_all_conversations(user_id: str, tutor: TutorService = Depends(get_tutor)):
    async with tutor_errors():
        deleted = await tutor.delete_all_conversations(user_id)
    return DeleteAllResponse(deleted=deleted)


@router.get("/health")
async def health_check():
    return {"status": "ok"}


app = create_app()
