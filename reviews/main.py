from fastapi import FastAPI, APIRouter, Body, Depends, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlmodel import Session
from contextlib import asynccontextmanager
from typing import List, Optional
import logging

from .config import Settings, get_settings
from .database import Database, crud
from .errors import NotificationError, StoreError, ValidationError
from .models import Review
from .moderation import ModerationHandler, pending_review_keyboard
from .schemas import (
    ErrorResponse,
    FormSubmission,
    ReviewSubmission,
    SeedResponse,
    SeedReview,
    SuccessResponse,
)
from .telegram import TelegramBot, UpdatePoller
from .telegram.messages import PARSE_MODE, form_message, review_message

logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)

VALIDATION_MESSAGES = {
    "/form": "Name and phone are required",
    "/reviews": "Please fill in all fields",
    "/seed-reviews": "Invalid data format",
}
STORE_ERROR_MESSAGE = "DB error"

router = APIRouter()


def get_session(request: Request):
    yield from request.app.state.db.session()


def get_bot(request: Request) -> TelegramBot:
    return request.app.state.bot


def get_moderation(request: Request) -> ModerationHandler:
    return request.app.state.moderation


async def notify_moderators(bot: TelegramBot, chat_id: str, review: Review) -> bool:
    try:
        await bot.send_message(
            chat_id,
            review_message(review.name, review.text, review.rating),
            parse_mode=PARSE_MODE,
            reply_markup=pending_review_keyboard(review)
        )
    except NotificationError as e:
        # The row stays pending without a prompt; it can be approved only by hand
        logger.error(f"Moderation prompt for review ID {review.id} was not delivered: {e}")
        return False
    logger.info(f"Moderation prompt sent for review ID {review.id}")
    return True


@router.post("/form",
             response_model=SuccessResponse,
             summary="Relay a website contact form",
             responses={400: {"model": ErrorResponse}})
async def submit_form(
        form: FormSubmission,
        request: Request,
        bot: TelegramBot = Depends(get_bot)
):
    chat_id = request.app.state.settings.chat_id
    try:
        await bot.send_message(chat_id, form_message(form.name, form.phone, form.message), parse_mode=PARSE_MODE)
        logger.info("Form submission relayed")
    except NotificationError as e:
        logger.error(f"Form submission was not delivered: {e}")
    return SuccessResponse()


@router.post("/reviews",
             response_model=SuccessResponse,
             summary="Submit a review for moderation",
             responses={
                 400: {"model": ErrorResponse},
                 500: {"model": ErrorResponse}
             })
async def create_review(
        data: ReviewSubmission,
        request: Request,
        session: Session = Depends(get_session),
        bot: TelegramBot = Depends(get_bot)
):
    review = crud.create_review(session, data.name, data.text, data.rating)
    await notify_moderators(bot, request.app.state.settings.chat_id, review)
    return SuccessResponse()


@router.get("/reviews",
            response_model=List[Review],
            summary="List approved reviews, newest first",
            responses={500: {"model": ErrorResponse}})
async def list_reviews(session: Session = Depends(get_session)):
    reviews = crud.list_approved_reviews(session)
    logger.info(f"Approved reviews requested, {len(reviews)} entries found")
    return reviews


@router.post("/seed-reviews",
             response_model=SeedResponse,
             summary="Bulk insert reviews",
             responses={
                 400: {"model": ErrorResponse},
                 500: {"model": ErrorResponse}
             })
async def seed_reviews(
        reviews: List[SeedReview],
        session: Session = Depends(get_session)
):
    if not reviews:
        raise ValidationError(VALIDATION_MESSAGES["/seed-reviews"])
    inserted = crud.seed_reviews(session, [review.model_dump() for review in reviews])
    return SeedResponse(inserted=inserted)


@router.post("/telegram/webhook",
             summary="Receive Telegram updates",
             include_in_schema=False)
async def telegram_webhook(
        update: dict = Body(...),
        moderation: ModerationHandler = Depends(get_moderation)
):
    callback_query = update.get("callback_query")
    if callback_query:
        await moderation.handle_callback(callback_query)
    return {"ok": True}


async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Rejected {request.method} {request.url.path}: {exc.errors()}")
    message = VALIDATION_MESSAGES.get(request.url.path, "Invalid request")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


async def validation_error_handler(request: Request, exc: ValidationError):
    logger.warning(f"Rejected {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})


async def store_error_handler(request: Request, exc: StoreError):
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": STORE_ERROR_MESSAGE}
    )


def create_app(
        settings: Optional[Settings] = None,
        database: Optional[Database] = None,
        bot: Optional[TelegramBot] = None
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting review relay...")
        missing = settings.validate()
        if missing:
            logger.error(f"Missing required configuration: {', '.join(missing)}")
            raise RuntimeError(f"Missing required configuration: {', '.join(missing)}")

        app.state.db = database or Database(settings.database_url, sslmode=settings.database_sslmode)
        app.state.db.connect()
        app.state.bot = bot or TelegramBot(settings.bot_token)
        app.state.moderation = ModerationHandler(app.state.db, app.state.bot)

        poller = None
        if settings.telegram_polling:
            try:
                await app.state.bot.delete_webhook()
            except NotificationError as e:
                logger.warning(f"Could not clear webhook before polling: {e}")
            poller = UpdatePoller(app.state.bot, app.state.moderation.handle_callback)
            poller.start()

        logger.info("Review relay ready")
        yield

        if poller is not None:
            await poller.stop()
        await app.state.bot.close()
        app.state.db.dispose()

    app = FastAPI(
        title="Review relay",
        description="Relays contact forms and reviews to a Telegram moderation chat",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(StoreError, store_error_handler)
    app.include_router(router)
    return app


app = create_app()
