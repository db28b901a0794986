import logging
from contextlib import asynccontextmanager
import fastapi
from fastapi.middleware.cors import CORSMiddleware
from . import connection, errors, home, checkout, payment, subscription, claims, admin
from managers.price_manager import PriceFeedManager
from managers.workflow_manager import WorkflowManager
from models.errors import FrontError
from models.price import with_fallbacks
from repository import prices as prices_repo
from utils.settings import get_settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: fastapi.FastAPI):
    settings = get_settings()
    feed = PriceFeedManager()
    try:
        data = await prices_repo.get_initial_data()
        feed.seed(with_fallbacks(data.metalPrices))
    except FrontError as e:
        logger.error("Could not load initial prices, using fallbacks: %s", e.message)
        feed.seed(with_fallbacks(None))
    if settings.price_feed_enabled:
        await feed.connect(settings.price_socket_url)
    yield
    await feed.disconnect()
    WorkflowManager.reset()


app = fastapi.FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.add_exception_handler(FrontError, errors.front_error_handler)
app.add_exception_handler(404, errors.not_found_handler)

app.include_router(connection.router)
app.include_router(errors.router)
app.include_router(home.router)
app.include_router(checkout.router)
app.include_router(payment.router)
app.include_router(subscription.router)
app.include_router(claims.router)
app.include_router(admin.router)
