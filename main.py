from contextlib import asynccontextmanager
from fastapi import FastAPI
from festival_booking.utils.config import settings
from festival_booking.utils.exceptions import register_exception_handlers
from festival_booking.utils.logging_config import configure_logging
from festival_booking.utils.observability import PrometheusMiddleware, metrics, setting_otlp
from festival_booking.kafka.producer import booking_producer
from festival_booking.api.main_router import router as main_router

# Create your application logger
logger = configure_logging(settings.APP_NAME)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Festival booking API started")
    yield

    await booking_producer.close()
    logger.info("Festival booking API shut down")

app = FastAPI(title="Festival Booking API", lifespan=lifespan)

if settings.OTLP_ENDPOINT:
    setting_otlp(app=app, app_name=settings.APP_NAME, endpoint=settings.OTLP_ENDPOINT)

app.add_middleware(PrometheusMiddleware, app_name=settings.APP_NAME)
app.add_route("/metrics", metrics)
register_exception_handlers(app)

@app.get("/")
def read_root():
    return {"message": "Welcome to the Festival Booking API"}

app.include_router(main_router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8100)
