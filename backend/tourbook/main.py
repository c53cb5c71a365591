import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

from fastapi import FastAPI, Request, Response

from .routers import activities, reservations, tracking
from .utils.request_id import REQUEST_ID_HEADER, bind_request_id, set_request_id

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    client = getattr(app.state, "agency_client", None)
    if client is not None:
        await client.aclose()


async def request_id_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    request_id = bind_request_id(request.headers.get(REQUEST_ID_HEADER))
    try:
        response = await call_next(request)
    finally:
        set_request_id(None)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


app = FastAPI(title="Tour Booking API", lifespan=lifespan)
app.middleware("http")(request_id_middleware)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(activities.router)
app.include_router(reservations.router)
app.include_router(tracking.router)
