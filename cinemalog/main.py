from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import settings
from .core.log import configure_logging
from .auth.router import router as auth_router
from .catalog.router import router as catalog_router
from .comments.router import router as comments_router
from .records.router import router as records_router, dashboard_router
from .users.router import router as users_router

configure_logging(settings.LOG_LEVEL)

app = FastAPI(title="CinemaLog")

# Malformed input is a 400 like every other ValidationError
@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

@app.get("/")
def read_root():
    return {"message": "Welcome to the CinemaLog API"}

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(dashboard_router)
app.include_router(records_router)
app.include_router(comments_router)
app.include_router(catalog_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
