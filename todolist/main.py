import logging
import time
from datetime import datetime, UTC

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from todolist import config
from todolist.database import ensure_schema
from todolist.errors import TodoError
from todolist.logging_setup import setup_logging
from todolist.routers import auth, tasks

setup_logging(config.LOG_LEVEL, config.LOG_FILE)
logger = logging.getLogger(__name__)

ensure_schema()

app = FastAPI(title="To-Do List API")

# with credentials, a wildcard is served by echoing the request origin
app.add_middleware(
	CORSMiddleware,
	allow_origins=[] if "*" in config.CORS_ORIGINS else config.CORS_ORIGINS,
	allow_origin_regex=".*" if "*" in config.CORS_ORIGINS else None,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

# API routers
app.include_router(auth.router)
app.include_router(tasks.router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
	started = time.perf_counter()
	response = await call_next(request)
	elapsed = (time.perf_counter() - started) * 1000
	logger.info("%s %s -> %s (%.1f ms)", request.method, request.url.path, response.status_code, elapsed)
	return response


@app.get("/health", tags=["health"])
def health():
	return {"status": "OK", "timestamp": datetime.now(UTC).isoformat()}


@app.exception_handler(TodoError)
async def todo_error_handler(request: Request, exc: TodoError):
	if exc.status_code >= 500:
		logger.error("Internal error on %s %s: %s", request.method, request.url.path, exc)
	else:
		logger.debug("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.details or exc.message)
	return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
	details = []
	for err in exc.errors():
		loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
		details.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
	return JSONResponse(status_code=400, content={"error": "Invalid request body", "details": details})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
	if exc.status_code == 404:
		return JSONResponse(
			status_code=404,
			content={"error": "Endpoint not found", "message": f"URL '{request.url.path}' does not exist."},
		)
	return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


# Generic error handler to return JSON errors for unexpected exceptions
@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
	logger.exception("Unhandled error on %s %s", request.method, request.url.path)
	return JSONResponse(status_code=500, content={"error": "Internal Server Error"})
