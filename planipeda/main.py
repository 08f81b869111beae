from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from fastapi import Request
from fastapi.responses import JSONResponse
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware
import logging

from planipeda.database import init_db
from planipeda.config import Config
from planipeda.errors import PlanipedaError
from planipeda.routes import activities, curriculum, dashboard, evaluations, planning, referentiels, sequences, students

logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Init DB
    await init_db()
    logger.info("Database ready (%s)", Config.ENV)
    yield
    # Shutdown

app = FastAPI(title="Planipeda Backend", lifespan=lifespan)

# CORS
origins = [
    Config.FRONTEND_URL,
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
if Config.ENV == "PRODUCTION":
    origins = [Config.FRONTEND_URL]

def _with_cors(request: Request, response: JSONResponse) -> JSONResponse:
    # Error responses skip the CORS middleware, re-add the headers manually
    origin = request.headers.get("origin")
    if origin in origins:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
    return response

@app.exception_handler(PlanipedaError)
async def planipeda_exception_handler(request: Request, exc: PlanipedaError):
    return _with_cors(request, JSONResponse(status_code=exc.status_code, content={"detail": exc.message}))

# Global Exception Handler to ensure CORS headers are present even on 500 errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global Exception: {exc}", exc_info=True)
    response = JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error", "message": str(exc)},
    )
    return _with_cors(request, response)

# 1. Proxy
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

# 2. CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 3. Routes (prefixes defined in each router)
app.include_router(curriculum.router)
app.include_router(referentiels.router)
app.include_router(activities.router)
app.include_router(evaluations.router)
app.include_router(sequences.router)
app.include_router(planning.router)
app.include_router(students.router)
app.include_router(dashboard.router)

@app.get("/")
def root():
    return {"message": "Planipeda Backend Online"}
