import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .db import init_db
from .errors import register_exception_handlers
from .settings import settings
from .routers import health, subjects, topics, responses, users, auth, generate

logging.basicConfig(
	level=settings.log_level.upper(),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)

app = FastAPI(title="MCQ Manager API", version="1.0.0")
app.add_middleware(
	CORSMiddleware,
	allow_origins=settings.cors_origin_list,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)
register_exception_handlers(app)

app.include_router(health.router)
app.include_router(subjects.router)
app.include_router(topics.router)
app.include_router(responses.router)
app.include_router(users.router)
app.include_router(auth.router)
app.include_router(generate.router)


@app.on_event("startup")
def startup_event():
	# Initialize DB schema
	init_db()
