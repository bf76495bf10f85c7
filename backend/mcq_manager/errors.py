from __future__ import annotations
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


logger = logging.getLogger(__name__)


class AppError(Exception):
	status_code = 500

	def __init__(self, message: str) -> None:
		super().__init__(message)
		self.message = message


class ValidationError(AppError):
	"""Input is missing or has the wrong shape."""
	status_code = 400


class NotFoundError(AppError):
	status_code = 404


class ConflictError(AppError):
	status_code = 409


class StorageError(AppError):
	status_code = 500


class UpstreamError(AppError):
	"""A third-party provider (text generation, SMS) failed."""
	status_code = 502


class UpstreamParseError(UpstreamError):
	"""The text generation provider returned something that is not the JSON we asked for."""


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
	if exc.status_code >= 500:
		logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
	return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def register_exception_handlers(app: FastAPI) -> None:
	app.add_exception_handler(AppError, _app_error_handler)
