from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from topicscope.core.exceptions import ClusterRequestError, ProblemDetail
from topicscope.core.security import TokenValidationError

_PROBLEM_JSON = "application/problem+json"


def _problem(status: int, title: str, detail: str) -> JSONResponse:
    body = ProblemDetail(status=status, title=title, detail=detail)
    return JSONResponse(status_code=status, content=body.model_dump(mode="json"), media_type=_PROBLEM_JSON)


def install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ClusterRequestError)
    async def cluster_error_handler(_: Request, exc: ClusterRequestError):
        problem = exc.to_problem()
        return JSONResponse(
            status_code=problem.status,
            content=problem.model_dump(mode="json"),
            media_type=_PROBLEM_JSON,
        )

    @app.exception_handler(TokenValidationError)
    async def token_error_handler(_: Request, exc: TokenValidationError):
        return _problem(401, "Unauthorized", str(exc))

    # ValidationError subclasses ValueError but signals a server-side model bug
    @app.exception_handler(ValidationError)
    async def model_error_handler(_: Request, exc: ValidationError):
        return _problem(500, "Internal Server Error", f"invalid response model: {exc.error_count()} error(s)")

    @app.exception_handler(ValueError)
    async def value_error_handler(_: Request, exc: ValueError):
        return _problem(400, "Bad Request", str(exc))

    @app.exception_handler(KeyError)
    async def key_error_handler(_: Request, exc: KeyError):
        # str(KeyError) wraps the key in quotes
        return _problem(404, "Not Found", f"{exc.args[0] if exc.args else ''} not found")

    # Catch-all
    @app.exception_handler(Exception)
    async def unhandled(_: Request, exc: Exception):
        return _problem(500, "Internal Server Error", str(exc))
