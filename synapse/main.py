import logging
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from synapse.auth.jwt_handler import TokenService
from synapse.auth.passwords import PasswordHasher
from synapse.core import config
from synapse.core.errors import InternalError, SynapseError
from synapse.database import create_db_engine, create_session_factory, init_database
from synapse.routes import auth_routes, resource_routes, stats_routes
from synapse.storage.blob_stage import BlobStage

logger = logging.getLogger(__name__)

API_PREFIX = '/api'


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={'error': message})


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return 'Invalid request'
    first = errors[0]
    location = '.'.join(str(part) for part in first.get('loc', ()) if part not in {'body', 'query', 'path'})
    message = first.get('msg', 'Invalid request')
    return f'{location}: {message}' if location else message


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(SynapseError)
    async def handle_domain_error(request: Request, exc: SynapseError):
        if exc.status_code >= 500:
            logger.error('%s %s failed: %s', request.method, request.url.path, exc.message)
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        return _error_response(400, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return _error_response(404, 'Route not found')
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_error(request: Request, exc: SQLAlchemyError):
        logger.exception('Database error on %s %s', request.method, request.url.path)
        return _error_response(500, InternalError.default_message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception('Unhandled error on %s %s', request.method, request.url.path)
        return _error_response(500, InternalError.default_message)


def create_app(settings: config.Settings | None = None) -> FastAPI:
    settings = settings or config.load_settings()
    config.validate_runtime_config(settings)

    app = FastAPI(title='Synapse API', debug=settings.debug)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    engine = create_db_engine(settings.database_url)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.token_service = TokenService(
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_in=timedelta(days=settings.jwt_expires_days),
    )
    app.state.password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    app.state.blob_stage = BlobStage(settings.upload_dir, max_bytes=settings.max_upload_bytes)

    @app.on_event('startup')
    def initialize_database() -> None:
        try:
            init_database(engine)
        except SQLAlchemyError:
            logger.exception('Database initialization failed. Check DATABASE_URL.')

    register_exception_handlers(app)

    app.include_router(stats_routes.router, prefix=API_PREFIX)
    app.include_router(auth_routes.router, prefix=f'{API_PREFIX}/auth')
    app.include_router(resource_routes.router, prefix=f'{API_PREFIX}/resources')

    return app


app = create_app()


def main() -> None:
    import uvicorn

    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    logger.info('Environment: %s', config.APP_ENV)
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == '__main__':
    main()
