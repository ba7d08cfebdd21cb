import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.core import config, errors
from backend.database import Base, engine
from backend.models import answer, moderation_log, notification, question, user  # noqa: F401
from backend.routes import admin_routes, answer_routes, auth_routes, notification_routes, question_routes

logging.basicConfig(
    level=config.LOG_LEVEL.upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

logger = logging.getLogger(__name__)

API_PREFIX = '/api'

app = FastAPI(title='Classroom Q&A API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')
    logger.info('API started in %s mode, allowed origins: %s', config.APP_ENV, config.ALLOWED_ORIGINS)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail
    if exc.status_code == status.HTTP_404_NOT_FOUND and not isinstance(exc, errors.AppError):
        message = 'Route not found'
    return JSONResponse(
        status_code=exc.status_code,
        content={'message': message},
        headers=getattr(exc, 'headers', None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {
            'field': '.'.join(str(part) for part in error.get('loc', ()) if part != 'body'),
            'message': error.get('msg', 'Invalid value'),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={'message': 'Validation failed', 'errors': details},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception('Unhandled error on %s %s', request.method, request.url.path)
    content = {'message': errors.InternalError.default_detail}
    if config.is_development():
        content['error'] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


@app.get('/')
def root():
    return {'status': 'Classroom Q&A API Running'}


@app.get(f'{API_PREFIX}/health')
def health():
    return {
        'status': 'OK',
        'environment': config.APP_ENV,
        'timestamp': datetime.now(timezone.utc).isoformat(),
    }


app.include_router(auth_routes.router, prefix=f'{API_PREFIX}/auth')
app.include_router(question_routes.router, prefix=f'{API_PREFIX}/questions')
app.include_router(answer_routes.router, prefix=f'{API_PREFIX}/answers')
app.include_router(admin_routes.router, prefix=f'{API_PREFIX}/admin')
app.include_router(notification_routes.router, prefix=f'{API_PREFIX}/notifications')


def run() -> None:
    import uvicorn

    uvicorn.run('backend.main:app', host='0.0.0.0', port=config.PORT)


if __name__ == '__main__':
    run()
