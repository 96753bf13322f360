import logging

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from packledger.config import config
from packledger.dependencies import get_db
from packledger.endpoints import pack_templates, pack_assignments, cron

logging.basicConfig(level=config.LOG_LEVEL)

# Create a logger for the application
logger = logging.getLogger("packledger")
logger.setLevel(config.LOG_LEVEL)

# Create a console handler with the shared format
ch = logging.StreamHandler()
ch.setLevel(config.LOG_LEVEL)
formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
ch.setFormatter(formatter)
logger.addHandler(ch)
logger.propagate = False

logger.info("Application started and logger configured.")


app = FastAPI(
    title="Pack Ledger API",
    description="API для учёта пакетов занятий и списаний",
    version="1.0.0"
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Регистрация маршрутов
app.include_router(pack_templates.router)
app.include_router(pack_assignments.router)
app.include_router(cron.router)


# Обработка ошибок валидации
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        if 'ctx' in error and 'error' in error['ctx']:
            # Если ошибка содержит ValueError, берем его сообщение
            if isinstance(error['ctx']['error'], ValueError):
                error['msg'] = str(error['ctx']['error'])
                del error['ctx']  # Удаляем ctx, так как он содержит несериализуемые объекты
        errors.append(error)

    return JSONResponse(
        status_code=422,
        content={"detail": errors},
    )


# Проверка подключения к базе данных
@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "connected"}
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {str(e)}")
        return {"status": "unhealthy", "database": "disconnected"}
