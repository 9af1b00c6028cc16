from fastapi import Depends
from sqlalchemy.orm import Session

from .data_context import DataContext, SqlAlchemyDataContext
from .database import get_db
from .services.log_service import LogService
from .services.user_service import UserService


def get_data_context(db: Session = Depends(get_db)) -> DataContext:
    return SqlAlchemyDataContext(db)


def get_user_service(data_context: DataContext = Depends(get_data_context)) -> UserService:
    return UserService(data_context)


def get_log_service(data_context: DataContext = Depends(get_data_context)) -> LogService:
    return LogService(data_context)
