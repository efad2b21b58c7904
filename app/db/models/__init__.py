# Import models here so Base.metadata sees every table

from app.db.models.user import User

__all__ = ["User"]
