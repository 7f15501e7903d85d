"""SQLAlchemy database models."""
from dotenv import load_dotenv
from app.models.base import Base
from app.models.article import Article, ArticleVersion, ModerationIntent, PendingRevision


load_dotenv()

__all__ = [
    "Base",
    "Article",
    "ArticleVersion",
    "PendingRevision",
    "ModerationIntent",
]
