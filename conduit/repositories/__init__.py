# Persistence layer.
#
# One repository per aggregate, each wrapping the request's AsyncSession:
#
#   UserRepository     users (registration, lookup, partial update)
#   ProfileRepository  public profiles and follow edges
#   ArticleRepository  articles, tag links, favorites, listings
#   CommentRepository  comments on articles
#   TagRepository      tag names
#
# Repositories return frozen records (see records.py) and raise only the
# errors defined in errors.py.
from conduit.repositories.articles import ArticleRepository
from conduit.repositories.comments import CommentRepository
from conduit.repositories.profiles import ProfileRepository
from conduit.repositories.tags import TagRepository
from conduit.repositories.users import UserRepository

__all__ = [
    "ArticleRepository",
    "CommentRepository",
    "ProfileRepository",
    "TagRepository",
    "UserRepository",
]
