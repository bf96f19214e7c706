# Services package.
#
# Each module exposes async functions holding the business rules for one
# aggregate:
#
#   user_service     — registration, login, current user, profile edits
#   profile_service  — public profiles and follow edges
#   article_service  — articles, favorites, listings and the feed
#   comment_service  — comments on an article
#   tag_service      — the cached tag list
#
# Every function takes an AsyncSession first.  Persistence goes through
# ``conduit.repositories`` and repository errors are translated into the
# ``conduit.errors`` taxonomy by ``conduit.services.translation``.
