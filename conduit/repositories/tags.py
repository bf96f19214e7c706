from sqlalchemy import select

from conduit.models import Tag
from conduit.repositories.base import Repository


class TagRepository(Repository):
    async def list_names(self) -> list[str]:
        """Return every tag name, alphabetically."""
        async with self.transaction():
            result = await self.session.execute(select(Tag.name).order_by(Tag.name))
            return list(result.scalars().all())
