from sqlalchemy.exc import SQLAlchemyError


class BaseRepo:
    def __init__(self, db):
        self.db = db

    async def db_add_and_flush(self, obj):
        self.db.add(obj)
        try:
            await self.db.flush()
            return obj
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def db_commit(self):
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def db_commit_and_refresh(self, obj):
        try:
            await self.db.commit()
            await self.db.refresh(obj)
            return obj
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def db_delete(self, obj):
        await self.db.delete(obj)
        await self.db.flush()

    async def rollback(self):
        await self.db.rollback()
