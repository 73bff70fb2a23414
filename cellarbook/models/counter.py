"""Named integer sequences used for bottle and catalog identifiers."""

from beanie import Document, Indexed
from pymongo import ReturnDocument


class Counter(Document):
    """A monotonically increasing named sequence."""

    name: Indexed(str, unique=True)
    value: int = 0

    class Settings:
        name = "counters"

    @classmethod
    async def reserve(cls, name: str, count: int = 1) -> int:
        """Atomically advance the sequence by ``count``.

        Returns:
            The first value of the reserved block; the block covers
            ``first .. first + count - 1``.
        """
        if count < 1:
            raise ValueError("count must be at least 1")

        # Use the driver directly so the increment is a single atomic upsert
        collection = cls.get_motor_collection()
        doc = await collection.find_one_and_update(
            {"name": name},
            {"$inc": {"value": count}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return doc["value"] - count + 1

    def __repr__(self) -> str:
        return f"<Counter(name={self.name}, value={self.value})>"
