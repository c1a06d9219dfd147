"""Base seeder class."""

import logging
from abc import ABC, abstractmethod

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class Seeder(ABC):
    """Base class for database seeders.

    Seeders must be idempotent: running one twice leaves the database as
    running it once.
    """

    @abstractmethod
    def run(self, db: Session) -> None:
        """Run the seeder.

        Args:
            db: Database session
        """

    def call(self, db: Session, *seeders: type["Seeder"]) -> None:
        """Run other seeders in order, sharing this seeder's session."""
        for seeder_class in seeders:
            seeder = seeder_class()
            logger.info(f"Running seeder {seeder.get_name()}")
            seeder.run(db)

    def get_name(self) -> str:
        return self.__class__.__name__
