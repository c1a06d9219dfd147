"""Database seeder - Main seeder that calls other seeders."""

from sqlalchemy.orm import Session

from app.core.seeders.base import Seeder


class DatabaseSeeder(Seeder):
    """Main database seeder.

    This seeder is idempotent - it will not create duplicate data.
    """

    def run(self, db: Session) -> None:
        from database.seeders.predefined_templates_seeder import PredefinedTemplatesSeeder

        self.call(db, PredefinedTemplatesSeeder)
