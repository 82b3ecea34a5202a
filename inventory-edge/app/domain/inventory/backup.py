# app/domain/inventory/backup.py
import json
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import Field, ValidationError

from app.domain.inventory.schemas import Assignment, Employee, Product, Record, ScrappedItem, utcnow

BACKUP_VERSION = "1.0"


class InvalidBackupError(ValueError):
    pass


class BackupDocument(Record):
    """A full export of the inventory, stock logs excluded."""

    version: str = BACKUP_VERSION
    timestamp: datetime = Field(default_factory=utcnow)
    products: List[Product]
    categories: List[str] = []
    assignments: List[Assignment] = []
    scrapped_items: List[ScrappedItem] = []
    employees: List[Employee] = []

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


def export_backup(store) -> BackupDocument:
    return BackupDocument(
        products=list(store.products),
        categories=list(store.categories),
        assignments=list(store.assignments),
        scrapped_items=list(store.scrapped_items),
        employees=list(store.employees),
    )


def backup_filename(today: Optional[date] = None) -> str:
    today = today or utcnow().date()
    return f"inventory-backup-{today.isoformat()}.json"


def parse_backup(raw: Union[str, bytes, Dict[str, Any]]) -> BackupDocument:
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise InvalidBackupError("Failed to parse backup file.") from exc

    if not isinstance(raw, dict) or not isinstance(raw.get("products"), list):
        raise InvalidBackupError("Invalid backup file format.")

    try:
        return BackupDocument.model_validate(raw)
    except ValidationError as exc:
        raise InvalidBackupError("Invalid backup file format.") from exc
