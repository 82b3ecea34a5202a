# app/domain/inventory/schemas.py
import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    # random rather than time-based so two operations in the same millisecond never collide
    return str(uuid.uuid4())


class StockAction(str, enum.Enum):
    CREATE = "CREATE"
    INBOUND = "INBOUND"
    ASSIGN = "ASSIGN"
    RETURN = "RETURN"
    SCRAP = "SCRAP"
    UPDATE = "UPDATE"


class AssignmentStatus(str, enum.Enum):
    ACTIVE = "Active"
    RETURNED = "Returned"


class Record(BaseModel):
    """Base for the records held by the entity store.

    Fields are snake_case in Python and camelCase on the wire, which is the
    layout of exported backups.
    """

    class Config:
        from_attributes = True
        populate_by_name = True
        alias_generator = to_camel
        use_enum_values = True
        validate_default = True


class Product(Record):
    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1)
    name_zh: str = Field(..., min_length=1)
    sku: str = Field(..., min_length=1)
    category: str
    quantity: int = Field(0, ge=0)
    price: Decimal = Field(Decimal("0"), ge=0)
    min_stock: int = Field(0, ge=0)
    description: Optional[str] = ""
    last_updated: datetime = Field(default_factory=utcnow)

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_stock


class Employee(Record):
    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    department: str = "General"
    role: str = "Staff"
    joined_date: datetime = Field(default_factory=utcnow)


class Assignment(Record):
    id: str = Field(default_factory=new_id)
    product_id: str
    product_name: str
    product_name_zh: str = ""
    employee_id: str
    employee_name: str
    quantity: int = Field(..., gt=0)
    assigned_date: datetime = Field(default_factory=utcnow)
    status: AssignmentStatus = AssignmentStatus.ACTIVE
    performed_by: str


class ScrappedItem(Record):
    id: str = Field(default_factory=new_id)
    product_id: str
    product_name: str
    product_name_zh: str = ""
    quantity: int = Field(..., gt=0)
    reason: str = Field(..., min_length=1)
    scrapped_date: datetime = Field(default_factory=utcnow)
    performed_by: str


class StockLog(Record):
    id: str = Field(default_factory=new_id)
    action: StockAction
    product_name: str
    quantity: int = Field(..., ge=0)
    performed_by: str
    date: datetime = Field(default_factory=utcnow)
    details: Optional[str] = None


# Stock operations issued by the presentation layer. Each variant carries only
# what it needs; the coordinator dispatches on the concrete class.

class InboundOperation(Record):
    type: Literal["INBOUND"] = "INBOUND"
    product_id: str
    quantity: int = Field(..., gt=0)


class AssignOperation(Record):
    type: Literal["ASSIGN"] = "ASSIGN"
    product_id: str
    quantity: int = Field(..., gt=0)
    employee_id: str


class ScrapOperation(Record):
    type: Literal["SCRAP"] = "SCRAP"
    product_id: str
    quantity: int = Field(..., gt=0)
    reason: str = Field(..., min_length=1)


StockOperation = Annotated[
    Union[InboundOperation, AssignOperation, ScrapOperation],
    Field(discriminator="type"),
]


class OperationStatus(str, enum.Enum):
    OK = "ok"
    FAILED = "failed"
    DECLINED = "declined"
    BLOCKED = "blocked"
    IGNORED = "ignored"


class OperationResult(BaseModel):
    """Outcome of a user intent. Operations resolve to one of these instead of raising."""

    action: str
    status: OperationStatus = OperationStatus.OK
    message: Optional[str] = None
    count: Optional[int] = None
    schema_mismatch: bool = False

    @property
    def ok(self) -> bool:
        return self.status == OperationStatus.OK


class CategoryCount(BaseModel):
    name: str
    value: int


class InventoryStats(BaseModel):
    total_products: int
    total_value: Decimal
    low_stock_count: int
    categories: List[CategoryCount]
