from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1)
    display_order: int = 0


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    display_order: Optional[int] = None


class CategoryRead(BaseModel):
    id: str
    name: str
    display_order: int

    model_config = ConfigDict(from_attributes=True)


class MenuItemCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    price_kobo: int = Field(ge=0)
    category_id: str
    is_available: bool = True
    sort_order: int = 0


class MenuItemUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price_kobo: Optional[int] = Field(default=None, ge=0)
    category_id: Optional[str] = None
    is_available: Optional[bool] = None
    sort_order: Optional[int] = None


class MenuItemRead(BaseModel):
    id: str
    venue_id: str
    category_id: str
    name: str
    description: Optional[str] = None
    price_kobo: int
    is_available: bool
    sort_order: int

    model_config = ConfigDict(from_attributes=True)


class MenuGroup(BaseModel):
    category: CategoryRead
    items: List[MenuItemRead]


class TableCreate(BaseModel):
    label: str = Field(min_length=1)
    active: bool = True


class TableBulkCreate(BaseModel):
    count: int = Field(ge=1, le=100)
    label_prefix: str = "Table"
    start_at: int = Field(default=1, ge=1)


class TableUpdate(BaseModel):
    label: Optional[str] = None
    active: Optional[bool] = None


class TableRead(BaseModel):
    id: str
    venue_id: str
    label: str
    qr_token: str
    active: bool

    model_config = ConfigDict(from_attributes=True)


class TableWithUrl(TableRead):
    url: str
