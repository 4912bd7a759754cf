from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from lending.schemas.common import Pagination


class ClientCreateRequest(BaseModel):
    control_number: str | None = Field(default=None, max_length=20)
    first_name: str = Field(max_length=100)
    middle_name: str | None = Field(default=None, max_length=100)
    last_name: str = Field(max_length=100)
    nickname: str | None = Field(default=None, max_length=50)
    date_of_birth: date | None = None
    gender: str | None = Field(default=None, max_length=10)
    religion: str | None = Field(default=None, max_length=50)
    civil_status: str | None = Field(default=None, max_length=20)
    home_address: str
    years_of_residence: int | None = Field(default=None, ge=0)
    facebook_account: str | None = Field(default=None, max_length=100)
    age: int
    contact_number: str = Field(max_length=20)


class ClientUpdateRequest(BaseModel):
    first_name: str | None = Field(default=None, max_length=100)
    middle_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    nickname: str | None = Field(default=None, max_length=50)
    date_of_birth: date | None = None
    gender: str | None = Field(default=None, max_length=10)
    religion: str | None = Field(default=None, max_length=50)
    civil_status: str | None = Field(default=None, max_length=20)
    home_address: str | None = None
    years_of_residence: int | None = Field(default=None, ge=0)
    facebook_account: str | None = Field(default=None, max_length=100)
    age: int | None = None
    contact_number: str | None = Field(default=None, max_length=20)


class ClientDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    control_number: str
    first_name: str
    middle_name: str | None = None
    last_name: str
    nickname: str | None = None
    date_of_birth: date | None = None
    gender: str | None = None
    religion: str | None = None
    civil_status: str | None = None
    home_address: str
    years_of_residence: int | None = None
    facebook_account: str | None = None
    age: int
    contact_number: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None


class ClientPage(BaseModel):
    items: list[ClientDTO]
    pagination: Pagination


class DuplicateCheckResponse(BaseModel):
    is_duplicate: bool
    similar_count: int
    searched_name: str


class ClientStatsResponse(BaseModel):
    total_clients: int
    active_clients: int
    new_this_month: int
    with_active_loans: int
