"""Request bodies.

JSON uses camelCase keys; models declare snake_case attributes and accept
either form. Services receive ``model_dump(by_alias=True)`` dicts.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Status = Literal["active", "inactive", "suspended", "archived"]
RoleType = Literal["system", "organization", "app"]
Gender = Literal["male", "female", "other", "prefer_not_to_say", "unknown", "not_applicable"]
PhoneType = Literal["mobile", "home", "work", "emergency", "fax", "pager", "main", "other"]
IdentificationType = Literal[
    "passport",
    "drivers_license",
    "national_id",
    "postal_id",
    "voters_id",
    "senior_citizen_id",
    "company_id",
    "school_id",
]
Resource = Literal["organization", "user", "role", "app", "module"]
Action = Literal["create", "read", "update", "delete"]

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    def for_create(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def for_update(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)


# ── Composites ───────────────────────────────────────────────────────────────


class Phone(CamelModel):
    type: PhoneType | None = None
    country_code: str | None = None
    number: str | None = None
    is_primary: bool | None = None


class ContactAddress(CamelModel):
    street: str | None = None
    address2: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    postal_code: str | None = None
    zip_code: str | None = None
    house_number: str | None = None


class ContactInfo(CamelModel):
    email: str | None = Field(default=None, pattern=EMAIL_PATTERN)
    phones: list[Phone] | None = None
    fax: str | None = None
    address: ContactAddress | None = None


class Identification(CamelModel):
    type: IdentificationType | None = None
    number: str | None = None
    issuing_country: str | None = None
    expiry_date: datetime | None = None


class Colors(CamelModel):
    primary: str | None = None
    secondary: str | None = None
    accent: str | None = None
    success: str | None = None
    warning: str | None = None
    danger: str | None = None
    info: str | None = None
    light: str | None = None
    dark: str | None = None
    neutral: str | None = None


class Branding(CamelModel):
    logo: str | None = None
    background: str | None = None
    font: str | None = None
    colors: Colors | None = None


class RolePermission(CamelModel):
    resource: Resource
    actions: list[Action] = Field(default_factory=list)


# ── Person ───────────────────────────────────────────────────────────────────


class PersonFields(CamelModel):
    organization_id: str | None = None
    prefix: str | None = None
    middle_name: str | None = None
    date_of_birth: datetime | None = None
    place_of_birth: str | None = None
    age: int | None = Field(default=None, gt=0)
    nationality: str | None = None
    primary_language: str | None = None
    gender: Gender | None = None
    currency: str | None = None
    vip_code: str | None = None
    contact_info: ContactInfo | None = None
    identification: Identification | None = None
    is_active: bool | None = None
    status: str | None = None
    tags: list[str] | None = None
    metadata: dict[str, Any] | None = None


class PersonCreate(PersonFields):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    is_active: bool | None = True


class PersonUpdate(PersonFields):
    first_name: str | None = Field(default=None, min_length=1)
    last_name: str | None = Field(default=None, min_length=1)


# ── User ─────────────────────────────────────────────────────────────────────


class UserCreate(CamelModel):
    person_id: str
    user_name: str = Field(min_length=1)
    email: str = Field(pattern=EMAIL_PATTERN)
    login_method: str = "email"
    password: str | None = Field(default=None, min_length=6)
    avatar: str | None = None
    status: Status = "active"
    organization_id: str | None = None
    metadata: dict[str, Any] | None = None
    roles: list[str] | None = None


class UserUpdate(CamelModel):
    user_name: str | None = Field(default=None, min_length=1)
    email: str | None = Field(default=None, pattern=EMAIL_PATTERN)
    login_method: str | None = None
    avatar: str | None = None
    status: Status | None = None
    organization_id: str | None = None
    metadata: dict[str, Any] | None = None
    roles: list[str] | None = None


# ── Organization / App ───────────────────────────────────────────────────────


class OrganizationCreate(CamelModel):
    name: str = Field(min_length=1)
    code: str = Field(min_length=1)
    description: str | None = None
    branding: Branding | None = None
    app_ids: list[str] | None = None


class OrganizationUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    code: str | None = Field(default=None, min_length=1)
    description: str | None = None
    branding: Branding | None = None
    app_ids: list[str] | None = None


class AppCreate(CamelModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    icon: str | None = None
    thumbnail: str | None = None
    status: Status = "active"
    version: str | None = None
    code: str = Field(min_length=1)
    with_module: bool = False


class AppUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = Field(default=None, min_length=1)
    icon: str | None = None
    thumbnail: str | None = None
    status: Status | None = None
    version: str | None = None
    code: str | None = Field(default=None, min_length=1)
    with_module: bool | None = None


# ── Roles and access ─────────────────────────────────────────────────────────


class RoleCreate(CamelModel):
    name: str = Field(min_length=1)
    description: str | None = None
    role_type: RoleType = "organization"


class RoleUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    role_type: RoleType | None = None


class AccessPolicyCreate(CamelModel):
    name: str = Field(min_length=1)
    description: str | None = None


class AccessPolicyUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None


class PermissionCreate(CamelModel):
    access_policy_id: str
    role_id: str
    role_permissions: list[RolePermission] = Field(default_factory=list)


class PermissionUpdate(CamelModel):
    role_permissions: list[RolePermission]


class AssignRoleRequest(CamelModel):
    role_id: str
    role_permissions: list[RolePermission] = Field(default_factory=list)


class UpdateRolePermissionsRequest(CamelModel):
    role_permissions: list[RolePermission]


# ── Auth ─────────────────────────────────────────────────────────────────────


# Register body keys that belong to the User; the rest describe the Person
ACCOUNT_FIELDS = ("userName", "email", "password", "loginMethod", "avatar", "organizationId", "metadata")


class RegisterRequest(PersonCreate):
    """Account and profile fields in one body."""

    user_name: str = Field(min_length=1)
    email: str = Field(pattern=EMAIL_PATTERN)
    password: str = Field(min_length=6)
    login_method: str = "email"
    avatar: str | None = None

    def split(self) -> tuple[dict[str, Any], dict[str, Any]]:
        """Return (account, person)."""
        data = self.for_create()
        account = {k: data.pop(k) for k in ACCOUNT_FIELDS if k in data}
        if "organizationId" in account:
            data["organizationId"] = account["organizationId"]
        return account, data


class LoginRequest(CamelModel):
    identifier: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UpdatePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)
