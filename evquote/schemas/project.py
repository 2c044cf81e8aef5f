# evquote/schemas/project.py
from __future__ import annotations

from typing import Any, List, Optional

from pydantic import ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from evquote.core.errors import MalformedStoredData
from evquote.repositories.base import Record
from evquote.schemas.common import CamelModel

# Airtable kolomnamen van de PROJECTS tabel
PROJECT_FIELDS = {
    "quote_id": "Quote ID",
    "customer_name": "Customer Name",
    "customer_email": "Customer Email",
    "customer_phone": "Customer Phone",
    "customer_address": "Customer Address",
    "status": "Project Status",
    "ev_make": "EV Make",
    "ev_model": "EV Model",
    "install_location": "Install Location",
    "permit_required": "Permit Required",
    "panel_type": "Panel Type",
    "panel_capacity": "Panel Capacity",
    "available_slots": "Available Slots",
    "panel_age": "Panel Age",
}


class Project(CamelModel):
    # Airtable geeft telefoonnummers e.d. soms als getal terug
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True)

    id: str
    quote_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    status: Optional[str] = None
    ev_make: Optional[str] = None
    ev_model: Optional[str] = None
    install_location: Optional[str] = None
    permit_required: bool = False
    panel_type: Optional[str] = None
    panel_capacity: Optional[float] = None
    available_slots: Optional[int] = None
    panel_age: Optional[str] = None

    @classmethod
    def from_record(cls, record: Record) -> "Project":
        fields = record.get("fields") or {}
        data: dict[str, Any] = {"id": record["id"]}
        for attr, column in PROJECT_FIELDS.items():
            value = fields.get(column)
            if value is not None:
                data[attr] = value
        data["permit_required"] = bool(fields.get("Permit Required"))
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise MalformedStoredData(
                f"Project {record['id']} has unexpected field values: {e.error_count()} error(s)"
            ) from e


class PhotoFile(CamelModel):
    id: str
    url: str
    filename: str
    thumbnail_url: Optional[str] = None


class Photo(CamelModel):
    id: str
    photo_type: Optional[str] = None
    files: List[PhotoFile] = Field(default_factory=list)

    @classmethod
    def from_record(cls, record: Record) -> "Photo":
        fields = record.get("fields") or {}
        files = []
        for f in fields.get("File") or []:
            large = ((f.get("thumbnails") or {}).get("large") or {}).get("url")
            files.append(
                PhotoFile(
                    id=f.get("id", ""),
                    url=f.get("url", ""),
                    filename=f.get("filename", ""),
                    thumbnail_url=large,
                )
            )
        return cls(id=record["id"], photo_type=fields.get("Photo Type"), files=files)
