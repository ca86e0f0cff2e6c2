from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class LocationResponse(BaseModel):
    latitude: float | None = None
    longitude: float | None = None
    gmap_url: str | None = None


class EventCreate(BaseModel):
    organizer_id: str
    event_name: str
    description: str | None = None
    event_date_time: datetime
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    event_capacity: int = Field(ge=0)
    ticket_price: float = Field(ge=0)
    event_image_base64: str | None = None
    event_instruction: str | None = None


class EventUpdate(BaseModel):
    event_name: str | None = None
    description: str | None = None
    ticket_price: float | None = Field(default=None, ge=0)
    event_date_time: datetime | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    event_instruction: str | None = None
    event_image_base64: str | None = None
    event_capacity: int | None = Field(default=None, ge=0)


class EventResponse(BaseModel):
    id: str
    organizer_id: str
    event_name: str
    description: str | None = None
    event_date_time: datetime
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    event_capacity: int
    available_tickets: int
    event_attendees: int
    ticket_price: float
    event_image_base64: str | None = None
    event_instruction: str | None = None
    location: LocationResponse


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str
    last_name: str
    email: str
    user_type: str


class TicketResponse(BaseModel):
    ticket_id: str
    price: float
    event_id: str
    qr_code_image_base64: str | None = None


class BookingDetailsResponse(BaseModel):
    id: str
    user_id: str
    ticket_count: int
    total_ticket_price: float
    booking_status: str
    tickets: list[TicketResponse]


class BookingRequest(BaseModel):
    user_id: str
    event_id: str
    ticket_count: int = Field(gt=0)
    ticket_price: float = Field(ge=0)
    total_ticket_price: float = Field(ge=0)
    payment_status: bool


class BookingResponse(BaseModel):
    booking: BookingDetailsResponse
    user: UserResponse | None = None
    event: EventResponse | None = None


class EventByUserResponse(BaseModel):
    booking: BookingDetailsResponse
    event: EventResponse | None = None


class MessageResponse(BaseModel):
    message: str


class OutboxEventResponse(BaseModel):
    id: str
    aggregate_type: str
    aggregate_id: str
    event_type: str
    status: str
    attempts: int
    last_error: str | None = None
    created_at: str
