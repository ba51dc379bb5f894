from pydantic import BaseModel, Field


class EventConfig(BaseModel):
    is_active: bool = Field(default=False, alias="isActive")
    event_name: str = Field(default="Grand Opening", alias="eventName")
    table_count: int = Field(default=10, ge=1, alias="tableCount")  # bounds orderable tables / QR codes
    discount_percentage: int = Field(default=0, ge=0, le=100, alias="discountPercentage")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# Used when nothing has been persisted locally yet.
LOCAL_DEFAULT_EVENT_CONFIG = EventConfig()

# Returned by the gateway when the remote path holds no value.
REMOTE_DEFAULT_EVENT_CONFIG = EventConfig(
    is_active=False, event_name="Event", table_count=10, discount_percentage=0
)
