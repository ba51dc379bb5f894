from pydantic import BaseModel

from cafe.sync.connectivity import DbStatus


class ConnectivityResponse(BaseModel):
    is_online: bool
    db_status: DbStatus
    is_live: bool
    queued_orders: int
    polling: bool


class SyncResponse(BaseModel):
    resynced: bool


class SalesSummaryResponse(BaseModel):
    total_sales: int
    total_orders: int
    pending_orders: int
    preparing_orders: int

    model_config = {"from_attributes": True}
