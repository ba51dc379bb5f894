from fastapi import Request

from cafe.services.store import CafeStore


def get_store(request: Request) -> CafeStore:
    return request.app.state.cafe_store
