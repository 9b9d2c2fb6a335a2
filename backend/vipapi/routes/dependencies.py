"""
VIP Travel API - Route Dependencies
====================================

The asset store is process-wide state hung on `app.state` by create_app(),
so handlers reach it through this dependency and tests can swap it out.
"""

from fastapi import Request

from vipapi.services.asset_store import AssetStore


def get_asset_store(request: Request) -> AssetStore:
    return request.app.state.asset_store
