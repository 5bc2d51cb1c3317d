"""
API v1 Router

All org-scoped endpoints are prefixed with /orgs/{subdomain}.
"""

from fastapi import APIRouter
from . import boards, cards, feed, follows

router = APIRouter()

ORG_PREFIX = "/orgs/{subdomain}"

router.include_router(boards.router, prefix=f"{ORG_PREFIX}/boards", tags=["Boards"])
router.include_router(cards.router, prefix=f"{ORG_PREFIX}/cards", tags=["Cards"])
router.include_router(follows.router, prefix=ORG_PREFIX, tags=["Follows"])
router.include_router(feed.router, prefix=f"{ORG_PREFIX}/feed", tags=["Feed"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/orgs/{subdomain}/boards",
            "/orgs/{subdomain}/cards",
            "/orgs/{subdomain}/boards/{board_id}/follow",
            "/orgs/{subdomain}/cards/{card_id}/follow",
            "/orgs/{subdomain}/cards/{card_id}/mute",
            "/orgs/{subdomain}/feed",
        ],
    }
