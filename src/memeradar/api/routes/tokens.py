"""Token API routes."""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from memeradar.api.dependencies import TokenServiceDep
from memeradar.models.token import TokenPage, TokenRecord, UpdateSource
from memeradar.services.token.service import build_filters

router = APIRouter(prefix="/tokens", tags=["tokens"])


class Pagination(BaseModel):
    """Cursor pagination metadata."""

    model_config = ConfigDict(populate_by_name=True)

    has_next: bool = Field(alias="hasNext")
    next_cursor: str | None = Field(default=None, alias="nextCursor")


class TokenListResponse(BaseModel):
    """Response for the paginated token list."""

    data: list[TokenRecord]
    pagination: Pagination


class TokenDataResponse(BaseModel):
    """Response wrapping a plain list of tokens."""

    data: list[TokenRecord]


class TokenResponse(BaseModel):
    """Response for a single token."""

    data: TokenRecord


class RefreshResponse(BaseModel):
    """Response for a manual refresh."""

    model_config = ConfigDict(populate_by_name=True)

    data: list[TokenRecord]
    message: str
    count: int
    changed_count: int = Field(alias="changedCount")
    websocket_broadcast: str = Field(alias="websocketBroadcast")


def _list_response(page: TokenPage) -> TokenListResponse:
    return TokenListResponse(
        data=page.records,
        pagination=Pagination(has_next=page.has_next, next_cursor=page.next_cursor),
    )


@router.get("", response_model=TokenListResponse)
async def list_tokens(
    service: TokenServiceDep,
    period: str | None = Query(default=None, description="1h, 24h or 7d"),
    sort_by: str | None = Query(
        default=None, alias="sortBy", description="volume, price_change or market_cap"
    ),
    limit: str | None = Query(default=None, description="1-100, default 20"),
    cursor: str | None = Query(default=None, description="Address of the last token seen"),
) -> TokenListResponse:
    """
    List dashboard tokens with optional period filter, sort and pagination.
    """
    filters = build_filters(period=period, sort_by=sort_by, limit=limit, cursor=cursor)
    return _list_response(await service.list_tokens(filters))


@router.get("/trending", response_model=TokenDataResponse)
async def trending_tokens(
    service: TokenServiceDep,
    limit: str | None = Query(default=None, description="1-50, default 10"),
) -> TokenDataResponse:
    """Tokens sorted by price change."""
    page = await service.trending(limit)
    return TokenDataResponse(data=page.records)


@router.get("/volume", response_model=TokenDataResponse)
async def tokens_by_volume(
    service: TokenServiceDep,
    limit: str | None = Query(default=None, description="1-50, default 20"),
    period: str | None = Query(default=None, description="1h, 24h or 7d"),
) -> TokenDataResponse:
    """Tokens sorted by volume for the given period."""
    page = await service.by_volume(limit=limit, period=period)
    return TokenDataResponse(data=page.records)


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_tokens(service: TokenServiceDep) -> RefreshResponse:
    """
    Run a refresh cycle now and push changed tokens to subscribers.
    """
    outcome = await service.refresh(UpdateSource.MANUAL)
    records = outcome.result.records
    return RefreshResponse(
        data=records,
        message="Tokens refreshed successfully" if records else "No tokens updated",
        count=len(records),
        changed_count=len(outcome.result.changed),
        websocket_broadcast=outcome.broadcast_summary,
    )


@router.get("/{address}", response_model=TokenResponse)
async def get_token(address: str, service: TokenServiceDep) -> TokenResponse | JSONResponse:
    """Get one token by mint address."""
    record = await service.get_token(address)
    if record is None:
        return JSONResponse(status_code=404, content={"error": "Token not found"})
    return TokenResponse(data=record)
