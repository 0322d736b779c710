"""Wait-time API routes."""

from fastapi import APIRouter, Body, Depends, Query

from src.core.interfaces.http.response import ApiResponse
from src.modules.waits.application.dependencies import get_wait_board
from src.modules.waits.application.wait_board import BoardView, WaitBoard
from src.modules.waits.interfaces.schemas import (
    BoardResponse,
    CatalogEntryResponse,
    FavoriteToggleResponse,
    RefreshRequest,
    WaitRecordResponse,
)

router = APIRouter(prefix="/waits", tags=["waits"])


def _to_board_response(view: BoardView) -> BoardResponse:
    return BoardResponse(
        records=[
            WaitRecordResponse(
                **record.model_dump(),
                is_favorite=record.id in view.favorites,
            )
            for record in view.records
        ],
        last_fetch=view.last_fetch,
        error_message=view.error_message,
        sort_ascending=view.sort_ascending,
        favorites=sorted(view.favorites),
        is_refreshing=view.is_refreshing,
    )


@router.get(
    "",
    response_model=ApiResponse[BoardResponse],
    summary="获取等待时间列表",
    description="返回当前排序后的记录，可只看收藏；先采纳周期任务写入的更新快照",
)
async def get_board(
    favorites_only: bool = Query(False, description="只返回收藏"),
    board: WaitBoard = Depends(get_wait_board),
) -> ApiResponse[BoardResponse]:
    await board.sync_from_snapshot()
    return ApiResponse.success(
        data=_to_board_response(board.view(favorites_only=favorites_only))
    )


@router.post(
    "/refresh",
    response_model=ApiResponse[BoardResponse],
    summary="手动刷新",
    description="可选先清空缓存、重新检查 catalog；已有刷新进行中时直接返回当前状态",
)
async def refresh_board(
    request: RefreshRequest | None = Body(None),
    board: WaitBoard = Depends(get_wait_board),
) -> ApiResponse[BoardResponse]:
    request = request or RefreshRequest()
    result = await board.refresh(
        include_catalog=request.include_catalog,
        wipe_caches=request.wipe_caches,
    )
    if result is None:
        return ApiResponse.success(
            data=_to_board_response(board.view()),
            message="Refresh already in progress",
            meta={"skipped": True},
        )

    return ApiResponse.success(
        data=_to_board_response(board.view()),
        message="Refresh completed",
        meta={
            "skipped": False,
            "healthy": result.healthy,
            "succeeded": result.succeeded,
            "failed": result.failed,
            "duration_ms": result.duration_ms,
        },
    )


@router.post(
    "/favorites/{attraction_id}/toggle",
    response_model=ApiResponse[FavoriteToggleResponse],
    summary="切换收藏",
)
async def toggle_favorite(
    attraction_id: str,
    board: WaitBoard = Depends(get_wait_board),
) -> ApiResponse[FavoriteToggleResponse]:
    is_favorite = await board.toggle_favorite(attraction_id)
    return ApiResponse.success(
        data=FavoriteToggleResponse(id=attraction_id, is_favorite=is_favorite)
    )


@router.post(
    "/sort/toggle",
    response_model=ApiResponse[BoardResponse],
    summary="切换排序方向",
    description="本地重新排序；refresh=true 时随后执行一次刷新",
)
async def toggle_sort(
    refresh: bool = Query(False, description="切换后是否刷新"),
    board: WaitBoard = Depends(get_wait_board),
) -> ApiResponse[BoardResponse]:
    board.toggle_sort()
    meta = None
    if refresh:
        result = await board.refresh()
        meta = {"skipped": result is None}
    return ApiResponse.success(data=_to_board_response(board.view()), meta=meta)


@router.get(
    "/catalog",
    response_model=ApiResponse[list[CatalogEntryResponse]],
    summary="获取当前 catalog",
)
async def get_catalog(
    board: WaitBoard = Depends(get_wait_board),
) -> ApiResponse[list[CatalogEntryResponse]]:
    return ApiResponse.success(
        data=[
            CatalogEntryResponse(
                id=master.id,
                display_name=master.display_name,
                short_name=master.short_name,
                code_name=master.code_name,
                endpoint=master.endpoint,
                area=master.area,
                image_url=master.image_url,
            )
            for master in board.masters
        ]
    )
