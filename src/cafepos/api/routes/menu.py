from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Response, status
from sqlalchemy import Engine

from cafepos.api.dependencies import get_db_engine, menu_cache_ttl, pos_currency, require_roles
from cafepos.application.dto.requests import CategoryRequest, MenuItemRequest
from cafepos.application.dto.responses import (
    CategoryListResponse,
    CategoryResponse,
    MenuItemListResponse,
    MenuItemResponse,
    MenuResponse,
)
from cafepos.application.use_cases.get_menu import GetMenu
from cafepos.application.use_cases.manage_menu import (
    CreateCategory,
    CreateMenuItem,
    DeleteCategory,
    DeleteMenuItem,
    GetMenuItem,
    ListCategories,
    ListMenuItems,
    UpdateCategory,
    UpdateMenuItem,
)
from cafepos.domain.common.ids import CategoryId, MenuItemId
from cafepos.domain.staff.entities import Staff, StaffRole
from cafepos.infrastructure.cache.cache_store import build_cache_store
from cafepos.infrastructure.db.repositories.menu_repo import SqlAlchemyMenuRepository

router = APIRouter(prefix="/menu", tags=["menu"])

_admin = require_roles(StaffRole.ADMIN)


def _get_menu_use_case(engine: Engine) -> GetMenu:
    return GetMenu(
        repository=SqlAlchemyMenuRepository(engine),
        cache=build_cache_store(),
        ttl_seconds=menu_cache_ttl(),
    )


@router.get("/categories", response_model=CategoryListResponse)
def list_categories(engine: Engine = Depends(get_db_engine)) -> CategoryListResponse:
    return ListCategories(repository=SqlAlchemyMenuRepository(engine)).execute()


@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    request_dto: CategoryRequest,
    engine: Engine = Depends(get_db_engine),
    _: Staff = Depends(_admin),
) -> CategoryResponse:
    use_case = CreateCategory(repository=SqlAlchemyMenuRepository(engine), cache=build_cache_store())
    return use_case.execute(request_dto)


@router.put("/categories/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: int,
    request_dto: CategoryRequest,
    engine: Engine = Depends(get_db_engine),
    _: Staff = Depends(_admin),
) -> CategoryResponse:
    use_case = UpdateCategory(repository=SqlAlchemyMenuRepository(engine), cache=build_cache_store())
    return use_case.execute(CategoryId(category_id), request_dto)


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: int,
    engine: Engine = Depends(get_db_engine),
    _: Staff = Depends(_admin),
) -> Response:
    use_case = DeleteCategory(repository=SqlAlchemyMenuRepository(engine), cache=build_cache_store())
    use_case.execute(CategoryId(category_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/items", response_model=MenuResponse)
def get_menu(
    response: Response,
    engine: Engine = Depends(get_db_engine),
    if_none_match: str | None = Header(default=None, alias="If-None-Match"),
) -> MenuResponse | Response:
    payload = _get_menu_use_case(engine).execute()

    etag = f'"menu-{payload.version}"'
    if if_none_match == etag:
        return Response(status_code=304, headers={"ETag": etag})

    response.headers["ETag"] = etag
    return payload


@router.get("/items/all", response_model=MenuItemListResponse)
def list_all_menu_items(
    engine: Engine = Depends(get_db_engine),
    _: Staff = Depends(_admin),
) -> MenuItemListResponse:
    return ListMenuItems(repository=SqlAlchemyMenuRepository(engine)).execute()


@router.get("/items/{item_id}", response_model=MenuItemResponse)
def get_menu_item(item_id: int, engine: Engine = Depends(get_db_engine)) -> MenuItemResponse:
    return GetMenuItem(repository=SqlAlchemyMenuRepository(engine)).execute(MenuItemId(item_id))


@router.post("/items", response_model=MenuItemResponse, status_code=status.HTTP_201_CREATED)
def create_menu_item(
    request_dto: MenuItemRequest,
    engine: Engine = Depends(get_db_engine),
    _: Staff = Depends(_admin),
) -> MenuItemResponse:
    use_case = CreateMenuItem(
        repository=SqlAlchemyMenuRepository(engine),
        cache=build_cache_store(),
        currency=pos_currency(),
    )
    return use_case.execute(request_dto)


@router.put("/items/{item_id}", response_model=MenuItemResponse)
def update_menu_item(
    item_id: int,
    request_dto: MenuItemRequest,
    engine: Engine = Depends(get_db_engine),
    _: Staff = Depends(_admin),
) -> MenuItemResponse:
    use_case = UpdateMenuItem(
        repository=SqlAlchemyMenuRepository(engine),
        cache=build_cache_store(),
        currency=pos_currency(),
    )
    return use_case.execute(MenuItemId(item_id), request_dto)


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_menu_item(
    item_id: int,
    engine: Engine = Depends(get_db_engine),
    _: Staff = Depends(_admin),
) -> Response:
    use_case = DeleteMenuItem(repository=SqlAlchemyMenuRepository(engine), cache=build_cache_store())
    use_case.execute(MenuItemId(item_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
