"""
VitrineTurbo - Catalog API
Produtos do vendedor, tamanhos personalizados e planos
"""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vitrineturbo.database import get_db
from vitrineturbo.models import User
from vitrineturbo.schemas import ProductCreate, CustomSizeRequest, CustomSizeResponse
from vitrineturbo.core import Action, Role, SessionRecord
from vitrineturbo.services.catalog import (
    list_user_products,
    create_product,
    delete_product,
    list_custom_sizes,
    add_custom_size,
    remove_custom_size,
    list_active_plans,
)
from .auth import get_current_user, require

router = APIRouter(tags=["Catalog"])


@router.get("/products")
async def list_products(
    session: SessionRecord = Depends(require(Action.READ, "products")),
    db: AsyncSession = Depends(get_db),
):
    """Lista produtos do usuário"""
    products = await list_user_products(db, session.id)
    return [p.to_dict() for p in products]


@router.post("/products", status_code=201)
async def post_product(
    request: ProductCreate,
    session: SessionRecord = Depends(require(Action.WRITE, "products")),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Cadastra produto"""
    product = await create_product(db, user.id, request.model_dump())
    return product.to_dict()


@router.delete("/products/{product_id}")
async def remove_product(
    product_id: str,
    session: SessionRecord = Depends(require(Action.DELETE, "products")),
    db: AsyncSession = Depends(get_db),
):
    """Remove produto (admin pode remover qualquer um)"""
    await delete_product(db, product_id, session.id, is_admin=session.role is Role.ADMIN)
    return {"message": "Produto removido"}


@router.get("/custom-sizes", response_model=List[str])
async def get_custom_sizes(
    session: SessionRecord = Depends(require(Action.READ, "products")),
    db: AsyncSession = Depends(get_db),
):
    return await list_custom_sizes(db, session.id)


@router.post("/custom-sizes", response_model=CustomSizeResponse)
async def post_custom_size(
    request: CustomSizeRequest,
    session: SessionRecord = Depends(require(Action.WRITE, "products")),
    db: AsyncSession = Depends(get_db),
):
    """Cadastra tamanho personalizado; nome vazio retorna success=False"""
    success = await add_custom_size(db, session.id, request.size_name, request.size_type)
    return CustomSizeResponse(success=success, sizes=await list_custom_sizes(db, session.id))


@router.delete("/custom-sizes/{size_name}", response_model=CustomSizeResponse)
async def delete_custom_size(
    size_name: str,
    session: SessionRecord = Depends(require(Action.WRITE, "products")),
    db: AsyncSession = Depends(get_db),
):
    success = await remove_custom_size(db, session.id, size_name)
    return CustomSizeResponse(success=success, sizes=await list_custom_sizes(db, session.id))


@router.get("/plans")
async def list_plans(db: AsyncSession = Depends(get_db)):
    """Planos de assinatura ativos"""
    plans = await list_active_plans(db)
    return [p.to_dict() for p in plans]
