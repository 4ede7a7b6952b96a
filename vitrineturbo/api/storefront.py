"""
VitrineTurbo - Storefront API
Vitrine pública: listagem de produtos e fechamento do pedido pelo WhatsApp
"""
import logging
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from vitrineturbo.database import get_db
from vitrineturbo.schemas import CartItem, OrderRequest, OrderResponse
from vitrineturbo.core import NotFoundError, ValidationFailedError
from vitrineturbo.services.catalog import (
    get_seller_by_slug,
    get_products_by_ids,
    list_storefront_products,
)
from vitrineturbo.services.cart import (
    calculate_cart_stats,
    validate_cart_item,
    generate_cart_order_message,
    generate_whatsapp_url,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/storefront", tags=["Storefront"])


def _request_origin(request: Request) -> str:
    return request.headers.get("origin") or str(request.base_url)


@router.get("/{slug}/products")
async def list_products(slug: str, db: AsyncSession = Depends(get_db)):
    """Produtos visíveis da vitrine"""
    seller = await get_seller_by_slug(db, slug)
    products = await list_storefront_products(db, seller.id)

    return {
        "seller": {
            "name": seller.name,
            "slug": seller.slug,
            "bio": seller.bio,
            "currency": seller.currency,
            "language": seller.language,
        },
        "products": [p.to_dict() for p in products],
    }


@router.post("/{slug}/order", response_model=OrderResponse)
async def create_order(
    slug: str,
    order: OrderRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """
    Monta o pedido a partir do carrinho do visitante.
    Preços vêm sempre do catálogo, nunca do cliente.
    """
    seller = await get_seller_by_slug(db, slug)
    products = await get_products_by_ids(db, seller.id, [i.product_id for i in order.items])

    items = []
    for requested in order.items:
        product = products.get(requested.product_id)
        if product is None or not product.is_visible_on_storefront:
            raise NotFoundError("Produto não encontrado")

        item = CartItem(
            id=product.id,
            title=product.title,
            price=product.price or 0,
            discounted_price=product.discounted_price,
            quantity=requested.quantity,
            selected_color=requested.selected_color,
            selected_size=requested.selected_size,
            notes=requested.notes,
            is_starting_price=bool(product.is_starting_price),
        )
        if not validate_cart_item(item):
            raise ValidationFailedError(
                "Este produto não pode ser adicionado ao carrinho pois não possui preço definido."
            )
        items.append(item)

    stats = calculate_cart_stats(items)
    message = generate_cart_order_message(
        items,
        stats.total,
        seller.name,
        seller.slug,
        currency=order.currency or seller.currency,
        language=order.language or seller.language,
        origin=_request_origin(request),
    )

    logger.info(f"Pedido montado na vitrine {slug}: {stats.item_count} item(ns)")
    return OrderResponse(
        item_count=stats.item_count,
        total=stats.total,
        message=message,
        whatsapp_url=generate_whatsapp_url(seller.whatsapp, message),
    )
